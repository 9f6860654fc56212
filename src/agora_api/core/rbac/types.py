"""RBAC type definitions used across the stack."""

from __future__ import annotations

import enum
from collections.abc import Iterable
from dataclasses import dataclass, field


class ScopeType(str, enum.Enum):
    """Scopes a grant can apply to."""

    GLOBAL = "global"
    WORKSPACE = "workspace"


class GlobalRole(str, enum.Enum):
    """Application-wide roles."""

    SUPER_ADMIN = "super_admin"
    USER = "user"


class WorkspaceRole(str, enum.Enum):
    """Roles inside a single workspace."""

    WORKSPACE_ADMIN = "workspace_admin"
    USER = "user"


class Action(str, enum.Enum):
    """Closed set of fine-grained permission tags."""

    # Users
    CREATE_USER = "users.create"
    READ_USER = "users.read"
    UPDATE_USER = "users.update"
    DELETE_USER = "users.delete"
    UPDATE_USER_PERMISSIONS = "users.permissions.update"

    # Workspaces
    CREATE_WORKSPACE = "workspaces.create"
    READ_WORKSPACE = "workspaces.read"
    UPDATE_WORKSPACE = "workspaces.update"
    DELETE_WORKSPACE = "workspaces.delete"
    ADD_WORKSPACE_USER = "workspaces.users.add"
    REMOVE_WORKSPACE_USER = "workspaces.users.remove"
    UPDATE_WORKSPACE_USER_PERMISSIONS = "workspaces.users.permissions.update"

    # Deployments
    CREATE_DEPLOYMENT = "deployments.create"
    READ_DEPLOYMENT = "deployments.read"
    UPDATE_DEPLOYMENT = "deployments.update"
    DELETE_DEPLOYMENT = "deployments.delete"
    PROXY_DEPLOYMENT = "deployments.proxy"

    # Wiki
    CREATE_WIKI = "wiki.create"
    READ_WIKI = "wiki.read"
    UPDATE_WIKI = "wiki.update"
    DELETE_WIKI = "wiki.delete"
    CREATE_WIKI_SECTION = "wiki.sections.create"
    READ_WIKI_SECTION = "wiki.sections.read"
    UPDATE_WIKI_SECTION = "wiki.sections.update"
    DELETE_WIKI_SECTION = "wiki.sections.delete"
    CREATE_WIKI_PAGE = "wiki.pages.create"
    READ_WIKI_PAGE = "wiki.pages.read"
    UPDATE_WIKI_PAGE = "wiki.pages.update"
    DELETE_WIKI_PAGE = "wiki.pages.delete"

    # Projects
    CREATE_PROJECT = "projects.create"
    READ_PROJECT = "projects.read"
    UPDATE_PROJECT = "projects.update"
    DELETE_PROJECT = "projects.delete"
    CREATE_PROJECT_LANE = "projects.lanes.create"
    READ_PROJECT_LANE = "projects.lanes.read"
    UPDATE_PROJECT_LANE = "projects.lanes.update"
    DELETE_PROJECT_LANE = "projects.lanes.delete"
    CREATE_PROJECT_TASK = "projects.tasks.create"
    READ_PROJECT_TASK = "projects.tasks.read"
    UPDATE_PROJECT_TASK = "projects.tasks.update"
    DELETE_PROJECT_TASK = "projects.tasks.delete"

    # Auditing
    READ_AUDIT_LOG = "audit_logs.read"


@dataclass(frozen=True)
class AdminGrant:
    """Role grant that implies every action in its scope."""

    is_admin: bool = field(default=True, init=False)


@dataclass(frozen=True)
class ExplicitGrant:
    """Grant limited to an explicit action set."""

    actions: frozenset[Action] = frozenset()
    is_admin: bool = field(default=False, init=False)

    @classmethod
    def of(cls, actions: Iterable[Action | str]) -> ExplicitGrant:
        return cls(actions=frozenset(Action(action) for action in actions))


Grant = AdminGrant | ExplicitGrant


__all__ = [
    "Action",
    "AdminGrant",
    "ExplicitGrant",
    "GlobalRole",
    "Grant",
    "ScopeType",
    "WorkspaceRole",
]
