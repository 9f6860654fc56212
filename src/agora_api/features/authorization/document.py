"""In-memory form of a user's permission document.

Grants are stored as ``{"role": ..., "permissions": [...]}``. An admin role
never carries stored permissions; the mapping functions below are the only
place the two shapes meet.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from agora_api.core.rbac import (
    Action,
    AdminGrant,
    ExplicitGrant,
    GlobalRole,
    Grant,
    WorkspaceRole,
)


def global_grant(role: GlobalRole, permissions: Iterable[Action] = ()) -> Grant:
    if role is GlobalRole.SUPER_ADMIN:
        return AdminGrant()
    return ExplicitGrant.of(permissions)


def workspace_grant(role: WorkspaceRole, permissions: Iterable[Action] = ()) -> Grant:
    if role is WorkspaceRole.WORKSPACE_ADMIN:
        return AdminGrant()
    return ExplicitGrant.of(permissions)


def global_role_of(grant: Grant) -> GlobalRole:
    return GlobalRole.SUPER_ADMIN if grant.is_admin else GlobalRole.USER


def workspace_role_of(grant: Grant) -> WorkspaceRole:
    return WorkspaceRole.WORKSPACE_ADMIN if grant.is_admin else WorkspaceRole.USER


def stored_actions(grant: Grant) -> frozenset[Action]:
    if isinstance(grant, ExplicitGrant):
        return grant.actions
    return frozenset()


def _dump_grant(grant: Grant, role: str) -> dict[str, Any]:
    return {"role": role, "permissions": sorted(action.value for action in stored_actions(grant))}


def _load_actions(raw: Any) -> list[Action]:
    # Unknown tags are dropped so a retired action never blocks a load.
    actions: list[Action] = []
    for value in raw or ():
        try:
            actions.append(Action(value))
        except ValueError:
            continue
    return actions


@dataclass(frozen=True)
class PermissionDocument:
    user_id: str
    global_grant: Grant
    workspaces: Mapping[str, Grant] = field(default_factory=dict)
    version: int = 0

    @property
    def global_role(self) -> GlobalRole:
        return global_role_of(self.global_grant)

    @property
    def is_super_admin(self) -> bool:
        return self.global_grant.is_admin

    def workspace(self, workspace_id: str) -> Grant | None:
        return self.workspaces.get(workspace_id)

    def with_global(self, grant: Grant) -> PermissionDocument:
        return replace(self, global_grant=grant)

    def with_workspace(self, workspace_id: str, grant: Grant) -> PermissionDocument:
        workspaces = dict(self.workspaces)
        workspaces[workspace_id] = grant
        return replace(self, workspaces=workspaces)

    def without_workspace(self, workspace_id: str) -> PermissionDocument:
        if workspace_id not in self.workspaces:
            return self
        workspaces = {key: value for key, value in self.workspaces.items() if key != workspace_id}
        return replace(self, workspaces=workspaces)

    # ------------- serialization -----------------

    def dump_global(self) -> dict[str, Any]:
        return _dump_grant(self.global_grant, global_role_of(self.global_grant).value)

    def dump_workspaces(self) -> dict[str, Any]:
        return {
            workspace_id: _dump_grant(grant, workspace_role_of(grant).value)
            for workspace_id, grant in self.workspaces.items()
        }

    @classmethod
    def load(
        cls,
        *,
        user_id: str,
        global_data: Mapping[str, Any],
        workspaces_data: Mapping[str, Any] | None,
        version: int,
    ) -> PermissionDocument:
        grant = global_grant(
            GlobalRole(global_data.get("role", GlobalRole.USER.value)),
            _load_actions(global_data.get("permissions")),
        )
        workspaces: dict[str, Grant] = {}
        for workspace_id, raw in (workspaces_data or {}).items():
            workspaces[workspace_id] = workspace_grant(
                WorkspaceRole(raw.get("role", WorkspaceRole.USER.value)),
                _load_actions(raw.get("permissions")),
            )
        return cls(user_id=user_id, global_grant=grant, workspaces=workspaces, version=version)


__all__ = [
    "PermissionDocument",
    "global_grant",
    "global_role_of",
    "stored_actions",
    "workspace_grant",
    "workspace_role_of",
]
