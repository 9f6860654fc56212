"""Roles, actions and grants shared across the stack."""

from .policy import (
    DEFAULT_IN_WORKSPACE_ACTIONS,
    DEFAULT_USER_ACTIONS,
    IMPLICATIONS,
    effective_actions,
    is_satisfied,
)
from .types import (
    Action,
    AdminGrant,
    ExplicitGrant,
    GlobalRole,
    Grant,
    ScopeType,
    WorkspaceRole,
)

__all__ = [
    "Action",
    "AdminGrant",
    "DEFAULT_IN_WORKSPACE_ACTIONS",
    "DEFAULT_USER_ACTIONS",
    "ExplicitGrant",
    "GlobalRole",
    "Grant",
    "IMPLICATIONS",
    "ScopeType",
    "WorkspaceRole",
    "effective_actions",
    "is_satisfied",
]
