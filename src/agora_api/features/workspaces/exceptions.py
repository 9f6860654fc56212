from __future__ import annotations

from agora_api.core.errors import ConflictError
from agora_api.features.authorization.exceptions import (
    UserNotInWorkspaceError,
    WorkspaceNotFoundError,
)


class ExistingWorkspaceUserError(ConflictError):
    def __init__(self, workspace_id: str, email: str) -> None:
        super().__init__(f"User {email} is already a member of workspace {workspace_id}")
        self.workspace_id = workspace_id
        self.email = email


class MinOneUserInWorkspaceError(ConflictError):
    def __init__(self, workspace_id: str) -> None:
        super().__init__(f"Workspace {workspace_id} must keep at least one member")
        self.workspace_id = workspace_id


class MinOneAdminInWorkspaceError(ConflictError):
    def __init__(self, workspace_id: str) -> None:
        super().__init__(f"Workspace {workspace_id} must keep at least one admin")
        self.workspace_id = workspace_id


__all__ = [
    "ExistingWorkspaceUserError",
    "MinOneAdminInWorkspaceError",
    "MinOneUserInWorkspaceError",
    "UserNotInWorkspaceError",
    "WorkspaceNotFoundError",
]
