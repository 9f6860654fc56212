from __future__ import annotations

from agora_api.core.errors import ConsistencyError, NotFoundError, PermissionDeniedError


class PermissionsNotFoundError(ConsistencyError):
    """Every user must have a permission document; a missing one is a fault."""

    def __init__(self, user_id: str) -> None:
        super().__init__(f"Permissions for user {user_id} not found")
        self.user_id = user_id


class UserNotInWorkspaceError(NotFoundError):
    def __init__(self, user_id: str, workspace_id: str) -> None:
        super().__init__(f"User {user_id} is not a member of workspace {workspace_id}")
        self.user_id = user_id
        self.workspace_id = workspace_id


class WorkspaceNotFoundError(NotFoundError):
    def __init__(self, workspace_id: str) -> None:
        super().__init__(f"Workspace {workspace_id} not found")
        self.workspace_id = workspace_id


class AccessDeniedError(PermissionDeniedError):
    def __init__(self) -> None:
        super().__init__("You do not have permission to perform this action")


class ConcurrentUpdateError(ConsistencyError):
    """Optimistic writes kept losing to concurrent updates."""

    def __init__(self, user_id: str, attempts: int) -> None:
        super().__init__(
            f"Permissions for user {user_id} changed concurrently {attempts} times"
        )
        self.user_id = user_id
        self.attempts = attempts


__all__ = [
    "AccessDeniedError",
    "ConcurrentUpdateError",
    "PermissionsNotFoundError",
    "UserNotInWorkspaceError",
    "WorkspaceNotFoundError",
]
