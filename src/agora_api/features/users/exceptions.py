from __future__ import annotations

from agora_api.core.errors import ConflictError, NotFoundError


class UserNotFoundError(NotFoundError):
    def __init__(self, user_id: str) -> None:
        super().__init__(f"User {user_id} not found")
        self.user_id = user_id


class UserEmailTakenError(ConflictError):
    def __init__(self, email: str) -> None:
        super().__init__(f"A user with e-mail {email} already exists")
        self.email = email


__all__ = ["UserEmailTakenError", "UserNotFoundError"]
