from __future__ import annotations

from pydantic import EmailStr, Field

from agora_api.common.ids import IdStr
from agora_api.common.schema import BaseSchema
from agora_api.core.rbac import Action, GlobalRole


class UserOut(BaseSchema):
    id: IdStr
    email: str
    full_name: str | None = None


class UserCreate(BaseSchema):
    """Register a user.

    ``permissions`` left out gives a regular user the default global actions;
    it is ignored for SuperAdmins.
    """

    email: EmailStr
    full_name: str | None = Field(default=None, max_length=255)
    role: GlobalRole = GlobalRole.USER
    permissions: list[Action] | None = None


__all__ = ["UserCreate", "UserOut"]
