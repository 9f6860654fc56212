"""Schemas for workspace requests and responses."""

from __future__ import annotations

from pydantic import EmailStr, Field

from agora_api.common.ids import IdStr
from agora_api.common.schema import BaseSchema
from agora_api.models import Workspace


class WorkspaceOut(BaseSchema):
    id: IdStr
    name: str
    user_ids: list[IdStr]

    @classmethod
    def from_model(cls, workspace: Workspace) -> WorkspaceOut:
        return cls(id=workspace.id, name=workspace.name, user_ids=workspace.user_ids)


class WorkspaceCreate(BaseSchema):
    name: str = Field(min_length=1, max_length=255)


class WorkspaceUserAdd(BaseSchema):
    """Invite an existing user by e-mail address."""

    email: EmailStr


__all__ = ["WorkspaceCreate", "WorkspaceOut", "WorkspaceUserAdd"]
