"""Wire schemas for permission documents."""

from __future__ import annotations

from pydantic import Field

from agora_api.common.ids import IdStr
from agora_api.common.schema import BaseSchema
from agora_api.core.rbac import Action, GlobalRole, Grant, WorkspaceRole

from .document import PermissionDocument, global_role_of, stored_actions, workspace_role_of


def _sorted_actions(grant: Grant) -> list[Action]:
    return sorted(stored_actions(grant), key=lambda action: action.value)


class GrantOut(BaseSchema):
    roles: list[str]
    permissions: list[Action]


class PermissionsOut(BaseSchema):
    """A user's global grant plus one grant per workspace membership."""

    user_id: IdStr
    roles: list[GlobalRole]
    permissions: list[Action]
    workspaces: dict[str, GrantOut]

    @classmethod
    def from_document(cls, document: PermissionDocument) -> PermissionsOut:
        return cls(
            user_id=document.user_id,
            roles=[global_role_of(document.global_grant)],
            permissions=_sorted_actions(document.global_grant),
            workspaces={
                workspace_id: GrantOut(
                    roles=[workspace_role_of(grant).value],
                    permissions=_sorted_actions(grant),
                )
                for workspace_id, grant in document.workspaces.items()
            },
        )


class WorkspacePermissionsOut(BaseSchema):
    user_id: IdStr
    workspace_id: IdStr
    roles: list[WorkspaceRole]
    permissions: list[Action]

    @classmethod
    def from_document(
        cls, document: PermissionDocument, workspace_id: str
    ) -> WorkspacePermissionsOut | None:
        grant = document.workspace(workspace_id)
        if grant is None:
            return None
        return cls(
            user_id=document.user_id,
            workspace_id=workspace_id,
            roles=[workspace_role_of(grant)],
            permissions=_sorted_actions(grant),
        )


class GlobalPermissionsUpdate(BaseSchema):
    """Replace a user's global grant. Exactly one role is accepted."""

    roles: list[GlobalRole] = Field(min_length=1, max_length=1)
    permissions: list[Action] = Field(default_factory=list)

    @property
    def role(self) -> GlobalRole:
        return GlobalRole(self.roles[0])


class WorkspacePermissionsUpdate(BaseSchema):
    """Replace a member's grant in one workspace. Exactly one role is accepted."""

    roles: list[WorkspaceRole] = Field(min_length=1, max_length=1)
    permissions: list[Action] = Field(default_factory=list)

    @property
    def role(self) -> WorkspaceRole:
        return WorkspaceRole(self.roles[0])


__all__ = [
    "GlobalPermissionsUpdate",
    "GrantOut",
    "PermissionsOut",
    "WorkspacePermissionsOut",
    "WorkspacePermissionsUpdate",
]
