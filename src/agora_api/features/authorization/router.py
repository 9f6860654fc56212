"""Permission administration endpoints."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Body, Depends
from fastapi import Path as PathParam

from agora_api.api.deps import CurrentUserIdDep
from agora_api.common.ids import parse_id
from agora_api.core.rbac import Action
from agora_api.features.auditing.route import AuditedRoute

from .deps import AuthorizationServiceDep, require_actions
from .exceptions import UserNotInWorkspaceError
from .schemas import (
    GlobalPermissionsUpdate,
    PermissionsOut,
    WorkspacePermissionsOut,
    WorkspacePermissionsUpdate,
)

router = APIRouter(tags=["permissions"], route_class=AuditedRoute)

UserIdPath = Annotated[str, PathParam(description="User identifier")]
WorkspaceIdPath = Annotated[str, PathParam(description="Workspace identifier")]


@router.get(
    "/me/permissions",
    response_model=PermissionsOut,
    summary="Return the caller's permission document",
)
async def read_my_permissions(
    user_id: CurrentUserIdDep,
    service: AuthorizationServiceDep,
) -> PermissionsOut:
    return PermissionsOut.from_document(await service.get_document(user_id))


@router.get(
    "/users/{user_id}/permissions",
    response_model=PermissionsOut,
    dependencies=[Depends(require_actions(Action.READ_USER))],
    summary="Return a user's permission document",
)
async def read_user_permissions(
    user_id: UserIdPath,
    service: AuthorizationServiceDep,
) -> PermissionsOut:
    document = await service.get_document(parse_id(user_id, field="user_id"))
    return PermissionsOut.from_document(document)


@router.put(
    "/users/{user_id}/permissions",
    response_model=PermissionsOut,
    dependencies=[Depends(require_actions(Action.UPDATE_USER_PERMISSIONS))],
    summary="Replace a user's global role and permissions",
)
async def update_user_permissions(
    user_id: UserIdPath,
    service: AuthorizationServiceDep,
    payload: Annotated[GlobalPermissionsUpdate, Body()],
) -> PermissionsOut:
    document = await service.set_global_permissions(
        parse_id(user_id, field="user_id"),
        payload.role,
        [Action(action) for action in payload.permissions],
    )
    return PermissionsOut.from_document(document)


@router.get(
    "/workspaces/{workspace_id}/users/{user_id}/permissions",
    response_model=WorkspacePermissionsOut,
    dependencies=[Depends(require_actions(Action.READ_WORKSPACE))],
    summary="Return a member's grant in one workspace",
)
async def read_workspace_user_permissions(
    workspace_id: WorkspaceIdPath,
    user_id: UserIdPath,
    service: AuthorizationServiceDep,
) -> WorkspacePermissionsOut:
    member_id = parse_id(user_id, field="user_id")
    workspace = parse_id(workspace_id, field="workspace_id")
    document = await service.get_document(member_id)
    result = WorkspacePermissionsOut.from_document(document, workspace)
    if result is None:
        raise UserNotInWorkspaceError(member_id, workspace)
    return result


@router.put(
    "/workspaces/{workspace_id}/users/{user_id}/permissions",
    response_model=WorkspacePermissionsOut,
    dependencies=[Depends(require_actions(Action.UPDATE_WORKSPACE_USER_PERMISSIONS))],
    summary="Replace a member's role and permissions in one workspace",
)
async def update_workspace_user_permissions(
    workspace_id: WorkspaceIdPath,
    user_id: UserIdPath,
    service: AuthorizationServiceDep,
    payload: Annotated[WorkspacePermissionsUpdate, Body()],
) -> WorkspacePermissionsOut:
    workspace = parse_id(workspace_id, field="workspace_id")
    document = await service.set_workspace_permissions(
        parse_id(user_id, field="user_id"),
        workspace,
        payload.role,
        [Action(action) for action in payload.permissions],
    )
    result = WorkspacePermissionsOut.from_document(document, workspace)
    assert result is not None
    return result


__all__ = ["router"]
