from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Body, Depends, Response, status
from fastapi import Path as PathParam

from agora_api.api.deps import CurrentUserIdDep, get_workspaces_service
from agora_api.common.ids import parse_id
from agora_api.core.rbac import Action
from agora_api.features.auditing.route import AuditedRoute
from agora_api.features.authorization.deps import require_actions

from .schemas import WorkspaceCreate, WorkspaceOut, WorkspaceUserAdd
from .service import WorkspacesService

router = APIRouter(prefix="/workspaces", tags=["workspaces"], route_class=AuditedRoute)

WorkspacesServiceDep = Annotated[WorkspacesService, Depends(get_workspaces_service)]
WorkspaceIdPath = Annotated[str, PathParam(description="Workspace identifier")]
UserIdPath = Annotated[str, PathParam(description="User identifier")]


@router.post(
    "",
    response_model=WorkspaceOut,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_actions(Action.CREATE_WORKSPACE))],
    summary="Create a workspace owned by the caller",
)
async def create_workspace(
    user_id: CurrentUserIdDep,
    service: WorkspacesServiceDep,
    payload: Annotated[WorkspaceCreate, Body()],
) -> WorkspaceOut:
    workspace = await service.create(owner_id=user_id, name=payload.name)
    return WorkspaceOut.from_model(workspace)


@router.get(
    "/{workspace_id}",
    response_model=WorkspaceOut,
    dependencies=[Depends(require_actions(Action.READ_WORKSPACE))],
    summary="Retrieve a workspace",
)
async def read_workspace(
    workspace_id: WorkspaceIdPath,
    service: WorkspacesServiceDep,
) -> WorkspaceOut:
    workspace = await service.get(parse_id(workspace_id, field="workspace_id"))
    return WorkspaceOut.from_model(workspace)


@router.delete(
    "/{workspace_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    dependencies=[Depends(require_actions(Action.DELETE_WORKSPACE))],
    summary="Delete a workspace",
)
async def delete_workspace(
    workspace_id: WorkspaceIdPath,
    service: WorkspacesServiceDep,
) -> Response:
    await service.delete(parse_id(workspace_id, field="workspace_id"))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{workspace_id}/users",
    response_model=WorkspaceOut,
    dependencies=[Depends(require_actions(Action.ADD_WORKSPACE_USER))],
    summary="Add a user to a workspace by e-mail",
)
async def add_workspace_user(
    workspace_id: WorkspaceIdPath,
    service: WorkspacesServiceDep,
    payload: Annotated[WorkspaceUserAdd, Body()],
) -> WorkspaceOut:
    workspace = await service.add_user(parse_id(workspace_id, field="workspace_id"), payload.email)
    return WorkspaceOut.from_model(workspace)


@router.delete(
    "/{workspace_id}/users/{user_id}",
    response_model=WorkspaceOut,
    dependencies=[Depends(require_actions(Action.REMOVE_WORKSPACE_USER))],
    summary="Remove a user from a workspace",
)
async def remove_workspace_user(
    workspace_id: WorkspaceIdPath,
    user_id: UserIdPath,
    service: WorkspacesServiceDep,
) -> WorkspaceOut:
    workspace = await service.remove_user(
        parse_id(workspace_id, field="workspace_id"),
        parse_id(user_id, field="user_id"),
    )
    return WorkspaceOut.from_model(workspace)


__all__ = ["router"]
