from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Body, Depends, Response, status
from fastapi import Path as PathParam

from agora_api.api.deps import get_users_service
from agora_api.common.ids import parse_id
from agora_api.core.rbac import Action, GlobalRole
from agora_api.features.auditing.route import AuditedRoute
from agora_api.features.authorization.deps import require_actions

from .schemas import UserCreate, UserOut
from .service import UsersService

router = APIRouter(prefix="/users", tags=["users"], route_class=AuditedRoute)

UsersServiceDep = Annotated[UsersService, Depends(get_users_service)]


@router.post(
    "",
    response_model=UserOut,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_actions(Action.CREATE_USER))],
    summary="Create a user",
)
async def create_user(
    service: UsersServiceDep,
    payload: Annotated[UserCreate, Body()],
) -> UserOut:
    user = await service.create(
        email=payload.email,
        role=GlobalRole(payload.role),
        full_name=payload.full_name,
        permissions=(
            [Action(action) for action in payload.permissions]
            if payload.permissions is not None
            else None
        ),
    )
    return UserOut.model_validate(user)


@router.delete(
    "/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    dependencies=[Depends(require_actions(Action.DELETE_USER))],
    summary="Delete a user",
)
async def delete_user(
    user_id: Annotated[str, PathParam(description="User identifier")],
    service: UsersServiceDep,
) -> Response:
    await service.delete(parse_id(user_id, field="user_id"))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


__all__ = ["router"]
