from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from agora_api.api.deps import get_auditing_service
from agora_api.common.ids import parse_id
from agora_api.core.rbac import Action
from agora_api.features.authorization.deps import require_actions

from .route import AuditedRoute
from .schemas import AuditLogOut
from .service import AuditingService

router = APIRouter(prefix="/audit-logs", tags=["audit"], route_class=AuditedRoute)


@router.get(
    "",
    response_model=list[AuditLogOut],
    dependencies=[Depends(require_actions(Action.READ_AUDIT_LOG))],
    summary="List audit log entries, newest first",
)
async def list_audit_logs(
    service: Annotated[AuditingService, Depends(get_auditing_service)],
    user_id: Annotated[str | None, Query(description="Only entries by this actor")] = None,
    workspace_id: Annotated[
        str | None, Query(description="Only entries scoped to this workspace")
    ] = None,
    limit: Annotated[int, Query(ge=1, le=1000)] = 100,
) -> list[AuditLogOut]:
    records = await service.list(
        user_id=parse_id(user_id, field="user_id") if user_id else None,
        workspace_id=parse_id(workspace_id, field="workspace_id") if workspace_id else None,
        limit=limit,
    )
    return [AuditLogOut.model_validate(record) for record in records]


__all__ = ["router"]
