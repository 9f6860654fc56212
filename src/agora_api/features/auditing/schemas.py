from __future__ import annotations

from datetime import datetime

from agora_api.common.ids import IdStr
from agora_api.common.schema import BaseSchema


class AuditLogOut(BaseSchema):
    id: IdStr
    created_at: datetime
    user_id: IdStr
    workspace_id: IdStr | None = None
    actions: list[str]
    is_successful: bool
    user_agent: str
    ip: str | None = None


__all__ = ["AuditLogOut"]
