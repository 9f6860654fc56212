"""Append and query audit log entries."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from agora_api.core.rbac import Action
from agora_api.db import utc_now
from agora_api.models import AuditLog

DEFAULT_LIST_LIMIT = 100


@dataclass(frozen=True, slots=True)
class AuditEntry:
    """Outcome of one guarded request, captured before it is persisted."""

    user_id: str
    actions: frozenset[Action]
    is_successful: bool
    workspace_id: str | None = None
    user_agent: str = ""
    ip: str | None = None
    created_at: datetime = field(default_factory=utc_now)


class AuditingService:
    def __init__(self, *, session: AsyncSession) -> None:
        self._session = session

    async def create(self, entry: AuditEntry) -> AuditLog:
        record = AuditLog(
            created_at=entry.created_at,
            user_id=entry.user_id,
            workspace_id=entry.workspace_id,
            actions=sorted(action.value for action in entry.actions),
            is_successful=entry.is_successful,
            user_agent=entry.user_agent,
            ip=entry.ip,
        )
        self._session.add(record)
        await self._session.flush()
        return record

    async def list(
        self,
        *,
        user_id: str | None = None,
        workspace_id: str | None = None,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> Iterable[AuditLog]:
        """Return entries newest first, optionally narrowed to a user or workspace."""

        stmt = select(AuditLog).order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
        if user_id is not None:
            stmt = stmt.where(AuditLog.user_id == user_id)
        if workspace_id is not None:
            stmt = stmt.where(AuditLog.workspace_id == workspace_id)
        result = await self._session.execute(stmt.limit(limit))
        return list(result.scalars())


__all__ = ["AuditEntry", "AuditingService"]
