"""Fire-and-forget persistence of audit entries.

Writes run as background tasks in their own sessions. A failed write is
logged and dropped; it never reaches the request that produced the entry.
"""

from __future__ import annotations

import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from agora_api.common.logging import log_context
from agora_api.db import session_scope

from .service import AuditEntry, AuditingService

logger = logging.getLogger(__name__)


class AuditRecorder:
    def __init__(self, sessionmaker: async_sessionmaker[AsyncSession]) -> None:
        self._sessionmaker = sessionmaker
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def record(self, entry: AuditEntry) -> None:
        """Schedule ``entry`` for persistence and return immediately."""

        task = asyncio.create_task(self._write(entry), name="audit-write")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def drain(self) -> None:
        """Wait for every scheduled write, including ones scheduled meanwhile."""

        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _write(self, entry: AuditEntry) -> None:
        try:
            async with session_scope(self._sessionmaker) as session:
                await AuditingService(session=session).create(entry)
        except Exception:
            logger.exception(
                "audit.write.failed",
                extra=log_context(
                    user_id=entry.user_id,
                    workspace_id=entry.workspace_id,
                    actions=[action.value for action in entry.actions],
                    is_successful=entry.is_successful,
                ),
            )


__all__ = ["AuditRecorder"]
