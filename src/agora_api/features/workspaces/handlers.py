"""Workspace-side consumer of user lifecycle events."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from agora_api.db import session_scope
from agora_api.events import EventBus, UserDeleted

from .service import WorkspacesService


class WorkspaceEventHandlers:
    """Cascade user deletion into workspace membership.

    Events raised by the cascade go back out on the bus the handlers were
    registered with.
    """

    def __init__(self, sessionmaker: async_sessionmaker[AsyncSession]) -> None:
        self._sessionmaker = sessionmaker
        self._bus: EventBus | None = None

    def register(self, bus: EventBus) -> None:
        self._bus = bus
        bus.subscribe(UserDeleted, self.on_user_deleted)

    async def on_user_deleted(self, event: UserDeleted) -> None:
        if self._bus is None:
            raise RuntimeError("WorkspaceEventHandlers.register() was never called")
        async with session_scope(self._sessionmaker) as session:
            await WorkspacesService(session=session, bus=self._bus).remove_deleted_user(
                event.user_id
            )


__all__ = ["WorkspaceEventHandlers"]
