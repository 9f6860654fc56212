"""Event consumers that keep permission documents in step with lifecycle changes.

Each handler opens its own transactional session, so one failed delivery
rolls back on its own and is retried by the bus without touching others.
Handlers are safe to run more than once for the same event.
"""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from agora_api.common.logging import log_context
from agora_api.core.rbac import DEFAULT_IN_WORKSPACE_ACTIONS, WorkspaceRole
from agora_api.db import session_scope
from agora_api.events import (
    EventBus,
    UserCreated,
    UserDeleted,
    WorkspaceCreated,
    WorkspaceDeleted,
    WorkspaceUserAdded,
    WorkspaceUserRemoved,
)
from agora_api.features.workspaces.repository import WorkspacesRepository

from .service import AuthorizationService

logger = logging.getLogger(__name__)


async def _workspace_gone(session: AsyncSession, workspace_id: str, user_id: str) -> bool:
    """WorkspaceDeleted is keyed by workspace, so it can overtake grant events."""

    if await WorkspacesRepository(session).get(workspace_id) is not None:
        return False
    logger.info(
        "authorization.workspace.entry_skipped",
        extra=log_context(
            user_id=user_id,
            workspace_id=workspace_id,
            reason="workspace_deleted",
        ),
    )
    return True


class PermissionEventHandlers:
    def __init__(self, sessionmaker: async_sessionmaker[AsyncSession]) -> None:
        self._sessionmaker = sessionmaker

    def register(self, bus: EventBus) -> None:
        bus.subscribe(UserCreated, self.on_user_created)
        bus.subscribe(UserDeleted, self.on_user_deleted)
        bus.subscribe(WorkspaceCreated, self.on_workspace_created)
        bus.subscribe(WorkspaceUserAdded, self.on_workspace_user_added)
        bus.subscribe(WorkspaceUserRemoved, self.on_workspace_user_removed)
        bus.subscribe(WorkspaceDeleted, self.on_workspace_deleted)

    async def on_user_created(self, event: UserCreated) -> None:
        async with session_scope(self._sessionmaker) as session:
            await AuthorizationService(session=session).create_document(
                event.user_id, event.role, event.permissions
            )

    async def on_user_deleted(self, event: UserDeleted) -> None:
        async with session_scope(self._sessionmaker) as session:
            await AuthorizationService(session=session).delete_document(event.user_id)

    async def on_workspace_created(self, event: WorkspaceCreated) -> None:
        async with session_scope(self._sessionmaker) as session:
            if await _workspace_gone(session, event.workspace_id, event.owner_id):
                return
            await AuthorizationService(session=session).add_workspace_entry(
                event.owner_id, event.workspace_id, WorkspaceRole.WORKSPACE_ADMIN
            )

    async def on_workspace_user_added(self, event: WorkspaceUserAdded) -> None:
        async with session_scope(self._sessionmaker) as session:
            if await _workspace_gone(session, event.workspace_id, event.user_id):
                return
            service = AuthorizationService(session=session)
            document = await service.get_document(event.user_id)
            if document.is_super_admin:
                logger.info(
                    "authorization.workspace.entry_skipped",
                    extra=log_context(
                        user_id=event.user_id,
                        workspace_id=event.workspace_id,
                        reason="super_admin",
                    ),
                )
                return
            await service.add_workspace_entry(
                event.user_id,
                event.workspace_id,
                WorkspaceRole.USER,
                DEFAULT_IN_WORKSPACE_ACTIONS,
            )

    async def on_workspace_user_removed(self, event: WorkspaceUserRemoved) -> None:
        async with session_scope(self._sessionmaker) as session:
            await AuthorizationService(session=session).remove_workspace_entry(
                event.user_id, event.workspace_id
            )

    async def on_workspace_deleted(self, event: WorkspaceDeleted) -> None:
        async with session_scope(self._sessionmaker) as session:
            await AuthorizationService(session=session).remove_all_workspace_entries(
                event.workspace_id
            )


__all__ = ["PermissionEventHandlers"]
