"""Workspace lifecycle and membership changes.

Every change is committed before its lifecycle event is published, so the
permission handlers, which run in their own sessions, always observe it.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from agora_api.common.logging import log_context
from agora_api.events import (
    EventBus,
    WorkspaceCreated,
    WorkspaceDeleted,
    WorkspaceUserAdded,
    WorkspaceUserRemoved,
)
from agora_api.features.authorization.service import AuthorizationService
from agora_api.models import User, Workspace

from .exceptions import (
    ExistingWorkspaceUserError,
    MinOneAdminInWorkspaceError,
    MinOneUserInWorkspaceError,
    UserNotInWorkspaceError,
    WorkspaceNotFoundError,
)
from .repository import WorkspacesRepository

logger = logging.getLogger(__name__)


class WorkspacesService:
    def __init__(self, *, session: AsyncSession, bus: EventBus) -> None:
        self._session = session
        self._bus = bus
        self._repo = WorkspacesRepository(session)

    async def get(self, workspace_id: str) -> Workspace:
        workspace = await self._repo.get(workspace_id)
        if workspace is None:
            raise WorkspaceNotFoundError(workspace_id)
        return workspace

    async def create(self, *, owner_id: str, name: str) -> Workspace:
        workspace = await self._repo.create(name=name, owner_id=owner_id)
        await self._session.commit()
        self._bus.publish(WorkspaceCreated(workspace_id=workspace.id, owner_id=owner_id))
        logger.info(
            "workspace.created",
            extra=log_context(workspace_id=workspace.id, user_id=owner_id),
        )
        return workspace

    async def delete(self, workspace_id: str) -> None:
        workspace = await self.get(workspace_id)
        await self._repo.delete(workspace)
        await self._session.commit()
        self._bus.publish(WorkspaceDeleted(workspace_id=workspace_id))
        logger.info("workspace.deleted", extra=log_context(workspace_id=workspace_id))

    async def add_user(self, workspace_id: str, email: str) -> Workspace:
        """Add the user registered under ``email``.

        An e-mail with no matching user leaves the workspace unchanged.
        """

        workspace = await self.get(workspace_id)
        normalized = email.strip().lower()
        if normalized in {value.lower() for value in await self._repo.member_emails(workspace)}:
            raise ExistingWorkspaceUserError(workspace_id, email)

        user_id = await self._session.scalar(
            select(User.id).where(User.email == normalized)
        )
        if user_id is None:
            logger.info(
                "workspace.user.add_skipped",
                extra=log_context(workspace_id=workspace_id, reason="unknown_email"),
            )
            return workspace

        await self._repo.add_member(workspace, user_id)
        await self._session.commit()
        self._bus.publish(WorkspaceUserAdded(workspace_id=workspace_id, user_id=user_id))
        logger.info(
            "workspace.user.added",
            extra=log_context(workspace_id=workspace_id, user_id=user_id),
        )
        return workspace

    async def remove_user(self, workspace_id: str, user_id: str) -> Workspace:
        """Remove a member, keeping at least one member and one admin.

        Both checks run before anything is written, so a rejected removal
        leaves the member list untouched.
        """

        workspace = await self.get(workspace_id)
        if user_id not in workspace.user_ids:
            raise UserNotInWorkspaceError(user_id, workspace_id)

        remaining = [member_id for member_id in workspace.user_ids if member_id != user_id]
        if not remaining:
            raise MinOneUserInWorkspaceError(workspace_id)

        admin_ids = await AuthorizationService(session=self._session).find_workspace_admin_user_ids(
            workspace_id
        )
        if not [admin_id for admin_id in admin_ids if admin_id != user_id]:
            raise MinOneAdminInWorkspaceError(workspace_id)

        await self._repo.remove_member(workspace, user_id)
        await self._session.commit()
        self._bus.publish(WorkspaceUserRemoved(workspace_id=workspace_id, user_id=user_id))
        logger.info(
            "workspace.user.removed",
            extra=log_context(workspace_id=workspace_id, user_id=user_id),
        )
        return workspace

    async def remove_deleted_user(self, user_id: str) -> None:
        """Drop a deleted user from every workspace they belonged to.

        A workspace left without members is deleted outright. The admin rule
        is not enforced here: the user is already gone.
        """

        for workspace in await self._repo.list_for_user(user_id):
            if workspace.user_ids == [user_id]:
                await self.delete(workspace.id)
                continue
            await self._repo.remove_member(workspace, user_id)
            await self._session.commit()
            self._bus.publish(WorkspaceUserRemoved(workspace_id=workspace.id, user_id=user_id))
            logger.info(
                "workspace.user.removed",
                extra=log_context(workspace_id=workspace.id, user_id=user_id, reason="user_deleted"),
            )


__all__ = ["WorkspacesService"]
