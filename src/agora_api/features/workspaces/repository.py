"""Workspace persistence helpers."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from agora_api.models import User, Workspace, WorkspaceMember


class WorkspacesRepository:
    """Query helpers for workspaces and membership rows."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, workspace_id: str) -> Workspace | None:
        stmt = (
            select(Workspace)
            .where(Workspace.id == workspace_id)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_for_user(self, user_id: str) -> list[Workspace]:
        stmt = (
            select(Workspace)
            .join(WorkspaceMember, WorkspaceMember.workspace_id == Workspace.id)
            .where(WorkspaceMember.user_id == user_id)
            .order_by(Workspace.created_at, Workspace.id)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().unique())

    async def create(self, *, name: str, owner_id: str) -> Workspace:
        workspace = Workspace(name=name)
        workspace.members = [WorkspaceMember(user_id=owner_id, position=0)]
        self._session.add(workspace)
        await self._session.flush()
        return workspace

    async def delete(self, workspace: Workspace) -> None:
        await self._session.delete(workspace)
        await self._session.flush()

    async def add_member(self, workspace: Workspace, user_id: str) -> None:
        next_position = max((member.position for member in workspace.members), default=-1) + 1
        workspace.members.append(WorkspaceMember(user_id=user_id, position=next_position))
        await self._session.flush()

    async def remove_member(self, workspace: Workspace, user_id: str) -> None:
        workspace.members = [member for member in workspace.members if member.user_id != user_id]
        await self._session.flush()

    async def member_emails(self, workspace: Workspace) -> list[str]:
        stmt = (
            select(User.email)
            .join(WorkspaceMember, WorkspaceMember.user_id == User.id)
            .where(WorkspaceMember.workspace_id == workspace.id)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars())


__all__ = ["WorkspacesRepository"]
