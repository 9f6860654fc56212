"""Persistence helpers for permission documents."""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import delete, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from agora_api.db import utc_now
from agora_api.models import PermissionRecord

from .document import PermissionDocument


def _to_document(record: PermissionRecord) -> PermissionDocument:
    return PermissionDocument.load(
        user_id=record.user_id,
        global_data=record.global_grant,
        workspaces_data=record.workspaces,
        version=record.version,
    )


class PermissionsRepository:
    """Single-document reads and writes against the ``permissions`` table.

    Writes never rely on the session identity map: ``replace`` is an
    ``UPDATE ... WHERE version = :expected`` so a caller that lost a race
    learns about it from the return value and can re-read.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def find_one(self, user_id: str) -> PermissionDocument | None:
        stmt = (
            select(PermissionRecord)
            .where(PermissionRecord.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        record = result.scalar_one_or_none()
        return _to_document(record) if record is not None else None

    async def find_many(self, user_ids: Iterable[str]) -> list[PermissionDocument]:
        ids = list(user_ids)
        if not ids:
            return []
        stmt = (
            select(PermissionRecord)
            .where(PermissionRecord.user_id.in_(ids))
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        return [_to_document(record) for record in result.scalars()]

    async def find_user_ids_in_workspace(self, workspace_id: str) -> list[str]:
        """Return every user whose document holds an entry for ``workspace_id``."""

        # JSON key lookups differ per backend; the map is small, filter here.
        stmt = select(PermissionRecord.user_id, PermissionRecord.workspaces).order_by(
            PermissionRecord.user_id
        )
        result = await self._session.execute(stmt)
        return [user_id for user_id, workspaces in result.all() if workspace_id in (workspaces or {})]

    async def create(self, document: PermissionDocument) -> PermissionDocument:
        now = utc_now()
        await self._session.execute(
            insert(PermissionRecord).values(
                user_id=document.user_id,
                global_grant=document.dump_global(),
                workspaces=document.dump_workspaces(),
                version=1,
                created_at=now,
                updated_at=now,
            )
        )
        return PermissionDocument(
            user_id=document.user_id,
            global_grant=document.global_grant,
            workspaces=dict(document.workspaces),
            version=1,
        )

    async def replace(self, document: PermissionDocument) -> bool:
        """Write ``document`` if nobody else has since ``document.version``."""

        stmt = (
            update(PermissionRecord)
            .where(
                PermissionRecord.user_id == document.user_id,
                PermissionRecord.version == document.version,
            )
            .values(
                global_grant=document.dump_global(),
                workspaces=document.dump_workspaces(),
                version=document.version + 1,
                updated_at=utc_now(),
            )
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return result.rowcount == 1

    async def delete(self, user_id: str) -> bool:
        stmt = (
            delete(PermissionRecord)
            .where(PermissionRecord.user_id == user_id)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return result.rowcount > 0


__all__ = ["PermissionsRepository"]
