"""Deployment lookups used by the proxy."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from agora_api.models import Deployment


class DeploymentsRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, deployment_id: str) -> Deployment | None:
        result = await self._session.execute(
            select(Deployment).where(Deployment.id == deployment_id)
        )
        return result.scalar_one_or_none()


__all__ = ["DeploymentsRepository"]
