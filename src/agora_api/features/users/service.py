"""User creation and deletion.

Creating or deleting a user only touches the ``users`` table; the matching
permission document follows asynchronously through ``UserCreated`` and
``UserDeleted``. The bootstrap admin is the exception: its document is
written in the same transaction so the first request can be authorized.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from agora_api.common.logging import log_context
from agora_api.core.rbac import Action, GlobalRole
from agora_api.db import session_scope
from agora_api.events import EventBus, UserCreated, UserDeleted
from agora_api.features.authorization.service import AuthorizationService
from agora_api.models import User

from .exceptions import UserEmailTakenError, UserNotFoundError

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


class UsersService:
    def __init__(self, *, session: AsyncSession, bus: EventBus) -> None:
        self._session = session
        self._bus = bus

    async def get(self, user_id: str) -> User:
        user = await self._session.get(User, user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    async def get_by_email(self, email: str) -> User | None:
        result = await self._session.execute(
            select(User).where(User.email == normalize_email(email))
        )
        return result.scalar_one_or_none()

    async def create(
        self,
        *,
        email: str,
        role: GlobalRole = GlobalRole.USER,
        full_name: str | None = None,
        permissions: Iterable[Action] | None = None,
    ) -> User:
        """Create a user and announce it; ``permissions=None`` means defaults."""

        if await self.get_by_email(email) is not None:
            raise UserEmailTakenError(email)
        user = User(email=normalize_email(email), full_name=full_name)
        self._session.add(user)
        await self._session.flush()
        await self._session.commit()

        self._bus.publish(
            UserCreated(
                user_id=user.id,
                role=role,
                permissions=frozenset(permissions) if permissions is not None else None,
            )
        )
        logger.info("user.created", extra=log_context(user_id=user.id, role=role.value))
        return user

    async def delete(self, user_id: str) -> None:
        user = await self.get(user_id)
        await self._session.delete(user)
        await self._session.commit()
        self._bus.publish(UserDeleted(user_id=user_id))
        logger.info("user.deleted", extra=log_context(user_id=user_id))


async def ensure_bootstrap_admin(
    sessionmaker: async_sessionmaker[AsyncSession],
    email: str | None,
) -> str | None:
    """Create the configured SuperAdmin if missing and return its id."""

    if not email:
        return None
    async with session_scope(sessionmaker) as session:
        result = await session.execute(select(User).where(User.email == normalize_email(email)))
        user = result.scalar_one_or_none()
        if user is None:
            user = User(email=normalize_email(email), full_name="Administrator")
            session.add(user)
            await session.flush()
            logger.info("user.bootstrap_admin.created", extra=log_context(user_id=user.id))
        await AuthorizationService(session=session).create_document(
            user.id, GlobalRole.SUPER_ADMIN
        )
        return user.id


__all__ = ["UsersService", "ensure_bootstrap_admin", "normalize_email"]
