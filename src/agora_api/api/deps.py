"""Request-scoped dependencies shared by API routers.

Routers import session, settings, identity and per-request service
constructors from here; feature services are imported lazily so that
importing a router never drags in unrelated features.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request, Security, WebSocket
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from agora_api.common.ids import InvalidIdError, parse_id
from agora_api.core.auth import decode_access_token
from agora_api.core.errors import AuthenticationError
from agora_api.db import get_db_session, session_scope
from agora_api.events import EventBus
from agora_api.models import User
from agora_api.settings import Settings, get_settings

SessionDep = Annotated[AsyncSession, Depends(get_db_session)]
SettingsDep = Annotated[Settings, Depends(get_settings)]

_bearer_scheme = HTTPBearer(auto_error=False)


def get_event_bus(request: Request) -> EventBus:
    return request.app.state.event_bus


EventBusDep = Annotated[EventBus, Depends(get_event_bus)]


async def _resolve_user_id(token: str, *, session: AsyncSession, settings: Settings) -> str:
    subject = decode_access_token(token, settings)
    try:
        user_id = parse_id(subject, field="sub")
    except InvalidIdError as exc:
        raise AuthenticationError("Invalid token subject") from exc
    result = await session.execute(select(User.id).where(User.id == user_id))
    if result.scalar_one_or_none() is None:
        raise AuthenticationError("Unknown user")
    return user_id


async def get_current_user_id(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Security(_bearer_scheme)],
    session: SessionDep,
    settings: SettingsDep,
) -> str:
    """Resolve the authenticated user id for the request."""

    cached = getattr(request.state, "user_id", None)
    if cached is not None:
        return cached
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthenticationError("Authentication required")
    user_id = await _resolve_user_id(credentials.credentials, session=session, settings=settings)
    request.state.user_id = user_id
    return user_id


CurrentUserIdDep = Annotated[str, Depends(get_current_user_id)]


def _websocket_token(websocket: WebSocket) -> str | None:
    header = websocket.headers.get("authorization", "")
    scheme, _, value = header.partition(" ")
    if scheme.lower() == "bearer" and value.strip():
        return value.strip()
    token = websocket.query_params.get("access_token")
    return token.strip() if token and token.strip() else None


async def authenticate_websocket(websocket: WebSocket, settings: Settings) -> str:
    """Authenticate a WebSocket handshake from its header or ``access_token`` query.

    Called from the endpoint rather than as a dependency so failures can be
    answered with a close frame instead of an HTTP response.
    """

    token = _websocket_token(websocket)
    if token is None:
        raise AuthenticationError("Authentication required")
    async with session_scope(websocket.app.state.db.sessionmaker) as session:
        user_id = await _resolve_user_id(token, session=session, settings=settings)
    websocket.state.user_id = user_id
    return user_id


# ---- Service factories -------------------------------------------------------


def get_authorization_service(session: SessionDep):
    from agora_api.features.authorization.service import AuthorizationService

    return AuthorizationService(session=session)


def get_users_service(session: SessionDep, bus: EventBusDep):
    from agora_api.features.users.service import UsersService

    return UsersService(session=session, bus=bus)


def get_workspaces_service(session: SessionDep, bus: EventBusDep):
    from agora_api.features.workspaces.service import WorkspacesService

    return WorkspacesService(session=session, bus=bus)


def get_auditing_service(session: SessionDep):
    from agora_api.features.auditing.service import AuditingService

    return AuditingService(session=session)


__all__ = [
    "CurrentUserIdDep",
    "EventBusDep",
    "SessionDep",
    "SettingsDep",
    "authenticate_websocket",
    "get_auditing_service",
    "get_authorization_service",
    "get_current_user_id",
    "get_event_bus",
    "get_users_service",
    "get_workspaces_service",
]
