"""HTTP and WebSocket entry points for ``{proxy_prefix}/{deployment_id}/...``."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response, WebSocket
from starlette.responses import JSONResponse

from agora_api.api.deps import CurrentUserIdDep, SessionDep, authenticate_websocket
from agora_api.common.exceptions import status_for_exception
from agora_api.common.logging import log_context
from agora_api.common.problem_details import build_problem_details
from agora_api.core.errors import DomainError
from agora_api.db import session_scope
from agora_api.features.auditing.route import AuditedRoute, record_outcome
from agora_api.models import Deployment

from .exceptions import BackendUnavailableError
from .guard import ProxyGuard
from .service import ProxyService
from .targets import strip_proxy_prefix

logger = logging.getLogger(__name__)

PROXY_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]
_DENIAL_EXTENSION = "websocket.http.response"

router = APIRouter(tags=["proxy"], route_class=AuditedRoute)


def get_proxy_service(request: Request) -> ProxyService:
    return request.app.state.proxy_service


ProxyServiceDep = Annotated[ProxyService, Depends(get_proxy_service)]


def _proxy_prefix(connection: Request | WebSocket) -> str:
    return connection.app.state.settings.proxy_prefix


def _raw_path(connection: Request | WebSocket) -> str:
    raw = connection.scope.get("raw_path")
    if not raw:
        return connection.url.path
    return raw.decode("latin-1").split("?", 1)[0]


def _upstream_path(connection: Request | WebSocket) -> str:
    """Backend path: the raw path minus the prefix and the id segment as sent."""

    path = _raw_path(connection)
    prefix = _proxy_prefix(connection)
    segment = path[len(prefix) + 1 :].split("/", 1)[0]
    return strip_proxy_prefix(path, segment, prefix)


async def require_proxy_access(
    request: Request,
    deployment_id: str,
    user_id: CurrentUserIdDep,
    session: SessionDep,
) -> Deployment:
    return await ProxyGuard(session=session).admit(user_id, deployment_id, connection=request)


@router.api_route(
    "/{deployment_id}", methods=PROXY_METHODS, include_in_schema=False
)
@router.api_route(
    "/{deployment_id}/{path:path}", methods=PROXY_METHODS, include_in_schema=False
)
async def proxy_http(
    request: Request,
    deployment: Annotated[Deployment, Depends(require_proxy_access)],
    proxy: ProxyServiceDep,
) -> Response:
    return await proxy.forward_http(
        request,
        deployment_id=deployment.id,
        target=proxy.target_for(deployment.workspace_id, deployment.id),
        path=_upstream_path(request),
    )


async def _deny(websocket: WebSocket, exc: Exception) -> None:
    """Refuse the handshake with the HTTP status the error maps to.

    Servers without the denial-response extension get a close frame whose
    code is 4000 plus that status instead.
    """

    status_code = status_for_exception(exc)
    if isinstance(exc, BackendUnavailableError):
        detail = "Proxy Error"
    elif status_code >= 500:
        detail = "Internal server error"
    else:
        detail = str(exc)
    if _DENIAL_EXTENSION in websocket.scope.get("extensions", {}):
        problem = build_problem_details(
            status_code=status_code,
            instance=websocket.url.path,
            request_id=getattr(websocket.state, "correlation_id", None),
            detail=detail,
        )
        await websocket.send_denial_response(
            JSONResponse(
                status_code=status_code,
                content=problem.model_dump(by_alias=True, exclude_none=True),
                media_type="application/problem+json",
            )
        )
        return
    await websocket.close(code=4000 + status_code)


@router.websocket("/{deployment_id}")
@router.websocket("/{deployment_id}/{path:path}")
async def proxy_websocket(websocket: WebSocket, deployment_id: str) -> None:
    settings = websocket.app.state.settings
    proxy: ProxyService = websocket.app.state.proxy_service
    try:
        user_id = await authenticate_websocket(websocket, settings)
        async with session_scope(websocket.app.state.db.sessionmaker) as session:
            deployment = await ProxyGuard(session=session).admit(
                user_id, deployment_id, connection=websocket
            )
        backend = await proxy.open_backend_socket(
            websocket,
            deployment_id=deployment.id,
            target=proxy.target_for(deployment.workspace_id, deployment.id),
            path=_upstream_path(websocket),
        )
    except (DomainError, BackendUnavailableError, ValueError) as exc:
        logger.info(
            "proxy.ws.denied",
            extra=log_context(deployment_id=deployment_id, error=type(exc).__name__),
        )
        record_outcome(websocket, is_successful=False)
        await _deny(websocket, exc)
        return

    record_outcome(websocket, is_successful=True)
    await proxy.bridge_websocket(websocket, backend, deployment_id=deployment.id)


__all__ = ["get_proxy_service", "proxy_http", "proxy_websocket", "router"]
