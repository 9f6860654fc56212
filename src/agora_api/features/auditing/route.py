"""APIRoute subclass that records an audit entry for every guarded request."""

from __future__ import annotations

from collections.abc import Callable, Coroutine
from typing import Any

from fastapi import Request, Response
from fastapi.routing import APIRoute
from starlette.requests import HTTPConnection

from agora_api.common.exceptions import status_for_exception

from .recorder import AuditRecorder
from .service import AuditEntry


def _client_ip(connection: HTTPConnection) -> str | None:
    return connection.client.host if connection.client else None


def record_outcome(connection: HTTPConnection, *, is_successful: bool) -> None:
    """Queue an audit entry from ``connection.state``.

    Only connections that reached an authorization check carry declared
    actions and an actor; anything else is left unaudited.
    """

    state = connection.state
    user_id: str | None = getattr(state, "user_id", None)
    actions = getattr(state, "required_actions", None)
    if user_id is None or actions is None:
        return
    recorder: AuditRecorder | None = getattr(connection.app.state, "audit_recorder", None)
    if recorder is None:
        return
    recorder.record(
        AuditEntry(
            user_id=user_id,
            actions=frozenset(actions),
            is_successful=is_successful,
            workspace_id=getattr(state, "workspace_id", None),
            user_agent=connection.headers.get("user-agent", ""),
            ip=_client_ip(connection),
        )
    )


def record_request_outcome(request: Request, status_code: int) -> None:
    record_outcome(request, is_successful=200 <= status_code <= 299)


class AuditedRoute(APIRoute):
    def get_route_handler(self) -> Callable[[Request], Coroutine[Any, Any, Response]]:
        handler = super().get_route_handler()

        async def audited_handler(request: Request) -> Response:
            try:
                response = await handler(request)
            except Exception as exc:
                record_request_outcome(request, status_for_exception(exc))
                raise
            record_request_outcome(request, response.status_code)
            return response

        return audited_handler


__all__ = ["AuditedRoute", "record_outcome", "record_request_outcome"]
