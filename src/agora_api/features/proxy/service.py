"""Byte-level forwarding of HTTP exchanges and WebSocket sessions.

Each proxied request or socket is handled in isolation: a backend failure
turns into a 502 for that caller only and is logged with its deployment id.
The backend's error text never reaches the client.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable, Iterable
from urllib.parse import unquote_plus

import httpx
from fastapi import Request, WebSocket
from starlette.background import BackgroundTask
from starlette.responses import Response, StreamingResponse
from starlette.websockets import WebSocketDisconnect, WebSocketState
from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed, WebSocketException

from agora_api.common.logging import log_context
from agora_api.settings import Settings

from .exceptions import BackendUnavailableError
from .targets import NetworkAddress, resolve_target

logger = logging.getLogger(__name__)

Resolver = Callable[[str, str], NetworkAddress]

# RFC 9110 section 7.6.1 plus the de-facto proxy headers.
HOP_BY_HOP_HEADERS = frozenset(
    {
        "connection",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "proxy-connection",
        "te",
        "trailer",
        "transfer-encoding",
        "upgrade",
    }
)

# Handshake headers the websockets client generates itself.
_WEBSOCKET_HANDSHAKE_HEADERS = frozenset(
    {
        "host",
        "sec-websocket-key",
        "sec-websocket-version",
        "sec-websocket-extensions",
        "sec-websocket-protocol",
        "sec-websocket-accept",
        "content-length",
    }
)

ACCESS_TOKEN_QUERY_PARAM = "access_token"
WS_CLOSE_NORMAL = 1000
# Reserved codes that describe a close but may not be sent in a close frame.
_UNSENDABLE_CLOSE_CODES = frozenset({1005, 1006, 1015})


def _connection_tokens(headers: Iterable[tuple[str, str]]) -> set[str]:
    tokens: set[str] = set()
    for name, value in headers:
        if name.lower() == "connection":
            tokens.update(token.strip().lower() for token in value.split(",") if token.strip())
    return tokens


def filter_request_headers(
    headers: Iterable[tuple[str, str]],
    *,
    drop: Iterable[str] = (),
) -> list[tuple[str, str]]:
    """Return ``headers`` without hop-by-hop entries, ``Host`` and ``drop``."""

    items = list(headers)
    excluded = HOP_BY_HOP_HEADERS | _connection_tokens(items) | {"host"} | set(drop)
    return [(name, value) for name, value in items if name.lower() not in excluded]


def filter_response_headers(raw: Iterable[tuple[bytes, bytes]]) -> list[tuple[bytes, bytes]]:
    items = list(raw)
    decoded = [(name.decode("latin-1"), value.decode("latin-1")) for name, value in items]
    excluded = HOP_BY_HOP_HEADERS | _connection_tokens(decoded)
    return [(name.lower(), value) for name, value in items if name.decode("latin-1").lower() not in excluded]


def _forwarded_headers(connection: Request | WebSocket) -> list[tuple[str, str]]:
    client_host = connection.client.host if connection.client else None
    prior = connection.headers.get("x-forwarded-for")
    forwarded_for = ", ".join(value for value in (prior, client_host) if value)
    headers = [
        ("x-forwarded-proto", connection.url.scheme),
        ("x-forwarded-host", connection.headers.get("host", "")),
    ]
    if forwarded_for:
        headers.append(("x-forwarded-for", forwarded_for))
    return headers


def _strip_access_token(query: str) -> str:
    """Drop ``access_token`` pairs; the rest keep their original encoding."""
    pairs = [pair for pair in query.split("&") if pair]
    return "&".join(
        pair for pair in pairs if unquote_plus(pair.split("=", 1)[0]) != ACCESS_TOKEN_QUERY_PARAM
    )


def _has_body(request: Request) -> bool:
    return "content-length" in request.headers or "transfer-encoding" in request.headers


def _client_close_code(code: int | None) -> int:
    if code is None or code in _UNSENDABLE_CLOSE_CODES:
        return WS_CLOSE_NORMAL
    return code


class ProxyService:
    """Forward traffic for one application; shares a single HTTP client."""

    def __init__(
        self,
        *,
        client: httpx.AsyncClient,
        settings: Settings,
        resolver: Resolver | None = None,
    ) -> None:
        self._client = client
        self._settings = settings
        self._resolver: Resolver = resolver or (
            lambda workspace_id, deployment_id: resolve_target(
                workspace_id, deployment_id, settings
            )
        )

    def target_for(self, workspace_id: str, deployment_id: str) -> NetworkAddress:
        return self._resolver(workspace_id, deployment_id)

    # ------------- HTTP -----------------

    async def forward_http(
        self,
        request: Request,
        *,
        deployment_id: str,
        target: NetworkAddress,
        path: str,
    ) -> Response:
        """Send ``request`` to ``target`` at ``path`` and stream the reply back.

        ``Host`` is rewritten to the target and the platform credentials
        (``Authorization``, the ``access_token`` query parameter) are dropped;
        every other end-to-end header, the method, the rest of the query
        string and the body pass through unchanged.
        """

        headers = filter_request_headers(request.headers.items(), drop={"authorization"})
        headers.extend(_forwarded_headers(request))
        upstream = self._client.build_request(
            request.method,
            target.url(path, _strip_access_token(request.url.query)),
            headers=headers,
            content=request.stream() if _has_body(request) else None,
        )
        try:
            response = await self._client.send(upstream, stream=True)
        except httpx.HTTPError as exc:
            logger.warning(
                "proxy.http.backend_error",
                extra=log_context(
                    deployment_id=deployment_id,
                    target=target.netloc,
                    error=type(exc).__name__,
                ),
            )
            raise BackendUnavailableError(deployment_id) from exc

        logger.debug(
            "proxy.http.forwarded",
            extra=log_context(
                deployment_id=deployment_id,
                method=request.method,
                path=path,
                status_code=response.status_code,
            ),
        )
        proxied = StreamingResponse(
            self._relay_body(response, deployment_id),
            status_code=response.status_code,
            background=BackgroundTask(response.aclose),
        )
        proxied.raw_headers = filter_response_headers(response.headers.raw)
        return proxied

    async def _relay_body(
        self, response: httpx.Response, deployment_id: str
    ) -> AsyncIterator[bytes]:
        try:
            async for chunk in response.aiter_raw():
                yield chunk
        except httpx.HTTPError as exc:
            # Status and headers are already on the wire; end the body early.
            logger.warning(
                "proxy.http.stream_aborted",
                extra=log_context(deployment_id=deployment_id, error=type(exc).__name__),
            )

    # ------------- WebSocket -----------------

    async def open_backend_socket(
        self,
        websocket: WebSocket,
        *,
        deployment_id: str,
        target: NetworkAddress,
        path: str,
    ) -> ClientConnection:
        """Complete the backend handshake before the client's is accepted."""

        query = _strip_access_token(websocket.url.query)
        headers = filter_request_headers(
            websocket.headers.items(),
            drop=_WEBSOCKET_HANDSHAKE_HEADERS | {"authorization", "user-agent"},
        )
        headers.extend(_forwarded_headers(websocket))
        subprotocols = [
            value.strip()
            for value in websocket.headers.get("sec-websocket-protocol", "").split(",")
            if value.strip()
        ]
        try:
            return await connect(
                target.websocket_url(path, query),
                additional_headers=headers,
                subprotocols=subprotocols or None,
                user_agent_header=websocket.headers.get("user-agent"),
                open_timeout=self._settings.proxy_connect_timeout.total_seconds(),
                max_size=None,
            )
        except (OSError, TimeoutError, WebSocketException) as exc:
            logger.warning(
                "proxy.ws.backend_error",
                extra=log_context(
                    deployment_id=deployment_id,
                    target=target.netloc,
                    error=type(exc).__name__,
                ),
            )
            raise BackendUnavailableError(deployment_id) from exc

    async def bridge_websocket(
        self,
        websocket: WebSocket,
        backend: ClientConnection,
        *,
        deployment_id: str,
    ) -> None:
        """Relay frames both ways until either side goes away.

        The first pump to finish cancels the other; both sockets are closed
        on the way out.
        """

        await websocket.accept(subprotocol=backend.subprotocol)
        logger.debug("proxy.ws.opened", extra=log_context(deployment_id=deployment_id))

        client_pump = asyncio.create_task(self._client_to_backend(websocket, backend))
        backend_pump = asyncio.create_task(self._backend_to_client(websocket, backend))
        try:
            done, pending = await asyncio.wait(
                {client_pump, backend_pump}, return_when=asyncio.FIRST_COMPLETED
            )
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)
            for task in done:
                exc = task.exception()
                if exc is not None:
                    logger.warning(
                        "proxy.ws.pump_error",
                        extra=log_context(deployment_id=deployment_id, error=type(exc).__name__),
                    )
        finally:
            client_pump.cancel()
            backend_pump.cancel()
            await backend.close()
            if websocket.application_state == WebSocketState.CONNECTED and (
                websocket.client_state == WebSocketState.CONNECTED
            ):
                await websocket.close(code=_client_close_code(backend.close_code))
            logger.debug(
                "proxy.ws.closed",
                extra=log_context(deployment_id=deployment_id, close_code=backend.close_code),
            )

    @staticmethod
    async def _client_to_backend(websocket: WebSocket, backend: ClientConnection) -> None:
        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    return
                if message.get("text") is not None:
                    await backend.send(message["text"])
                elif message.get("bytes") is not None:
                    await backend.send(message["bytes"])
        except (WebSocketDisconnect, ConnectionClosed):
            return

    @staticmethod
    async def _backend_to_client(websocket: WebSocket, backend: ClientConnection) -> None:
        try:
            async for message in backend:
                if isinstance(message, str):
                    await websocket.send_text(message)
                else:
                    await websocket.send_bytes(message)
        except (WebSocketDisconnect, ConnectionClosed):
            return


__all__ = [
    "HOP_BY_HOP_HEADERS",
    "ProxyService",
    "filter_request_headers",
    "filter_response_headers",
]
