"""WebSocket proxying against a real backend socket server."""

from __future__ import annotations

import threading
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from datetime import timedelta

import pytest
from fastapi import FastAPI
from starlette.testclient import TestClient, WebSocketDenialResponse
from websockets.sync.server import ServerConnection, serve

from agora_api.core.auth import create_access_token
from agora_api.core.rbac import GlobalRole
from agora_api.db import session_scope
from agora_api.features.proxy.targets import NetworkAddress
from agora_api.features.users.service import UsersService
from agora_api.features.workspaces.service import WorkspacesService
from agora_api.main import create_app
from agora_api.models import Deployment, DeploymentStatus
from agora_api.settings import Settings


@dataclass
class EchoBackend:
    port: int
    paths: list[str] = field(default_factory=list)
    headers: list[dict[str, str]] = field(default_factory=list)


@pytest.fixture
def echo_backend() -> Iterator[EchoBackend]:
    paths: list[str] = []
    headers: list[dict[str, str]] = []

    def handler(connection: ServerConnection) -> None:
        paths.append(connection.request.path)
        headers.append({key.lower(): value for key, value in connection.request.headers.raw_items()})
        for message in connection:
            connection.send(message)

    def select_subprotocol(connection: ServerConnection, offered: Sequence[str]) -> str | None:
        return "agora.v1" if "agora.v1" in offered else None

    with serve(handler, "127.0.0.1", 0, select_subprotocol=select_subprotocol) as server:
        thread = threading.Thread(target=server.serve_forever, daemon=True)
        thread.start()
        port = server.socket.getsockname()[1]
        yield EchoBackend(port=port, paths=paths, headers=headers)
        server.shutdown()
    thread.join(timeout=5)


@dataclass
class ProxyWorld:
    client: TestClient
    settings: Settings
    deployment_id: str
    stopped_deployment_id: str
    member_token: str
    outsider_token: str


async def _seed(app: FastAPI) -> tuple[str, str, str, str]:
    """Create a member with a workspace holding one running and one stopped deployment."""

    sessionmaker = app.state.db.sessionmaker
    bus = app.state.event_bus
    async with session_scope(sessionmaker) as session:
        users = UsersService(session=session, bus=bus)
        member = await users.create(email="alice@example.com", role=GlobalRole.USER)
        outsider = await users.create(email="mallory@example.com", role=GlobalRole.USER)
    await bus.join()

    async with session_scope(sessionmaker) as session:
        workspace = await WorkspacesService(session=session, bus=bus).create(
            owner_id=member.id, name="Sockets"
        )
    await bus.join()

    async with session_scope(sessionmaker) as session:
        running = Deployment(
            name="live",
            workspace_id=workspace.id,
            user_id=member.id,
            status=DeploymentStatus.RUNNING,
        )
        stopped = Deployment(
            name="idle",
            workspace_id=workspace.id,
            user_id=member.id,
            status=DeploymentStatus.FAILED,
        )
        session.add_all([running, stopped])
        await session.flush()
        return member.id, outsider.id, running.id, stopped.id


@pytest.fixture
def world(settings: Settings, echo_backend: EchoBackend) -> Iterator[ProxyWorld]:
    app = create_app(
        settings,
        proxy_resolver=lambda workspace_id, deployment_id: NetworkAddress(
            scheme="http", host="127.0.0.1", port=echo_backend.port
        ),
    )
    with TestClient(app) as client:
        member, outsider, running, stopped = client.portal.call(_seed, app)
        yield ProxyWorld(
            client=client,
            settings=settings,
            deployment_id=running,
            stopped_deployment_id=stopped,
            member_token=create_access_token(member, settings),
            outsider_token=create_access_token(outsider, settings),
        )


def test_messages_are_relayed_both_ways(world: ProxyWorld, echo_backend: EchoBackend) -> None:
    url = f"/proxy/{world.deployment_id}/socket?room=1&access_token={world.member_token}"

    with world.client.websocket_connect(url, subprotocols=["agora.v1"]) as ws:
        assert ws.accepted_subprotocol == "agora.v1"
        ws.send_text("hello")
        assert ws.receive_text() == "hello"
        ws.send_bytes(b"\x00\x01")
        assert ws.receive_bytes() == b"\x00\x01"

    assert echo_backend.paths == ["/socket?room=1"]


def test_bearer_header_is_accepted_and_not_forwarded(
    world: ProxyWorld, echo_backend: EchoBackend
) -> None:
    with world.client.websocket_connect(
        f"/proxy/{world.deployment_id}",
        headers={"Authorization": f"Bearer {world.member_token}", "X-Trace": "t-9"},
    ) as ws:
        ws.send_text("ping")
        assert ws.receive_text() == "ping"

    assert echo_backend.paths == ["/"]
    forwarded = echo_backend.headers[0]
    assert "authorization" not in forwarded
    assert forwarded["x-trace"] == "t-9"


def test_upper_case_deployment_id_is_stripped_on_sockets(
    world: ProxyWorld, echo_backend: EchoBackend
) -> None:
    url = f"/proxy/{world.deployment_id.upper()}/live?access_token={world.member_token}"

    with world.client.websocket_connect(url) as ws:
        ws.send_text("ping")
        assert ws.receive_text() == "ping"

    assert echo_backend.paths == ["/live"]


@pytest.mark.parametrize(
    ("case", "status_code"),
    [("anonymous", 401), ("outsider", 404), ("stopped", 409), ("malformed", 400)],
)
def test_refused_handshakes_carry_the_mapped_status(
    world: ProxyWorld, echo_backend: EchoBackend, case: str, status_code: int
) -> None:
    urls = {
        "anonymous": f"/proxy/{world.deployment_id}/socket",
        "outsider": f"/proxy/{world.deployment_id}/socket?access_token={world.outsider_token}",
        "stopped": (
            f"/proxy/{world.stopped_deployment_id}/socket?access_token={world.member_token}"
        ),
        "malformed": f"/proxy/not-an-id/socket?access_token={world.member_token}",
    }

    with pytest.raises(WebSocketDenialResponse) as denied:
        with world.client.websocket_connect(urls[case]):
            pass

    assert denied.value.status_code == status_code
    assert echo_backend.paths == []


def test_unreachable_backend_is_refused_with_bad_gateway(settings: Settings) -> None:
    app = create_app(
        settings.model_copy(update={"proxy_connect_timeout": timedelta(seconds=1)}),
        proxy_resolver=lambda workspace_id, deployment_id: NetworkAddress(
            scheme="http", host="127.0.0.1", port=1
        ),
    )
    with TestClient(app) as client:
        member, _, running, _ = client.portal.call(_seed, app)
        token = create_access_token(member, settings)

        with pytest.raises(WebSocketDenialResponse) as denied:
            with client.websocket_connect(f"/proxy/{running}?access_token={token}"):
                pass

    assert denied.value.status_code == 502
    assert denied.value.json()["detail"] == "Proxy Error"
