from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path

import httpx
import pytest
import pytest_asyncio
from asgi_lifespan import LifespanManager
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select

from agora_api.core.auth import create_access_token
from agora_api.db import Database, DatabaseConfig, session_scope
from agora_api.main import create_app
from agora_api.models import Deployment, DeploymentStatus, User
from agora_api.settings import Settings

ADMIN_EMAIL = "admin@example.com"

Headers = dict[str, str]


@dataclass
class RecordingBackend:
    """Stands in for deployment backends behind ``httpx.MockTransport``."""

    requests: list[httpx.Request] = field(default_factory=list)
    fail_with: Exception | None = None
    status_code: int = 200
    body: bytes = b'{"ok": true}'
    headers: list[tuple[str, str]] = field(
        default_factory=lambda: [("content-type", "application/json"), ("x-backend", "1")]
    )

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_with is not None:
            raise self.fail_with
        return httpx.Response(
            self.status_code, headers=self.headers, stream=httpx.ByteStream(self.body)
        )


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        _env_file=None,
        database_url=f"sqlite:///{tmp_path / 'db' / 'agora.sqlite'}",
        admin_email=ADMIN_EMAIL,
        jwt_secret="integration-test-secret-0123456789abcdef",
        event_bus_retry_backoff=timedelta(milliseconds=5),
        event_bus_max_attempts=3,
        proxy_service_domain="svc.test",
    )


@pytest_asyncio.fixture
async def database(settings: Settings) -> AsyncIterator[Database]:
    db = Database()
    db.init(DatabaseConfig.from_settings(settings))
    await db.create_all()
    try:
        yield db
    finally:
        await db.dispose()


@pytest.fixture
def backend() -> RecordingBackend:
    return RecordingBackend()


@pytest_asyncio.fixture
async def app(settings: Settings, backend: RecordingBackend) -> AsyncIterator[FastAPI]:
    application = create_app(settings, proxy_transport=httpx.MockTransport(backend))
    async with LifespanManager(application):
        yield application


@pytest_asyncio.fixture
async def async_client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://testserver",
    ) as client:
        yield client


@pytest.fixture
def auth_headers(settings: Settings) -> Callable[[str], Headers]:
    def _headers(user_id: str) -> Headers:
        return {"Authorization": f"Bearer {create_access_token(user_id, settings)}"}

    return _headers


@pytest_asyncio.fixture
async def admin_id(app: FastAPI) -> str:
    async with session_scope(app.state.db.sessionmaker) as session:
        user_id = await session.scalar(select(User.id).where(User.email == ADMIN_EMAIL))
    assert user_id is not None
    return user_id


@pytest.fixture
def admin_headers(admin_id: str, auth_headers: Callable[[str], Headers]) -> Headers:
    return auth_headers(admin_id)


async def _settle(app: FastAPI) -> None:
    """Wait until lifecycle events and audit writes have been processed."""

    await app.state.event_bus.join()
    await app.state.audit_recorder.drain()


@pytest.fixture
def create_user(
    app: FastAPI,
    async_client: AsyncClient,
    admin_headers: Headers,
) -> Callable[..., Awaitable[str]]:
    async def _create(email: str, **payload: object) -> str:
        response = await async_client.post(
            "/api/v1/users",
            json={"email": email, **payload},
            headers=admin_headers,
        )
        assert response.status_code == 201, response.text
        await _settle(app)
        return response.json()["id"]

    return _create


@pytest.fixture
def create_workspace(
    app: FastAPI,
    async_client: AsyncClient,
    auth_headers: Callable[[str], Headers],
) -> Callable[[str, str], Awaitable[str]]:
    async def _create(owner_id: str, name: str = "Research") -> str:
        response = await async_client.post(
            "/api/v1/workspaces",
            json={"name": name},
            headers=auth_headers(owner_id),
        )
        assert response.status_code == 201, response.text
        await _settle(app)
        return response.json()["id"]

    return _create


@pytest.fixture
def add_member(
    app: FastAPI,
    async_client: AsyncClient,
    auth_headers: Callable[[str], Headers],
) -> Callable[[str, str, str], Awaitable[None]]:
    async def _add(workspace_id: str, actor_id: str, email: str) -> None:
        response = await async_client.post(
            f"/api/v1/workspaces/{workspace_id}/users",
            json={"email": email},
            headers=auth_headers(actor_id),
        )
        assert response.status_code == 200, response.text
        await _settle(app)

    return _add


@pytest.fixture
def seed_deployment(app: FastAPI) -> Callable[..., Awaitable[str]]:
    async def _seed(
        workspace_id: str,
        user_id: str,
        status: DeploymentStatus = DeploymentStatus.RUNNING,
    ) -> str:
        async with session_scope(app.state.db.sessionmaker) as session:
            deployment = Deployment(
                name="notebook",
                workspace_id=workspace_id,
                user_id=user_id,
                status=status,
            )
            session.add(deployment)
            await session.flush()
            return deployment.id

    return _seed


@pytest.fixture
def settle(app: FastAPI) -> Callable[[], Awaitable[None]]:
    async def _wait() -> None:
        await _settle(app)

    return _wait
