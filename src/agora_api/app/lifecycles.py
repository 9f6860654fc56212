"""FastAPI lifespan for the AgoraCloud API.

Startup order matters: the schema and bootstrap admin exist before the bus
starts, and the bus runs before the first request can publish to it.
Shutdown drains the bus and pending audit writes before the engine goes away.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.routing import Lifespan
from sqlalchemy.engine import make_url

from agora_api.db import Database, DatabaseConfig
from agora_api.events import EventBus
from agora_api.features.auditing.recorder import AuditRecorder
from agora_api.features.authorization.handlers import PermissionEventHandlers
from agora_api.features.proxy.service import ProxyService, Resolver
from agora_api.features.users.service import ensure_bootstrap_admin
from agora_api.features.workspaces.handlers import WorkspaceEventHandlers
from agora_api.settings import Settings

logger = logging.getLogger(__name__)


def build_proxy_client(
    settings: Settings,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    timeout = httpx.Timeout(
        settings.proxy_read_timeout.total_seconds(),
        connect=settings.proxy_connect_timeout.total_seconds(),
    )
    return httpx.AsyncClient(timeout=timeout, follow_redirects=False, transport=transport)


def create_application_lifespan(
    *,
    settings: Settings,
    proxy_transport: httpx.AsyncBaseTransport | None = None,
    proxy_resolver: Resolver | None = None,
) -> Lifespan[FastAPI]:
    """Return the FastAPI lifespan handler used by the app factory."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        safe_url = make_url(settings.database_url).render_as_string(hide_password=True)
        logger.info("db.init.start", extra={"database_url": safe_url})
        database = Database()
        database.init(DatabaseConfig.from_settings(settings))
        await database.create_all()
        logger.info("db.init.complete", extra={"database_url": safe_url})
        app.state.db = database

        admin_id = await ensure_bootstrap_admin(database.sessionmaker, settings.admin_email)
        if admin_id is not None:
            logger.info("bootstrap_admin.ready", extra={"user_id": admin_id})

        bus = EventBus(
            partitions=settings.event_bus_partitions,
            max_attempts=settings.event_bus_max_attempts,
            retry_backoff=settings.event_bus_retry_backoff,
        )
        PermissionEventHandlers(database.sessionmaker).register(bus)
        WorkspaceEventHandlers(database.sessionmaker).register(bus)
        await bus.start()
        app.state.event_bus = bus

        recorder = AuditRecorder(database.sessionmaker)
        app.state.audit_recorder = recorder

        client = build_proxy_client(settings, transport=proxy_transport)
        app.state.proxy_service = ProxyService(
            client=client, settings=settings, resolver=proxy_resolver
        )

        try:
            yield
        finally:
            await bus.stop(drain=True)
            await recorder.drain()
            await client.aclose()
            await database.dispose()
            logger.info("app.shutdown.complete")

    return lifespan


__all__ = ["build_proxy_client", "create_application_lifespan"]
