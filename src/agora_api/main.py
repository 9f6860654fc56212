"""AgoraCloud FastAPI application entry point."""

from __future__ import annotations

import logging

import httpx
from fastapi import FastAPI

from .api.v1.router import api_router
from .app.lifecycles import create_application_lifespan
from .common.exceptions import register_exception_handlers
from .common.logging import setup_logging
from .common.middleware import register_middleware
from .features.proxy.router import router as proxy_router
from .features.proxy.service import Resolver
from .settings import Settings, get_settings

logger = logging.getLogger(__name__)
API_PREFIX = "/api/v1"


def create_app(
    settings: Settings | None = None,
    *,
    proxy_transport: httpx.AsyncBaseTransport | None = None,
    proxy_resolver: Resolver | None = None,
) -> FastAPI:
    """Return a configured FastAPI application.

    ``proxy_transport`` and ``proxy_resolver`` replace the outbound HTTP
    transport and the backend address lookup; both default to the real ones.
    """

    settings = settings or get_settings()
    setup_logging(settings)

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=create_application_lifespan(
            settings=settings,
            proxy_transport=proxy_transport,
            proxy_resolver=proxy_resolver,
        ),
    )
    app.state.settings = settings
    app.dependency_overrides[get_settings] = lambda: settings

    register_middleware(app)
    register_exception_handlers(app)
    app.include_router(api_router, prefix=API_PREFIX)
    app.include_router(proxy_router, prefix=settings.proxy_prefix)
    return app


__all__ = ["API_PREFIX", "create_app"]
