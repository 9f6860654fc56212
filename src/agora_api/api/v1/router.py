"""Aggregate router for the v1 API."""

from __future__ import annotations

from fastapi import APIRouter

from agora_api.features.auditing.router import router as audit_router
from agora_api.features.authorization.router import router as permissions_router
from agora_api.features.users.router import router as users_router
from agora_api.features.workspaces.router import router as workspaces_router

api_router = APIRouter()
api_router.include_router(users_router)
api_router.include_router(workspaces_router)
api_router.include_router(permissions_router)
api_router.include_router(audit_router)

__all__ = ["api_router"]
