"""Admission checks for proxied traffic."""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession
from starlette.requests import HTTPConnection

from agora_api.common.ids import parse_id
from agora_api.common.logging import log_context
from agora_api.core.rbac import Action
from agora_api.features.authorization.exceptions import AccessDeniedError
from agora_api.features.authorization.service import AuthorizationService
from agora_api.features.deployments.exceptions import (
    DeploymentNotFoundError,
    DeploymentNotRunningError,
)
from agora_api.features.deployments.repository import DeploymentsRepository
from agora_api.models import Deployment, DeploymentStatus

logger = logging.getLogger(__name__)

PROXY_ACTIONS = frozenset({Action.PROXY_DEPLOYMENT})


class ProxyGuard:
    """Decide whether ``user_id`` may reach a deployment's backend.

    Checks run in order and stop at the first failure: a malformed id, an
    unknown deployment, a caller without ``deployments.proxy`` in the
    deployment's workspace, and finally a deployment that is not running.
    All of them fail before any backend connection is attempted.
    """

    def __init__(self, *, session: AsyncSession) -> None:
        self._deployments = DeploymentsRepository(session)
        self._authorization = AuthorizationService(session=session)

    async def admit(
        self,
        user_id: str,
        raw_deployment_id: str,
        *,
        connection: HTTPConnection | None = None,
    ) -> Deployment:
        deployment_id = parse_id(raw_deployment_id, field="deployment_id")
        deployment = await self._deployments.get(deployment_id)
        if deployment is None:
            raise DeploymentNotFoundError(deployment_id)

        if connection is not None:
            connection.state.required_actions = PROXY_ACTIONS
            connection.state.workspace_id = deployment.workspace_id

        decision = await self._authorization.can(
            user_id, PROXY_ACTIONS, workspace_id=deployment.workspace_id
        )
        if not decision.granted:
            raise AccessDeniedError()

        if deployment.status != DeploymentStatus.RUNNING:
            logger.info(
                "proxy.deployment.not_running",
                extra=log_context(
                    user_id=user_id,
                    deployment_id=deployment_id,
                    status=deployment.status.value,
                ),
            )
            raise DeploymentNotRunningError(deployment_id, deployment.status)
        return deployment


__all__ = ["PROXY_ACTIONS", "ProxyGuard"]
