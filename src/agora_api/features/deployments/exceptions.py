from __future__ import annotations

from agora_api.core.errors import ConflictError, NotFoundError
from agora_api.models import DeploymentStatus


class DeploymentNotFoundError(NotFoundError):
    def __init__(self, deployment_id: str) -> None:
        super().__init__(f"Deployment {deployment_id} not found")
        self.deployment_id = deployment_id


class DeploymentNotRunningError(ConflictError):
    """The deployment exists but has no live backend to talk to."""

    def __init__(self, deployment_id: str, status: DeploymentStatus) -> None:
        super().__init__(f"Deployment {deployment_id} is not running")
        self.deployment_id = deployment_id
        self.status = status


__all__ = ["DeploymentNotFoundError", "DeploymentNotRunningError"]
