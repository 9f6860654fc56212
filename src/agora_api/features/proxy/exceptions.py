from __future__ import annotations

from agora_api.common.problem_details import ApiError


class BackendUnavailableError(ApiError):
    """The deployment's backend could not be reached or broke mid-exchange.

    The response body never carries the underlying transport error.
    """

    def __init__(self, deployment_id: str) -> None:
        super().__init__(error_type="bad_gateway", detail="Proxy Error")
        self.deployment_id = deployment_id


__all__ = ["BackendUnavailableError"]
