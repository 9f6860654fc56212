"""Problem Details helpers for consistent API error responses."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from fastapi import status
from pydantic import BaseModel, ConfigDict, Field


@dataclass(frozen=True)
class ErrorDefinition:
    """Canonical Problem Details error metadata."""

    type: str
    title: str
    status: int


ERROR_DEFINITIONS: dict[str, ErrorDefinition] = {
    "bad_request": ErrorDefinition(
        type="bad_request",
        title="Bad request",
        status=status.HTTP_400_BAD_REQUEST,
    ),
    "unauthorized": ErrorDefinition(
        type="unauthorized",
        title="Unauthorized",
        status=status.HTTP_401_UNAUTHORIZED,
    ),
    "forbidden": ErrorDefinition(
        type="forbidden",
        title="Forbidden",
        status=status.HTTP_403_FORBIDDEN,
    ),
    "not_found": ErrorDefinition(
        type="not_found",
        title="Not found",
        status=status.HTTP_404_NOT_FOUND,
    ),
    "conflict": ErrorDefinition(
        type="conflict",
        title="Conflict",
        status=status.HTTP_409_CONFLICT,
    ),
    "validation_error": ErrorDefinition(
        type="validation_error",
        title="Validation error",
        status=422,
    ),
    "internal_error": ErrorDefinition(
        type="internal_error",
        title="Internal server error",
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    ),
    "bad_gateway": ErrorDefinition(
        type="bad_gateway",
        title="Bad gateway",
        status=status.HTTP_502_BAD_GATEWAY,
    ),
}

STATUS_TO_ERROR_TYPE: dict[int, ErrorDefinition] = {
    definition.status: definition for definition in ERROR_DEFINITIONS.values()
}


class ProblemDetails(BaseModel):
    """Problem Details-style response payload."""

    model_config = ConfigDict(populate_by_name=True)

    type: str
    title: str
    status: int
    detail: str | dict[str, Any] | list[Any] | None = None
    instance: str
    request_id: str | None = Field(default=None, alias="requestId")


class ApiError(RuntimeError):
    """Custom exception carrying Problem Details metadata."""

    def __init__(
        self,
        *,
        error_type: str,
        status_code: int | None = None,
        detail: str | dict[str, Any] | None = None,
        title: str | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        definition = ERROR_DEFINITIONS.get(error_type)
        resolved_status = status_code or (definition.status if definition else 500)
        message = detail if isinstance(detail, str) and detail else title or error_type
        super().__init__(message)
        self.error_type = error_type
        self.status_code = resolved_status
        self.detail = detail
        self.title = title
        self.headers = headers


def resolve_error_definition(status_code: int) -> ErrorDefinition:
    """Return the canonical error definition for ``status_code``."""

    return STATUS_TO_ERROR_TYPE.get(
        status_code,
        ErrorDefinition(type="error", title="Error", status=status_code),
    )


def build_problem_details(
    *,
    status_code: int,
    instance: str,
    request_id: str | None,
    detail: Any = None,
    error_type: str | None = None,
    title: str | None = None,
) -> ProblemDetails:
    definition = resolve_error_definition(status_code)
    return ProblemDetails(
        type=error_type or definition.type,
        title=title or definition.title,
        status=status_code,
        detail=detail,
        instance=instance,
        request_id=request_id,
    )


__all__ = [
    "ApiError",
    "ERROR_DEFINITIONS",
    "ErrorDefinition",
    "ProblemDetails",
    "build_problem_details",
    "resolve_error_definition",
]
