"""Centralized FastAPI exception handlers with structured logging."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import cast

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response

from agora_api.common.ids import InvalidIdError
from agora_api.common.logging import log_context
from agora_api.common.problem_details import (
    ApiError,
    build_problem_details,
    resolve_error_definition,
)
from agora_api.core.errors import (
    AuthenticationError,
    ConflictError,
    ConsistencyError,
    NotFoundError,
    PermissionDeniedError,
)

_UNHANDLED_LOGGER = logging.getLogger("agora_api.errors")
_HTTP_LOGGER = logging.getLogger("agora_api.http")
_PROBLEM_MEDIA_TYPE = "application/problem+json"

ExceptionHandler = Callable[[Request, Exception], Response | Awaitable[Response]]


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "correlation_id", None)


def _problem_response(
    *,
    request: Request,
    status_code: int,
    detail: object,
    error_type: str | None = None,
    title: str | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    problem = build_problem_details(
        status_code=status_code,
        instance=str(request.url.path),
        request_id=_request_id(request),
        detail=detail,
        error_type=error_type,
        title=title,
    )
    return JSONResponse(
        status_code=problem.status,
        content=problem.model_dump(by_alias=True, exclude_none=True),
        media_type=_PROBLEM_MEDIA_TYPE,
        headers=headers,
    )


def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected exceptions.

    Registered as the ``Exception`` handler. Any unhandled error results in a
    generic HTTP 500 body and a structured ERROR log including a stack trace.
    """
    _UNHANDLED_LOGGER.exception(
        "unhandled_exception",
        extra=log_context(
            path=str(request.url.path),
            method=request.method,
            exception_type=type(exc).__name__,
            detail=str(exc),
        ),
    )
    return _problem_response(
        request=request,
        status_code=500,
        detail="Internal server error",
        error_type=resolve_error_definition(500).type,
    )


def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handler for FastAPI HTTPException instances.

    4xx responses are returned without logging; 5xx responses are logged at
    ERROR level with structured metadata.
    """
    if exc.status_code >= 500:
        _HTTP_LOGGER.error(
            "http_exception",
            extra=log_context(
                path=str(request.url.path),
                method=request.method,
                status_code=exc.status_code,
                detail=exc.detail,
            ),
        )
    detail = "Internal server error" if exc.status_code == 500 else exc.detail
    return _problem_response(
        request=request,
        status_code=exc.status_code,
        detail=detail,
        headers=getattr(exc, "headers", None),
    )


def request_validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    errors = [
        {"path": ".".join(str(part) for part in error.get("loc", ())), "message": error.get("msg")}
        for error in exc.errors()
    ]
    return _problem_response(
        request=request,
        status_code=422,
        detail=errors,
        error_type=resolve_error_definition(422).type,
    )


def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    if exc.status_code >= 500:
        _HTTP_LOGGER.error(
            "api_error",
            extra=log_context(
                path=str(request.url.path),
                method=request.method,
                status_code=exc.status_code,
                error_type=exc.error_type,
            ),
        )
    return _problem_response(
        request=request,
        status_code=exc.status_code,
        detail=exc.detail,
        error_type=exc.error_type,
        title=exc.title,
        headers=exc.headers,
    )


def _domain_handler(
    error_type: str, *, headers: dict[str, str] | None = None
) -> ExceptionHandler:
    def _handler(request: Request, exc: Exception) -> JSONResponse:
        return api_error_handler(
            request, ApiError(error_type=error_type, detail=str(exc), headers=headers)
        )

    return _handler


def consistency_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Internal faults are logged in full but never described to the caller."""

    _UNHANDLED_LOGGER.error(
        "consistency_error",
        extra=log_context(
            path=str(request.url.path),
            method=request.method,
            exception_type=type(exc).__name__,
            detail=str(exc),
        ),
    )
    return _problem_response(
        request=request,
        status_code=500,
        detail="Internal server error",
        error_type=resolve_error_definition(500).type,
    )


_DOMAIN_STATUS: tuple[tuple[type[Exception], int], ...] = (
    (InvalidIdError, 400),
    (AuthenticationError, 401),
    (PermissionDeniedError, 403),
    (NotFoundError, 404),
    (ConflictError, 409),
    (RequestValidationError, 422),
)


def status_for_exception(exc: Exception) -> int:
    """Return the status code the registered handlers will produce for ``exc``."""

    if isinstance(exc, (StarletteHTTPException, ApiError)):
        return exc.status_code
    for exc_type, status_code in _DOMAIN_STATUS:
        if isinstance(exc, exc_type):
            return status_code
    return 500


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the global and domain exception handlers to ``app``."""

    app.add_exception_handler(
        RequestValidationError, cast(ExceptionHandler, request_validation_exception_handler)
    )
    app.add_exception_handler(HTTPException, cast(ExceptionHandler, http_exception_handler))
    app.add_exception_handler(
        StarletteHTTPException, cast(ExceptionHandler, http_exception_handler)
    )
    app.add_exception_handler(ApiError, cast(ExceptionHandler, api_error_handler))
    app.add_exception_handler(InvalidIdError, _domain_handler("bad_request"))
    app.add_exception_handler(
        AuthenticationError,
        _domain_handler("unauthorized", headers={"WWW-Authenticate": "Bearer"}),
    )
    app.add_exception_handler(PermissionDeniedError, _domain_handler("forbidden"))
    app.add_exception_handler(NotFoundError, _domain_handler("not_found"))
    app.add_exception_handler(ConflictError, _domain_handler("conflict"))
    app.add_exception_handler(ConsistencyError, consistency_error_handler)
    app.add_exception_handler(Exception, cast(ExceptionHandler, unhandled_exception_handler))


__all__ = [
    "api_error_handler",
    "consistency_error_handler",
    "http_exception_handler",
    "register_exception_handlers",
    "status_for_exception",
    "request_validation_exception_handler",
    "unhandled_exception_handler",
]
