"""Domain error taxonomy shared by every feature.

Feature modules subclass these; the HTTP layer maps the base classes onto
status codes in :mod:`agora_api.common.exceptions`.
"""

from __future__ import annotations


class DomainError(Exception):
    """Base class for errors raised by feature services."""


class NotFoundError(DomainError):
    """A resource does not exist or is invisible to the caller."""


class ConflictError(DomainError):
    """The request would violate a membership or state invariant."""


class AuthenticationError(DomainError):
    """The request carries no valid identity."""


class PermissionDeniedError(DomainError):
    """The caller is authenticated but lacks the required actions."""


class ConsistencyError(DomainError):
    """Stored state contradicts an invariant the system relies on."""


__all__ = [
    "AuthenticationError",
    "ConflictError",
    "ConsistencyError",
    "DomainError",
    "NotFoundError",
    "PermissionDeniedError",
]
