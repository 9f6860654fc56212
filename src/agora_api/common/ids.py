"""Identifier helpers for AgoraCloud."""

from __future__ import annotations

import uuid
from collections.abc import Callable
from typing import Annotated

from pydantic import Field

__all__ = ["ID_DESCRIPTION", "IdStr", "InvalidIdError", "generate_id", "parse_id"]

ID_DESCRIPTION = "UUIDv7 (RFC 9562) rendered in canonical string form."

IdStr = Annotated[str, Field(description=ID_DESCRIPTION, min_length=36, max_length=36)]


class InvalidIdError(ValueError):
    """Raised when an identifier is not a well-formed UUID."""

    def __init__(self, field: str, value: object) -> None:
        super().__init__(f"{field} is not a valid identifier")
        self.field = field
        self.value = value


def _resolve_uuid7() -> Callable[[], uuid.UUID]:
    """Return a callable that produces a UUIDv7, falling back to uuid4 when absent."""

    maybe_uuid7 = getattr(uuid, "uuid7", None)
    if callable(maybe_uuid7):
        return maybe_uuid7
    return uuid.uuid4


_uuid7_factory = _resolve_uuid7()


def generate_id() -> str:
    """Return a new sortable identifier."""

    return str(_uuid7_factory())


def parse_id(value: object, *, field: str = "id") -> str:
    """Return ``value`` in canonical form or raise :class:`InvalidIdError`.

    Runs before any store access so malformed identifiers never reach a query.
    """

    if isinstance(value, uuid.UUID):
        return str(value)
    if not isinstance(value, str):
        raise InvalidIdError(field, value)
    try:
        return str(uuid.UUID(value.strip()))
    except ValueError as exc:
        raise InvalidIdError(field, value) from exc
