"""JWT helpers for minting and decoding bearer tokens."""

from __future__ import annotations

from datetime import timedelta
from typing import Any

import jwt

from agora_api.core.errors import AuthenticationError
from agora_api.db import utc_now
from agora_api.settings import Settings


def create_access_token(
    user_id: str,
    settings: Settings,
    *,
    expires_in: timedelta | None = None,
) -> str:
    """Return a signed access token whose subject is ``user_id``."""

    issued_at = utc_now()
    payload: dict[str, Any] = {
        "sub": user_id,
        "iat": issued_at,
        "exp": issued_at + (expires_in or settings.jwt_access_token_ttl),
        "typ": "access",
    }
    return jwt.encode(payload, settings.jwt_secret_value, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str, settings: Settings) -> str:
    """Return the user id carried by ``token``.

    Raises :class:`AuthenticationError` for expired, tampered or malformed
    tokens.
    """

    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_value,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["sub", "exp"]},
        )
    except jwt.PyJWTError as exc:
        raise AuthenticationError("Invalid token") from exc
    if payload.get("typ") != "access":
        raise AuthenticationError("Invalid token type")
    subject = payload.get("sub")
    if not isinstance(subject, str) or not subject:
        raise AuthenticationError("Invalid token subject")
    return subject


__all__ = ["create_access_token", "decode_access_token"]
