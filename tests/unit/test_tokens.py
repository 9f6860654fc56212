from __future__ import annotations

from datetime import timedelta

import jwt
import pytest

from agora_api.core.auth import create_access_token, decode_access_token
from agora_api.core.errors import AuthenticationError
from agora_api.settings import Settings

USER_ID = "0190a5b2-7c3d-7e4f-8a9b-0c1d2e3f4a5b"


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, jwt_secret="unit-test-secret-value-0123456789")


def test_token_round_trip(settings: Settings) -> None:
    token = create_access_token(USER_ID, settings)

    assert decode_access_token(token, settings) == USER_ID


def test_expired_token_is_rejected(settings: Settings) -> None:
    token = create_access_token(USER_ID, settings, expires_in=timedelta(seconds=-5))

    with pytest.raises(AuthenticationError):
        decode_access_token(token, settings)


def test_token_signed_with_other_secret_is_rejected(settings: Settings) -> None:
    other = Settings(_env_file=None, jwt_secret="a-completely-different-secret-987654")
    token = create_access_token(USER_ID, other)

    with pytest.raises(AuthenticationError):
        decode_access_token(token, settings)


def test_non_access_token_is_rejected(settings: Settings) -> None:
    token = jwt.encode(
        {"sub": USER_ID, "exp": 4102444800, "typ": "refresh"},
        settings.jwt_secret_value,
        algorithm=settings.jwt_algorithm,
    )

    with pytest.raises(AuthenticationError):
        decode_access_token(token, settings)


def test_garbage_is_rejected(settings: Settings) -> None:
    with pytest.raises(AuthenticationError):
        decode_access_token("not-a-jwt", settings)
