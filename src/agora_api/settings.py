"""AgoraCloud API settings (conventional Pydantic v2)."""

from __future__ import annotations

import logging
import secrets
from datetime import timedelta
from functools import lru_cache
from typing import Any

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# ---- Defaults ---------------------------------------------------------------

DEFAULT_DATABASE_URL = "sqlite:///./data/db/agora.sqlite"
DEFAULT_PROXY_PREFIX = "/proxy"
DEFAULT_SERVICE_DOMAIN = "svc.cluster.local"
DEFAULT_RESOURCE_PREFIX = "agora"
DEFAULT_CONNECT_TIMEOUT = timedelta(seconds=5)
DEFAULT_READ_TIMEOUT = timedelta(seconds=60)
DEFAULT_RETRY_BACKOFF = timedelta(milliseconds=200)
DEFAULT_ACCESS_TOKEN_TTL = timedelta(hours=1)

_UNIT_SECONDS = {"s": 1, "m": 60, "h": 3600, "d": 86400}


# ---- Helpers ----------------------------------------------------------------

def _parse_duration(value: Any, *, field_name: str) -> timedelta:
    """Accept seconds (int/float/str) or '60s'/'5m'/'1h'/'14d'."""
    if isinstance(value, timedelta):
        return value
    if isinstance(value, (int, float)):
        seconds = float(value)
    elif isinstance(value, str):
        s = value.strip()
        if not s:
            raise ValueError(f"{field_name} must not be blank")
        try:
            seconds = float(s)
        except ValueError:
            unit = s[-1].lower()
            num = s[:-1].strip()
            if unit not in _UNIT_SECONDS or not num:
                raise ValueError(
                    f"{field_name} must be secs or 'Xs','Xm','Xh','Xd'"
                ) from None
            try:
                seconds = float(num) * _UNIT_SECONDS[unit]
            except ValueError as exc:
                raise ValueError(
                    f"{field_name} must be secs or 'Xs','Xm','Xh','Xd'"
                ) from exc
    else:
        raise TypeError(f"{field_name} must be number, duration string, or timedelta")
    if seconds <= 0:
        raise ValueError(f"{field_name} must be > 0 seconds")
    return timedelta(seconds=seconds)


# ---- Settings ---------------------------------------------------------------

class Settings(BaseSettings):
    """FastAPI settings loaded from AGORA_* environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="AGORA_",
        case_sensitive=False,
        extra="ignore",
        env_ignore_empty=True,
    )

    app_name: str = "AgoraCloud API"
    app_version: str = "0.1.0"
    logging_level: str = "INFO"

    # Database
    database_url: str = DEFAULT_DATABASE_URL
    database_echo: bool = False

    # Auth
    jwt_secret: SecretStr | None = None
    jwt_algorithm: str = "HS256"
    jwt_access_token_ttl: timedelta = DEFAULT_ACCESS_TOKEN_TTL
    admin_email: str | None = None

    # Proxy
    proxy_prefix: str = DEFAULT_PROXY_PREFIX
    proxy_service_domain: str = DEFAULT_SERVICE_DOMAIN
    proxy_resource_prefix: str = DEFAULT_RESOURCE_PREFIX
    proxy_target_scheme: str = "http"
    proxy_target_port: int = Field(default=80, ge=1, le=65535)
    proxy_connect_timeout: timedelta = DEFAULT_CONNECT_TIMEOUT
    proxy_read_timeout: timedelta = DEFAULT_READ_TIMEOUT

    # Event bus
    event_bus_partitions: int = Field(default=4, ge=1)
    event_bus_max_attempts: int = Field(default=5, ge=1)
    event_bus_retry_backoff: timedelta = DEFAULT_RETRY_BACKOFF

    @field_validator("logging_level")
    @classmethod
    def _validate_logging_level(cls, value: str) -> str:
        candidate = value.strip().upper()
        if not isinstance(logging.getLevelName(candidate), int):
            raise ValueError(f"Unknown logging level: {value}")
        return candidate

    @field_validator("proxy_prefix")
    @classmethod
    def _validate_proxy_prefix(cls, value: str) -> str:
        candidate = value.strip().rstrip("/")
        if not candidate.startswith("/"):
            raise ValueError("proxy_prefix must start with '/'")
        return candidate

    @field_validator("proxy_target_scheme")
    @classmethod
    def _validate_scheme(cls, value: str) -> str:
        candidate = value.strip().lower()
        if candidate not in {"http", "https"}:
            raise ValueError("proxy_target_scheme must be http or https")
        return candidate

    @field_validator(
        "jwt_access_token_ttl",
        "proxy_connect_timeout",
        "proxy_read_timeout",
        "event_bus_retry_backoff",
        mode="before",
    )
    @classmethod
    def _validate_duration(cls, value: Any, info) -> timedelta:
        return _parse_duration(value, field_name=info.field_name)

    @model_validator(mode="after")
    def _ensure_jwt_secret(self) -> Settings:
        if self.jwt_secret is None or not self.jwt_secret.get_secret_value().strip():
            object.__setattr__(self, "jwt_secret", SecretStr(secrets.token_urlsafe(32)))
        return self

    @property
    def jwt_secret_value(self) -> str:
        assert self.jwt_secret is not None
        return self.jwt_secret.get_secret_value()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide settings instance."""

    return Settings()


def reload_settings() -> Settings:
    """Clear the cached settings and load them again from the environment."""

    get_settings.cache_clear()
    return get_settings()


__all__ = ["Settings", "get_settings", "reload_settings"]
