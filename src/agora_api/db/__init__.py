"""DB package exports."""

from .base import NAMING_CONVENTION, Base, IdPrimaryKeyMixin, TimestampMixin, metadata, utc_now
from .database import Database, DatabaseConfig, build_async_url, get_db_session, session_scope
from .types import UTCDateTime

__all__ = [
    "Base",
    "metadata",
    "NAMING_CONVENTION",
    "utc_now",
    "IdPrimaryKeyMixin",
    "TimestampMixin",
    "UTCDateTime",
    "Database",
    "DatabaseConfig",
    "build_async_url",
    "session_scope",
    "get_db_session",
]
