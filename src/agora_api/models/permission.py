"""Per-user permission document."""

from __future__ import annotations

from typing import Any

from sqlalchemy import JSON, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from agora_api.db import Base, TimestampMixin


class PermissionRecord(TimestampMixin, Base):
    """Denormalized global and per-workspace grants for one user.

    ``global_grant`` holds ``{"role": ..., "permissions": [...]}`` and
    ``workspaces`` maps workspace id to the same shape. ``version`` increases
    on every write and guards read-modify-write cycles.
    """

    __tablename__ = "permissions"

    user_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    global_grant: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    workspaces: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)


__all__ = ["PermissionRecord"]
