"""Append-only audit trail."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, Boolean, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from agora_api.db import Base, IdPrimaryKeyMixin, UTCDateTime, utc_now


class AuditLog(IdPrimaryKeyMixin, Base):
    __tablename__ = "audit_logs"

    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utc_now)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    workspace_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    actions: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    is_successful: Mapped[bool] = mapped_column(Boolean, nullable=False)
    user_agent: Mapped[str] = mapped_column(String(512), nullable=False, default="")
    ip: Mapped[str | None] = mapped_column(String(64), nullable=True)

    __table_args__ = (
        Index("audit_logs_user_id_idx", "user_id"),
        Index("audit_logs_workspace_id_idx", "workspace_id"),
    )


__all__ = ["AuditLog"]
