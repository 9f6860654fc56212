from __future__ import annotations

import enum

from sqlalchemy import Enum, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from agora_api.db import Base, IdPrimaryKeyMixin, TimestampMixin


class DeploymentStatus(str, enum.Enum):
    PENDING = "pending"
    CREATING = "creating"
    RUNNING = "running"
    UPDATING = "updating"
    DELETING = "deleting"
    FAILED = "failed"
    UNKNOWN = "unknown"


class Deployment(IdPrimaryKeyMixin, TimestampMixin, Base):
    """Deployment row written by the deployment lifecycle; read-only here."""

    __tablename__ = "deployments"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    workspace_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("workspaces.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    status: Mapped[DeploymentStatus] = mapped_column(
        Enum(DeploymentStatus, native_enum=False, length=20),
        nullable=False,
        default=DeploymentStatus.PENDING,
    )


__all__ = ["Deployment", "DeploymentStatus"]
