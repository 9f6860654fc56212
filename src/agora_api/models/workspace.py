from __future__ import annotations

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from agora_api.db import Base, IdPrimaryKeyMixin, TimestampMixin


class Workspace(IdPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "workspaces"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    members: Mapped[list[WorkspaceMember]] = relationship(
        back_populates="workspace",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="WorkspaceMember.position",
    )

    @property
    def user_ids(self) -> list[str]:
        return [member.user_id for member in self.members]


class WorkspaceMember(Base):
    """Membership row; ``position`` keeps the original join order."""

    __tablename__ = "workspace_members"

    workspace_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("workspaces.id", ondelete="CASCADE"), primary_key=True
    )
    user_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    position: Mapped[int] = mapped_column(nullable=False, default=0)

    workspace: Mapped[Workspace] = relationship(back_populates="members")


__all__ = ["Workspace", "WorkspaceMember"]
