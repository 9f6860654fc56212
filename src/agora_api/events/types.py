"""Lifecycle events exchanged between features."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import ClassVar

from agora_api.common.ids import generate_id
from agora_api.core.rbac import Action, GlobalRole
from agora_api.db import utc_now


@dataclass(frozen=True, kw_only=True)
class LifecycleEvent(ABC):
    """Base class: every event carries an id, a timestamp and an ordering key."""

    name: ClassVar[str] = "event"

    event_id: str = field(default_factory=generate_id)
    occurred_at: datetime = field(default_factory=utc_now)

    @property
    @abstractmethod
    def ordering_key(self) -> str:
        """Partition key; events sharing it are handled in publish order."""


@dataclass(frozen=True, kw_only=True)
class UserCreated(LifecycleEvent):
    name: ClassVar[str] = "user.created"

    user_id: str
    role: GlobalRole
    permissions: frozenset[Action] | None = None

    @property
    def ordering_key(self) -> str:
        return self.user_id


@dataclass(frozen=True, kw_only=True)
class UserDeleted(LifecycleEvent):
    name: ClassVar[str] = "user.deleted"

    user_id: str

    @property
    def ordering_key(self) -> str:
        return self.user_id


@dataclass(frozen=True, kw_only=True)
class WorkspaceCreated(LifecycleEvent):
    name: ClassVar[str] = "workspace.created"

    workspace_id: str
    owner_id: str

    @property
    def ordering_key(self) -> str:
        return self.owner_id


@dataclass(frozen=True, kw_only=True)
class WorkspaceDeleted(LifecycleEvent):
    name: ClassVar[str] = "workspace.deleted"

    workspace_id: str

    @property
    def ordering_key(self) -> str:
        return self.workspace_id


@dataclass(frozen=True, kw_only=True)
class WorkspaceUserAdded(LifecycleEvent):
    name: ClassVar[str] = "workspace.user.added"

    workspace_id: str
    user_id: str

    @property
    def ordering_key(self) -> str:
        return self.user_id


@dataclass(frozen=True, kw_only=True)
class WorkspaceUserRemoved(LifecycleEvent):
    name: ClassVar[str] = "workspace.user.removed"

    workspace_id: str
    user_id: str

    @property
    def ordering_key(self) -> str:
        return self.user_id


__all__ = [
    "LifecycleEvent",
    "UserCreated",
    "UserDeleted",
    "WorkspaceCreated",
    "WorkspaceDeleted",
    "WorkspaceUserAdded",
    "WorkspaceUserRemoved",
]
