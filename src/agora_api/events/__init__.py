"""Lifecycle events and the in-process bus that delivers them."""

from .bus import DeadLetter, EventBus
from .types import (
    LifecycleEvent,
    UserCreated,
    UserDeleted,
    WorkspaceCreated,
    WorkspaceDeleted,
    WorkspaceUserAdded,
    WorkspaceUserRemoved,
)

__all__ = [
    "DeadLetter",
    "EventBus",
    "LifecycleEvent",
    "UserCreated",
    "UserDeleted",
    "WorkspaceCreated",
    "WorkspaceDeleted",
    "WorkspaceUserAdded",
    "WorkspaceUserRemoved",
]
