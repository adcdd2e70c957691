"""Domain ports (interfaces for adapters)."""

from __future__ import annotations

from .events import EventRecorder
from .store import (
    ObjectNotFoundError,
    ObjectStore,
    StoreConflictError,
    Unsubscribe,
    WatchEvent,
    WatchEventType,
    WatchHandler,
)

__all__ = [
    "EventRecorder",
    "ObjectNotFoundError",
    "ObjectStore",
    "StoreConflictError",
    "Unsubscribe",
    "WatchEvent",
    "WatchEventType",
    "WatchHandler",
]
