"""Port for audit events emitted while reconciling."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from azdosync.domain.model import EventType, StoredObject


@runtime_checkable
class EventRecorder(Protocol):
    def event(self, obj: StoredObject, event_type: EventType, reason: str, message: str) -> None: ...


__all__ = ["EventRecorder"]
