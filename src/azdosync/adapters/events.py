"""Event recorders: one that logs, one that remembers (for tests and ``--once`` runs)."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from azdosync.domain.model import EventType

if TYPE_CHECKING:
    from azdosync.domain.model import ItemKey, StoredObject

log = getLogger(__name__)


class LoggingEventRecorder:
    def event(self, obj: StoredObject, event_type: EventType, reason: str, message: str) -> None:
        if event_type is EventType.WARNING:
            log.warning("%s %s: %s", obj.key, reason, message)
        else:
            log.info("%s %s: %s", obj.key, reason, message)


@dataclass(frozen=True, slots=True)
class RecordedEvent:
    key: ItemKey
    type: EventType
    reason: str
    message: str


class InMemoryEventRecorder:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._events: list[RecordedEvent] = []

    def event(self, obj: StoredObject, event_type: EventType, reason: str, message: str) -> None:
        with self._lock:
            self._events.append(RecordedEvent(obj.key, event_type, reason, message))

    @property
    def events(self) -> list[RecordedEvent]:
        with self._lock:
            return list(self._events)

    def reasons(self, event_type: EventType | None = None) -> list[str]:
        return [
            event.reason for event in self.events if event_type is None or event.type is event_type
        ]


__all__ = ["InMemoryEventRecorder", "LoggingEventRecorder", "RecordedEvent"]
