"""In-memory object store used by the CLI and the test-suite."""

from __future__ import annotations

import copy
import itertools
import threading
from collections import defaultdict
from logging import getLogger
from typing import TYPE_CHECKING

from azdosync.domain.model import ManagedResource, ResourceKind, StoredObject, utcnow
from azdosync.domain.ports.store import (
    ObjectNotFoundError,
    StoreConflictError,
    Unsubscribe,
    WatchEvent,
    WatchEventType,
    WatchHandler,
)

if TYPE_CHECKING:
    from azdosync.domain.model import Selector

log = getLogger(__name__)

type _Key = tuple[ResourceKind, str, str]


def _key(kind: type[StoredObject], name: str, namespace: str) -> _Key:
    return kind.KIND, namespace, name


class InMemoryObjectStore:
    """Watchable store with optimistic concurrency on ``metadata.resource_version``.

    Every read and every watch notification hands out a deep copy. Status-only writes
    do not notify watchers, so a reconcile pass never re-triggers itself.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._objects: dict[_Key, StoredObject] = {}
        self._handlers: dict[ResourceKind, list[WatchHandler[StoredObject]]] = defaultdict(list)
        self._versions = itertools.count(1)

    def get[T: StoredObject](self, kind: type[T], name: str, namespace: str) -> T:
        with self._lock:
            obj = self._objects.get(_key(kind, name, namespace))
            if obj is None or not isinstance(obj, kind):
                raise ObjectNotFoundError(kind.KIND, name, namespace)
            return copy.deepcopy(obj)

    def list[T: StoredObject](self, kind: type[T], selector: Selector | None = None) -> list[T]:
        with self._lock:
            found = [
                copy.deepcopy(obj)
                for (stored_kind, _, _), obj in sorted(self._objects.items())
                if stored_kind == kind.KIND
                and isinstance(obj, kind)
                and (selector is None or selector.matches(obj.metadata.labels))
            ]
        return found

    def update_status[T: StoredObject](self, obj: T) -> T:
        meta = obj.metadata
        with self._lock:
            current = self._current(obj)
            if current.metadata.resource_version != meta.resource_version:
                raise StoreConflictError(
                    obj.KIND,
                    meta.name,
                    meta.namespace,
                    expected=meta.resource_version,
                    actual=current.metadata.resource_version,
                )
            if not isinstance(obj, ManagedResource) or not isinstance(current, ManagedResource):
                raise TypeError(f"{obj.KIND} records carry no status")
            updated = copy.deepcopy(current)
            updated.status = copy.deepcopy(obj.status)
            updated.metadata.resource_version = next(self._versions)
            self._objects[_key(type(obj), meta.name, meta.namespace)] = updated
            return copy.deepcopy(updated)  # type: ignore[return-value]

    def delete(self, obj: StoredObject) -> None:
        meta = obj.metadata
        with self._lock:
            current = self._current(obj)
            del self._objects[_key(type(obj), meta.name, meta.namespace)]
        log.debug("Removed %s %s from the store", obj.KIND, obj.reference)
        self._notify(WatchEventType.DELETED, current)

    def watch[T: StoredObject](self, kind: type[T], handler: WatchHandler[T]) -> Unsubscribe:
        with self._lock:
            self._handlers[kind.KIND].append(handler)  # type: ignore[arg-type]

        def unsubscribe() -> None:
            with self._lock:
                handlers = self._handlers[kind.KIND]
                if handler in handlers:
                    handlers.remove(handler)  # type: ignore[arg-type]

        return unsubscribe

    def apply[T: StoredObject](self, obj: T) -> T:
        """Create or replace the desired state of a record; an existing status is kept."""

        meta = obj.metadata
        key = _key(type(obj), meta.name, meta.namespace)
        with self._lock:
            stored = copy.deepcopy(obj)
            existing = self._objects.get(key)
            if existing is None:
                stored.metadata.generation = 1
                event_type = WatchEventType.ADDED
            else:
                if isinstance(existing, ManagedResource) and isinstance(stored, ManagedResource):
                    stored.status = copy.deepcopy(existing.status)
                    changed = existing.spec != stored.spec
                else:
                    changed = existing != stored
                stored.metadata.generation = existing.metadata.generation + int(changed)
                stored.metadata.deletion_requested_at = existing.metadata.deletion_requested_at
                event_type = WatchEventType.MODIFIED
            stored.metadata.resource_version = next(self._versions)
            self._objects[key] = stored
            result = copy.deepcopy(stored)
        self._notify(event_type, stored)
        return result

    def request_deletion(self, kind: type[StoredObject], name: str, namespace: str) -> None:
        """Mark a record for deletion; its controller releases it once cleaned up."""

        with self._lock:
            obj = self._objects.get(_key(kind, name, namespace))
            if obj is None:
                raise ObjectNotFoundError(kind.KIND, name, namespace)
            if obj.metadata.deletion_requested_at is None:
                obj.metadata.deletion_requested_at = utcnow()
            obj.metadata.resource_version = next(self._versions)
        self._notify(WatchEventType.MODIFIED, obj)

    def _current(self, obj: StoredObject) -> StoredObject:
        meta = obj.metadata
        current = self._objects.get(_key(type(obj), meta.name, meta.namespace))
        if current is None:
            raise ObjectNotFoundError(obj.KIND, meta.name, meta.namespace)
        return current

    def _notify(self, event_type: WatchEventType, obj: StoredObject) -> None:
        with self._lock:
            handlers = list(self._handlers[obj.KIND])
            snapshot = copy.deepcopy(obj)
        for handler in handlers:
            handler(WatchEvent(event_type, copy.deepcopy(snapshot)))


__all__ = ["InMemoryObjectStore"]
