"""Port for the watchable object store holding desired-state records."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Callable

    from azdosync.domain.model import Selector, StoredObject


class ObjectNotFoundError(RuntimeError):
    """Raised when the store holds no record under the requested name."""

    def __init__(self, kind: str, name: str, namespace: str) -> None:
        super().__init__(f"{kind} {namespace}/{name} not found")
        self.kind = kind
        self.name = name
        self.namespace = namespace


class StoreConflictError(RuntimeError):
    """Raised when a write carries a stale ``resource_version``."""

    def __init__(self, kind: str, name: str, namespace: str, *, expected: int, actual: int) -> None:
        super().__init__(
            f"{kind} {namespace}/{name} was modified (version {expected}, store has {actual})"
        )
        self.kind = kind
        self.name = name
        self.namespace = namespace
        self.expected = expected
        self.actual = actual


class WatchEventType(StrEnum):
    ADDED = "Added"
    MODIFIED = "Modified"
    DELETED = "Deleted"


@dataclass(frozen=True, slots=True)
class WatchEvent[T: StoredObject]:
    type: WatchEventType
    obj: T


type WatchHandler[T: StoredObject] = Callable[[WatchEvent[T]], None]
type Unsubscribe = Callable[[], None]


@runtime_checkable
class ObjectStore(Protocol):
    """Typed access to stored records; every read returns an independent copy."""

    def get[T: StoredObject](self, kind: type[T], name: str, namespace: str) -> T: ...

    def list[T: StoredObject](self, kind: type[T], selector: Selector | None = None) -> list[T]: ...

    def update_status[T: StoredObject](self, obj: T) -> T:
        """Persist ``obj.status`` when ``obj.metadata.resource_version`` is current."""
        ...

    def delete(self, obj: StoredObject) -> None:
        """Release a record whose deletion was requested."""
        ...

    def watch[T: StoredObject](self, kind: type[T], handler: WatchHandler[T]) -> Unsubscribe: ...


__all__ = [
    "ObjectNotFoundError",
    "ObjectStore",
    "StoreConflictError",
    "Unsubscribe",
    "WatchEvent",
    "WatchEventType",
    "WatchHandler",
]
