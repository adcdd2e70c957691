"""Resolve references between stored records into externally-assigned identifiers.

A resource names another record either literally (``Reference``) or through a label
``Selector``; resolution reads the target from the object store and extracts the value
the remote API needs (usually the id the service assigned). Resolution never writes.

``ReferenceBinder`` wraps the resolver for one reconcile pass and remembers which
record every field resolved to, so the reconciler can pin those choices in
``status.bound_references`` once the external object exists.
"""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, ClassVar

from azdosync.domain.model import ConditionReason, ManagedResource, Reference, StoredObject
from azdosync.domain.ports.store import ObjectNotFoundError

if TYPE_CHECKING:
    from collections.abc import Callable

    from azdosync.domain.model import Selector
    from azdosync.domain.ports.store import ObjectStore

log = getLogger(__name__)

type ExtractValue[T: StoredObject] = Callable[[T], str | None]


class ReferenceResolutionError(RuntimeError):
    """Base class for reference failures; all of them are transient."""

    reason: ClassVar[ConditionReason] = ConditionReason.REFERENCE_NOT_FOUND

    def __init__(self, message: str, *, kind: str, reference: Reference | None = None) -> None:
        super().__init__(message)
        self.kind = kind
        self.reference = reference


class ReferenceNotFoundError(ReferenceResolutionError):
    reason = ConditionReason.REFERENCE_NOT_FOUND


class ReferenceNotReadyError(ReferenceResolutionError):
    """The target exists but has not been assigned the extracted value yet."""

    reason = ConditionReason.REFERENCE_NOT_READY


class ReferenceAmbiguousError(ReferenceResolutionError):
    reason = ConditionReason.REFERENCE_AMBIGUOUS


@dataclass(frozen=True, slots=True, kw_only=True)
class ResolutionRequest[T: StoredObject]:
    target: type[T]
    extract: ExtractValue[T]
    current_value: str | None = None
    reference: Reference | None = None
    selector: Selector | None = None
    bound: Reference | None = None
    namespace: str | None = None


@dataclass(frozen=True, slots=True)
class ResolutionResult[T: StoredObject]:
    value: str | None
    reference: Reference | None = None
    resolved: T | None = None


class ReferenceResolver:
    def __init__(self, store: ObjectStore) -> None:
        self.store = store

    def resolve[T: StoredObject](self, request: ResolutionRequest[T]) -> ResolutionResult[T]:
        """Turn a literal value, a reference or a selector into a concrete value.

        A previously bound reference takes precedence over both the spec reference and
        the selector. A plain value with nothing to resolve is returned unchanged.
        """

        kind = request.target.KIND
        reference = request.bound or request.reference
        if reference is not None:
            target = self.resolve_object(request.target, reference)
        elif request.selector is not None:
            target = self._select(request.target, request.selector, request.namespace)
        else:
            return ResolutionResult(request.current_value or None)

        value = request.extract(target)
        if not value:
            raise ReferenceNotReadyError(
                f"Referenced {kind} {target.reference} is not ready",
                kind=kind,
                reference=target.reference,
            )
        return ResolutionResult(value, target.reference, target)

    def resolve_object[T: StoredObject](self, target: type[T], reference: Reference) -> T:
        try:
            return self.store.get(target, reference.name, reference.namespace)
        except ObjectNotFoundError as exc:
            raise ReferenceNotFoundError(
                f"Referenced {target.KIND} {reference} not found",
                kind=target.KIND,
                reference=reference,
            ) from exc

    def find_by_value[T: StoredObject](
        self,
        target: type[T],
        extract: ExtractValue[T],
        value: str,
        *,
        namespace: str | None = None,
    ) -> T:
        """Reverse lookup: the single record of ``target`` whose extracted value is ``value``."""

        matches = [
            obj
            for obj in self.store.list(target)
            if (namespace is None or obj.metadata.namespace == namespace) and extract(obj) == value
        ]
        if not matches:
            raise ReferenceNotFoundError(
                f"No {target.KIND} carries the value {value!r}", kind=target.KIND
            )
        if len(matches) > 1:
            names = ", ".join(str(obj.reference) for obj in matches)
            raise ReferenceAmbiguousError(
                f"Several {target.KIND} records carry the value {value!r}: {names}",
                kind=target.KIND,
            )
        return matches[0]

    def _select[T: StoredObject](
        self, target: type[T], selector: Selector, namespace: str | None
    ) -> T:
        matches = [
            obj
            for obj in self.store.list(target, selector)
            if namespace is None or obj.metadata.namespace == namespace
        ]
        if not matches:
            raise ReferenceNotFoundError(
                f"No {target.KIND} matches selector {selector.match_labels}", kind=target.KIND
            )
        if len(matches) > 1:
            raise ReferenceAmbiguousError(
                f"{len(matches)} {target.KIND} records match selector {selector.match_labels}",
                kind=target.KIND,
            )
        return matches[0]


def status_id(resource: ManagedResource) -> str | None:
    return getattr(resource.status, "id", None)


class ReferenceBinder:
    """Per-pass view of the resolver that records what each field resolved to."""

    def __init__(self, resolver: ReferenceResolver, owner: ManagedResource) -> None:
        self.resolver = resolver
        self.owner = owner
        self._bindings: dict[str, Reference] = {}

    @property
    def bindings(self) -> dict[str, Reference]:
        return dict(self._bindings)

    def resolve[T: StoredObject](
        self,
        field: str,
        target: type[T],
        extract: ExtractValue[T],
        *,
        reference: Reference | None = None,
        selector: Selector | None = None,
        current_value: str | None = None,
    ) -> ResolutionResult[T]:
        result = self.resolver.resolve(
            ResolutionRequest(
                target=target,
                extract=extract,
                current_value=current_value,
                reference=reference,
                selector=selector,
                bound=self.owner.status.bound_references.get(field),
                namespace=self.owner.metadata.namespace if selector is not None else None,
            )
        )
        if result.reference is not None:
            self._bindings[field] = result.reference
        return result

    def require[T: ManagedResource](
        self,
        field: str,
        target: type[T],
        reference: Reference | None,
        extract: ExtractValue[T] = status_id,
    ) -> T:
        """Resolve ``reference`` to the target record, which must carry an extracted value."""

        result = self.resolve(field, target, extract, reference=reference)
        if result.resolved is None:
            raise ReferenceNotFoundError(
                f"{self.owner.KIND} {self.owner.reference} does not reference a {target.KIND} "
                f"for {field}",
                kind=target.KIND,
            )
        return result.resolved

    def require_id[T: ManagedResource](
        self, field: str, target: type[T], reference: Reference | None
    ) -> tuple[T, str]:
        """Resolve ``reference`` to the target record and the external id it carries."""

        resolved = self.require(field, target, reference)
        value = status_id(resolved)
        if not value:
            raise ReferenceNotReadyError(
                f"Referenced {target.KIND} {resolved.reference} has no id yet",
                kind=target.KIND,
                reference=resolved.reference,
            )
        return resolved, value

    def reset(self) -> None:
        self._bindings.clear()

    def commit(self) -> bool:
        """Pin this pass's bindings into the owner's status; returns whether anything changed."""

        bound = self.owner.status.bound_references
        changed = False
        for field, reference in self._bindings.items():
            if field not in bound:
                bound[field] = reference
                changed = True
        if changed:
            log.debug("Bound references of %s %s: %s", self.owner.KIND, self.owner.reference, bound)
        return changed


__all__ = [
    "ExtractValue",
    "ReferenceAmbiguousError",
    "ReferenceBinder",
    "ReferenceNotFoundError",
    "ReferenceNotReadyError",
    "ReferenceResolutionError",
    "ReferenceResolver",
    "ResolutionRequest",
    "ResolutionResult",
    "status_id",
]
