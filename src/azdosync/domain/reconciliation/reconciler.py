"""Per-resource reconciliation state machine.

One pass over a stored record runs ``connect -> observe`` and then at most one of
``create``, ``update`` or ``delete`` before persisting the resulting status. Kind
specific behaviour lives behind the ``Connector``/``ExternalClient`` protocols; this
module owns the policy gates, drift handling, event recording, status persistence and
the decision of when the key is looked at next.
"""

from __future__ import annotations

import copy
import threading
import time
from contextlib import ExitStack
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Final, Protocol

from azdosync.domain.model import (
    ConditionReason,
    EventType,
    ItemKey,
    ManagedResource,
    ManagementAction,
)
from azdosync.domain.ports.store import ObjectNotFoundError, StoreConflictError

from . import conditions
from .errors import ExternalConflictError, PassCancelledError, PassDeadlineExceededError
from .references import (
    ReferenceBinder,
    ReferenceNotFoundError,
    ReferenceResolutionError,
    ReferenceResolver,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from azdosync.domain.ports.events import EventRecorder
    from azdosync.domain.ports.store import ObjectStore

log = getLogger(__name__)

STATUS_WRITE_ATTEMPTS: Final[int] = 5

REASON_CREATED: Final[str] = "CreatedExternalResource"
REASON_CREATE_FAILED: Final[str] = "CannotCreateExternalResource"
REASON_ALREADY_EXISTS: Final[str] = "ExternalResourceAlreadyExists"
REASON_UPDATED: Final[str] = "UpdatedExternalResource"
REASON_UPDATE_FAILED: Final[str] = "CannotUpdateExternalResource"
REASON_DELETED: Final[str] = "DeletedExternalResource"
REASON_DELETE_FAILED: Final[str] = "CannotDeleteExternalResource"
REASON_ACTION_SKIPPED: Final[str] = "ManagementPolicySkipped"


@dataclass(frozen=True, slots=True)
class ExternalObservation:
    exists: bool
    up_to_date: bool = True
    available: bool = True


@dataclass(slots=True)
class PassContext:
    """State shared by every step of one reconcile pass.

    Resources opened during the pass register their release on ``cleanup``; it is
    unwound once the pass ends.
    """

    resolver: ReferenceResolver
    binder: ReferenceBinder
    deadline: float
    cancel_event: threading.Event = field(default_factory=threading.Event)
    clock: Callable[[], float] = time.monotonic
    cleanup: ExitStack = field(default_factory=ExitStack)

    def remaining(self) -> float:
        return max(self.deadline - self.clock(), 0.0)

    def raise_if_cancelled(self) -> None:
        if self.cancel_event.is_set():
            raise PassCancelledError("Reconcile pass cancelled")
        if self.clock() >= self.deadline:
            raise PassDeadlineExceededError("Reconcile pass exceeded its deadline")


class ExternalClient[T: ManagedResource](Protocol):
    """Kind-specific operations against the remote service.

    Implementations record the identifiers they learn on ``resource.status``; the
    reconciler persists the status after every step.
    """

    def observe(self, resource: T, ctx: PassContext) -> ExternalObservation: ...

    def create(self, resource: T, ctx: PassContext) -> None: ...

    def update(self, resource: T, ctx: PassContext) -> None: ...

    def delete(self, resource: T, ctx: PassContext) -> None: ...


class Connector[T: ManagedResource](Protocol):
    def connect(self, resource: T, ctx: PassContext) -> ExternalClient[T]: ...


@dataclass(frozen=True, slots=True)
class ReconcileResult:
    requeue_after: float | None = None
    requeue: bool = False
    error: BaseException | None = None
    released: bool = False

    @property
    def rate_limited(self) -> bool:
        return self.requeue or self.error is not None


class Reconciler[T: ManagedResource]:
    def __init__(
        self,
        kind: type[T],
        *,
        store: ObjectStore,
        connector: Connector[T],
        recorder: EventRecorder,
        poll_interval: float,
        pass_timeout: float,
        resolver: ReferenceResolver | None = None,
        cancel_event: threading.Event | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.kind = kind
        self.store = store
        self.connector = connector
        self.recorder = recorder
        self.resolver = resolver or ReferenceResolver(store)
        self.poll_interval = poll_interval
        self.pass_timeout = pass_timeout
        self.cancel_event = cancel_event or threading.Event()
        self._clock = clock

    def reconcile(self, key: ItemKey) -> ReconcileResult:
        try:
            resource = self.store.get(self.kind, key.name, key.namespace)
        except ObjectNotFoundError:
            log.debug("%s no longer exists, nothing to reconcile", key)
            return ReconcileResult()

        original_status = copy.deepcopy(resource.status)
        ctx = PassContext(
            resolver=self.resolver,
            binder=ReferenceBinder(self.resolver, resource),
            deadline=self._clock() + self.pass_timeout,
            cancel_event=self.cancel_event,
            clock=self._clock,
        )

        try:
            with ctx.cleanup:
                result = self._run(resource, ctx)
        except PassCancelledError as exc:
            log.info("%s: %s", key, exc)
            return ReconcileResult(requeue=True, error=exc)
        except ReferenceResolutionError as exc:
            log.info("%s: %s", key, exc)
            resource.status.set_conditions(conditions.reconcile_error(exc, exc.reason))
            result = ReconcileResult(error=exc)
        except Exception as exc:
            log.warning("%s: reconcile failed: %s", key, exc)
            resource.status.set_conditions(conditions.reconcile_error(exc))
            result = ReconcileResult(error=exc)

        if result.released:
            return result
        if resource.status != original_status:
            try:
                self._persist_status(resource)
            except Exception as exc:
                log.warning("%s: cannot persist status: %s", key, exc)
                return ReconcileResult(error=exc)
        return result

    def _run(self, resource: T, ctx: PassContext) -> ReconcileResult:
        ctx.raise_if_cancelled()
        external = self.connector.connect(resource, ctx)

        ctx.raise_if_cancelled()
        observation = self._observe(resource, external, ctx)
        ctx.raise_if_cancelled()

        if resource.deletion_requested:
            return self._handle_deletion(resource, external, observation, ctx)

        if not observation.exists:
            if resource.is_created:
                self._handle_drift(resource, ctx)
            return self._handle_creation(resource, external, ctx)

        if not observation.up_to_date:
            self._handle_update(resource, external, ctx)

        if resource.is_created:
            ctx.binder.commit()
        resource.status.set_conditions(
            conditions.available() if observation.available else conditions.creating(),
            conditions.reconcile_success(),
        )
        return ReconcileResult(requeue_after=self.poll_interval)

    def _observe(
        self, resource: T, external: ExternalClient[T], ctx: PassContext
    ) -> ExternalObservation:
        try:
            return external.observe(resource, ctx)
        except ReferenceNotFoundError as exc:
            if not resource.deletion_requested:
                raise
            # The owning record is gone, so the external resource went with it.
            log.info(
                "%s %s: %s, treating the external resource as gone",
                resource.KIND,
                resource.reference,
                exc,
            )
            return ExternalObservation(exists=False)

    def _handle_drift(self, resource: T, ctx: PassContext) -> None:
        message = (
            f"External resource {resource.status.external_name} of {resource.KIND} "
            f"{resource.reference} no longer exists"
        )
        log.warning(message)
        self.recorder.event(
            resource, EventType.WARNING, ConditionReason.EXTERNAL_RESOURCE_MISSING, message
        )
        resource.status.set_conditions(conditions.external_resource_missing(message))
        resource.status.forget_external()
        ctx.binder.reset()
        self._persist_status(resource)

    def _handle_creation(
        self, resource: T, external: ExternalClient[T], ctx: PassContext
    ) -> ReconcileResult:
        if not self._allowed(resource, ManagementAction.CREATE):
            resource.status.set_conditions(conditions.reconcile_success())
            return ReconcileResult(requeue_after=self.poll_interval)

        resource.status.set_conditions(conditions.creating())
        try:
            external.create(resource, ctx)
        except ExternalConflictError as exc:
            message = f"{resource.KIND} {resource.reference} already exists remotely: {exc}"
            log.info(message)
            self.recorder.event(resource, EventType.NORMAL, REASON_ALREADY_EXISTS, message)
            return ReconcileResult(requeue=True)
        except PassCancelledError:
            self._persist_status(resource)
            raise
        except Exception as exc:
            self.recorder.event(
                resource,
                EventType.WARNING,
                REASON_CREATE_FAILED,
                f"Cannot create {resource.KIND} {resource.reference}: {exc}",
            )
            self._persist_status(resource)
            raise

        if resource.is_created:
            ctx.binder.commit()
        # Identifiers must be stored before anything else can fail.
        self._persist_status(resource)
        self.recorder.event(
            resource,
            EventType.NORMAL,
            REASON_CREATED,
            f"Created {resource.KIND} {resource.reference} ({resource.status.external_name})",
        )
        resource.status.set_conditions(conditions.reconcile_success())
        return ReconcileResult(requeue_after=self.poll_interval)

    def _handle_update(self, resource: T, external: ExternalClient[T], ctx: PassContext) -> None:
        if not self._allowed(resource, ManagementAction.UPDATE):
            return
        try:
            external.update(resource, ctx)
        except PassCancelledError:
            raise
        except Exception as exc:
            self.recorder.event(
                resource,
                EventType.WARNING,
                REASON_UPDATE_FAILED,
                f"Cannot update {resource.KIND} {resource.reference}: {exc}",
            )
            raise
        self.recorder.event(
            resource,
            EventType.NORMAL,
            REASON_UPDATED,
            f"Updated {resource.KIND} {resource.reference}",
        )

    def _handle_deletion(
        self,
        resource: T,
        external: ExternalClient[T],
        observation: ExternalObservation,
        ctx: PassContext,
    ) -> ReconcileResult:
        if observation.exists:
            if self._allowed(resource, ManagementAction.DELETE):
                resource.status.set_conditions(conditions.deleting())
                try:
                    external.delete(resource, ctx)
                except PassCancelledError:
                    raise
                except Exception as exc:
                    self.recorder.event(
                        resource,
                        EventType.WARNING,
                        REASON_DELETE_FAILED,
                        f"Cannot delete {resource.KIND} {resource.reference}: {exc}",
                    )
                    raise
                self.recorder.event(
                    resource,
                    EventType.NORMAL,
                    REASON_DELETED,
                    f"Deleted {resource.KIND} {resource.reference}",
                )

        resource.status.forget_external()
        try:
            self.store.delete(resource)
        except ObjectNotFoundError:
            pass
        log.info("Released %s %s", resource.KIND, resource.reference)
        return ReconcileResult(released=True)

    def _allowed(self, resource: T, action: ManagementAction) -> bool:
        if resource.is_action_allowed(action):
            return True
        message = (
            f"Management policies of {resource.KIND} {resource.reference} do not allow "
            f"{action}, skipping"
        )
        log.info(message)
        self.recorder.event(resource, EventType.NORMAL, REASON_ACTION_SKIPPED, message)
        return False

    def _persist_status(self, resource: T) -> None:
        """Write ``resource.status``, re-reading and re-applying it on version conflicts."""

        candidate = resource
        for attempt in range(1, STATUS_WRITE_ATTEMPTS + 1):
            try:
                stored = self.store.update_status(candidate)
            except StoreConflictError:
                if attempt == STATUS_WRITE_ATTEMPTS:
                    raise
                log.debug(
                    "Status write of %s %s conflicted (attempt %d), retrying",
                    resource.KIND,
                    resource.reference,
                    attempt,
                )
                latest = self.store.get(self.kind, resource.metadata.name, resource.metadata.namespace)
                latest.status = copy.deepcopy(resource.status)
                candidate = latest
                continue
            resource.metadata.resource_version = stored.metadata.resource_version
            return


__all__ = [
    "STATUS_WRITE_ATTEMPTS",
    "Connector",
    "ExternalClient",
    "ExternalObservation",
    "PassContext",
    "ReconcileResult",
    "Reconciler",
]
