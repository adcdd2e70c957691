"""Controllers: watch a kind, schedule its keys and run reconcile passes on worker threads."""

from __future__ import annotations

import threading
import time
from logging import getLogger
from typing import TYPE_CHECKING

from .ratelimiter import ExponentialTimedFailureRateLimiter
from .reconciler import Reconciler
from .workqueue import RateLimitingQueue

if TYPE_CHECKING:
    from collections.abc import Callable

    from azdosync.config import ControllerConfig
    from azdosync.domain.model import ItemKey, ManagedResource
    from azdosync.domain.ports.events import EventRecorder
    from azdosync.domain.ports.store import ObjectStore, Unsubscribe, WatchEvent

    from .ratelimiter import RateLimiter
    from .reconciler import Connector, ReconcileResult

log = getLogger(__name__)

_WORKER_POLL_SECONDS = 0.5


class Controller[T: ManagedResource]:
    def __init__(
        self,
        reconciler: Reconciler[T],
        queue: RateLimitingQueue[ItemKey],
        *,
        workers: int,
    ) -> None:
        self.reconciler = reconciler
        self.queue = queue
        self.workers = workers
        self._threads: list[threading.Thread] = []
        self._unsubscribe: Unsubscribe | None = None

    @property
    def kind(self) -> type[T]:
        return self.reconciler.kind

    def start(self) -> None:
        store = self.reconciler.store
        self._unsubscribe = store.watch(self.kind, self._on_event)
        for obj in store.list(self.kind):
            self.queue.add(obj.key)
        for index in range(self.workers):
            thread = threading.Thread(
                target=self._worker,
                name=f"{self.kind.KIND}-worker-{index}",
                daemon=True,
            )
            thread.start()
            self._threads.append(thread)
        log.info("Started %s controller with %d workers", self.kind.KIND, self.workers)

    def stop(self, timeout: float | None = None) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self.queue.shut_down()
        for thread in self._threads:
            thread.join(timeout)
        self._threads.clear()

    def process_next(self, timeout: float | None = None) -> ReconcileResult | None:
        """Take one ready key off the queue and reconcile it."""

        key = self.queue.get(timeout)
        if key is None:
            return None
        try:
            result = self.reconciler.reconcile(key)
            self._schedule(key, result)
            return result
        finally:
            self.queue.done(key)

    def _worker(self) -> None:
        while not self.queue.shutting_down:
            try:
                self.process_next(_WORKER_POLL_SECONDS)
            except Exception:
                log.exception("Unexpected failure in %s worker", self.kind.KIND)

    def _schedule(self, key: ItemKey, result: ReconcileResult) -> None:
        if result.released:
            self.queue.forget(key)
            return
        if result.rate_limited:
            delay = self.queue.add_rate_limited(key)
            log.debug(
                "%s requeued in %.2fs after %d failures",
                key,
                delay,
                self.queue.num_requeues(key),
            )
            return
        self.queue.forget(key)
        if result.requeue_after is not None:
            self.queue.add_after(key, result.requeue_after)

    def _on_event(self, event: WatchEvent[T]) -> None:
        self.queue.add(event.obj.key)


class Manager:
    """Owns the shared rate limiter and one controller per registered kind."""

    def __init__(
        self,
        store: ObjectStore,
        recorder: EventRecorder,
        config: ControllerConfig,
        *,
        rate_limiter: RateLimiter | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.store = store
        self.recorder = recorder
        self.config = config
        self.rate_limiter = rate_limiter or ExponentialTimedFailureRateLimiter(
            config.min_error_retry_interval,
            config.max_error_retry_interval,
            clock=clock,
        )
        self.cancel_event = threading.Event()
        self._clock = clock
        self.controllers: list[Controller[ManagedResource]] = []

    def register[T: ManagedResource](self, kind: type[T], connector: Connector[T]) -> Controller[T]:
        reconciler = Reconciler(
            kind,
            store=self.store,
            connector=connector,
            recorder=self.recorder,
            poll_interval=self.config.poll_interval,
            pass_timeout=self.config.pass_timeout,
            cancel_event=self.cancel_event,
            clock=self._clock,
        )
        queue: RateLimitingQueue[ItemKey] = RateLimitingQueue(self.rate_limiter, clock=self._clock)
        controller = Controller(reconciler, queue, workers=self.config.max_reconcile_rate)
        self.controllers.append(controller)  # type: ignore[arg-type]
        return controller

    def start(self) -> None:
        for controller in self.controllers:
            controller.start()

    def stop(self, timeout: float | None = None) -> None:
        self.cancel_event.set()
        for controller in self.controllers:
            controller.stop(timeout)

    def run(self, stop_event: threading.Event) -> None:
        self.start()
        try:
            stop_event.wait()
        finally:
            self.stop()

    def run_once(self) -> dict[ItemKey, ReconcileResult]:
        """Reconcile every stored record once, synchronously, in registration order."""

        results: dict[ItemKey, ReconcileResult] = {}
        for controller in self.controllers:
            for obj in self.store.list(controller.kind):
                results[obj.key] = controller.reconciler.reconcile(obj.key)
        return results


__all__ = ["Controller", "Manager"]
