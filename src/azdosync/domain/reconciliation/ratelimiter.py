"""Failure-aware retry delays for keys scheduled on the work queue."""

from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Callable, Hashable


class RateLimiter(Protocol):
    def when(self, key: Hashable) -> float: ...

    def num_requeues(self, key: Hashable) -> int: ...

    def forget(self, key: Hashable) -> None: ...


@dataclass(slots=True)
class FailureRequest:
    attempts: int
    last_attempt: float


class ExponentialTimedFailureRateLimiter:
    """Exponential back-off per key that resets once a key has been quiet for a while.

    The first failure of a key costs ``base_delay``; each later failure doubles the
    delay up to ``max_delay``. A key whose last recorded failure is older than twice
    ``max_delay`` is considered recovered: it is retried immediately and only then
    becomes eligible for ``forget``.
    """

    def __init__(
        self,
        base_delay: float,
        max_delay: float,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if base_delay < 0 or max_delay < 0:
            raise ValueError("Delays must be non-negative")
        self.base_delay = base_delay
        self.max_delay = max_delay
        self._clock = clock
        self._lock = threading.Lock()
        self._failures: dict[Hashable, FailureRequest] = {}

    def when(self, key: Hashable) -> float:
        """Record a failure of ``key`` and return how long to wait before retrying it."""

        with self._lock:
            now = self._clock()
            failure = self._failures.get(key)
            if failure is None:
                self._failures[key] = FailureRequest(attempts=1, last_attempt=now)
                return self.base_delay

            if self._is_stale(failure, now):
                return 0.0

            exponent = failure.attempts
            failure.attempts += 1
            failure.last_attempt = now

            try:
                backoff = self.base_delay * math.pow(2, exponent)
            except OverflowError:
                return self.max_delay
            if math.isinf(backoff) or backoff > self.max_delay:
                return self.max_delay
            return backoff

    def num_requeues(self, key: Hashable) -> int:
        with self._lock:
            failure = self._failures.get(key)
            return failure.attempts if failure else 0

    def forget(self, key: Hashable) -> None:
        """Drop the failure record of ``key`` if it has gone stale."""

        with self._lock:
            failure = self._failures.get(key)
            if failure is not None and self._is_stale(failure, self._clock()):
                del self._failures[key]

    def _is_stale(self, failure: FailureRequest, now: float) -> bool:
        return now - failure.last_attempt > 2 * self.max_delay


__all__ = ["ExponentialTimedFailureRateLimiter", "FailureRequest", "RateLimiter"]
