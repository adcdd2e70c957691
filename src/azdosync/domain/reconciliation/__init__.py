"""Reconciliation core: scheduling, reference resolution and the per-resource state machine."""

from __future__ import annotations

from .errors import (
    ConnectionConfigError,
    ExternalAPIError,
    ExternalConflictError,
    ExternalNotFoundError,
    PassCancelledError,
    PassDeadlineExceededError,
)
from .manager import Controller, Manager
from .ratelimiter import ExponentialTimedFailureRateLimiter, FailureRequest, RateLimiter
from .reconciler import (
    Connector,
    ExternalClient,
    ExternalObservation,
    PassContext,
    ReconcileResult,
    Reconciler,
)
from .references import (
    ReferenceAmbiguousError,
    ReferenceBinder,
    ReferenceNotFoundError,
    ReferenceNotReadyError,
    ReferenceResolutionError,
    ReferenceResolver,
    ResolutionRequest,
    ResolutionResult,
    status_id,
)
from .workqueue import RateLimitingQueue

__all__ = [
    "ConnectionConfigError",
    "Connector",
    "Controller",
    "ExponentialTimedFailureRateLimiter",
    "ExternalAPIError",
    "ExternalClient",
    "ExternalConflictError",
    "ExternalNotFoundError",
    "ExternalObservation",
    "FailureRequest",
    "Manager",
    "PassCancelledError",
    "PassContext",
    "PassDeadlineExceededError",
    "RateLimiter",
    "RateLimitingQueue",
    "ReconcileResult",
    "Reconciler",
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
