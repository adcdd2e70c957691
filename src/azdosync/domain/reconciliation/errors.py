"""Error taxonomy shared by the reconciliation core and its adapters."""

from __future__ import annotations


class ConnectionConfigError(RuntimeError):
    """Raised when a resource's connection settings or credentials cannot be loaded."""


class ExternalAPIError(RuntimeError):
    """Raised when the remote service rejects a request."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ExternalNotFoundError(ExternalAPIError):
    """The remote object does not exist; an Observe outcome rather than a failure."""


class ExternalConflictError(ExternalAPIError):
    """The remote object already exists."""


class PassCancelledError(RuntimeError):
    """Raised at a checkpoint once the running pass has been cancelled."""


class PassDeadlineExceededError(PassCancelledError):
    """Raised at a checkpoint once the pass has outlived its deadline."""


__all__ = [
    "ConnectionConfigError",
    "ExternalAPIError",
    "ExternalConflictError",
    "ExternalNotFoundError",
    "PassCancelledError",
    "PassDeadlineExceededError",
]
