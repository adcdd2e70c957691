"""Controller scheduling configuration."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Final

from .env import optional_env_var
from .errors import ConfigurationError

log = logging.getLogger(__name__)

ENV_PREFIX: Final[str] = "AZURE_DEVOPS_PROVIDER"

DEFAULT_POLL_INTERVAL: Final[float] = 120.0
DEFAULT_MAX_RECONCILE_RATE: Final[int] = 5
DEFAULT_MIN_ERROR_RETRY_INTERVAL: Final[float] = 1.0
DEFAULT_MAX_ERROR_RETRY_INTERVAL: Final[float] = 60.0
DEFAULT_PASS_TIMEOUT: Final[float] = 120.0

_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")
_UNIT_SECONDS: Final[dict[str, float]] = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}


def parse_duration(value: str) -> float:
    """Parse a duration such as ``300ms``, ``1.5h`` or ``2h45m`` into seconds.

    A bare number is read as seconds.
    """

    text = value.strip()
    if not text:
        raise ConfigurationError("Empty duration")
    try:
        seconds = float(text)
    except ValueError:
        pass
    else:
        if seconds < 0:
            raise ConfigurationError(f"Negative duration: {value}")
        return seconds

    position = 0
    total = 0.0
    for match in _DURATION_PART.finditer(text):
        if match.start() != position:
            break
        total += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
        position = match.end()
    if position != len(text) or position == 0:
        raise ConfigurationError(f"Invalid duration: {value}")
    return total


@dataclass(frozen=True, slots=True)
class ControllerConfig:
    """Scheduling knobs shared by every resource controller."""

    poll_interval: float = DEFAULT_POLL_INTERVAL
    max_reconcile_rate: int = DEFAULT_MAX_RECONCILE_RATE
    min_error_retry_interval: float = DEFAULT_MIN_ERROR_RETRY_INTERVAL
    max_error_retry_interval: float = DEFAULT_MAX_ERROR_RETRY_INTERVAL
    pass_timeout: float = DEFAULT_PASS_TIMEOUT
    debug: bool = False

    def __post_init__(self) -> None:
        if self.max_reconcile_rate < 1:
            raise ConfigurationError("max_reconcile_rate must be at least 1")
        if self.min_error_retry_interval > self.max_error_retry_interval:
            raise ConfigurationError(
                "min_error_retry_interval must not exceed max_error_retry_interval"
            )
        if self.poll_interval <= 0 or self.pass_timeout <= 0:
            raise ConfigurationError("poll_interval and pass_timeout must be positive")
        if self.max_error_retry_interval > self.poll_interval / 2:
            log.warning(
                "max_error_retry_interval (%ss) exceeds half the poll interval (%ss)",
                self.max_error_retry_interval,
                self.poll_interval,
            )


def _env_duration(name: str, default: float) -> float:
    raw = optional_env_var(f"{ENV_PREFIX}_{name}")
    return default if raw is None else parse_duration(raw)


def _env_bool(name: str, default: bool) -> bool:
    raw = optional_env_var(f"{ENV_PREFIX}_{name}")
    if raw is None:
        return default
    return raw.lower() in {"1", "true", "yes", "on"}


def get_controller_config() -> ControllerConfig:
    rate = optional_env_var(f"{ENV_PREFIX}_MAX_RECONCILE_RATE")
    try:
        max_reconcile_rate = int(rate) if rate is not None else DEFAULT_MAX_RECONCILE_RATE
    except ValueError as exc:
        raise ConfigurationError(f"Invalid max reconcile rate: {rate}") from exc

    return ControllerConfig(
        poll_interval=_env_duration("POLL_INTERVAL", DEFAULT_POLL_INTERVAL),
        max_reconcile_rate=max_reconcile_rate,
        min_error_retry_interval=_env_duration(
            "MIN_ERROR_RETRY_INTERVAL", DEFAULT_MIN_ERROR_RETRY_INTERVAL
        ),
        max_error_retry_interval=_env_duration(
            "MAX_ERROR_RETRY_INTERVAL", DEFAULT_MAX_ERROR_RETRY_INTERVAL
        ),
        pass_timeout=_env_duration("PASS_TIMEOUT", DEFAULT_PASS_TIMEOUT),
        debug=_env_bool("DEBUG", False),
    )
