"""Application configuration helpers."""

from __future__ import annotations

from .azuredevops import (
    API_VERSION,
    DEFAULT_API_URL,
    DEFAULT_FEEDS_URL,
    DEFAULT_VSSPS_URL,
    AzureDevOpsConfig,
    ServiceArea,
)
from .controller import ControllerConfig, get_controller_config, parse_duration
from .env import optional_env_var
from .errors import ConfigurationError
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging

__all__ = [
    "API_VERSION",
    "DEFAULT_API_URL",
    "DEFAULT_FEEDS_URL",
    "DEFAULT_VSSPS_URL",
    "AzureDevOpsConfig",
    "ConfigurationError",
    "ControllerConfig",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "ServiceArea",
    "configure_logging",
    "get_controller_config",
    "optional_env_var",
    "parse_duration",
]
