"""Azure DevOps endpoint defaults."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Final

from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy

DEFAULT_API_URL: Final[str] = "https://dev.azure.com"
DEFAULT_FEEDS_URL: Final[str] = "https://feeds.dev.azure.com"
DEFAULT_VSSPS_URL: Final[str] = "https://vssps.dev.azure.com"
API_VERSION: Final[str] = "7.0"
THROTTLE_HEADERS: Final[tuple[str, ...]] = ("Retry-After", "X-RateLimit-Delay")
USER_AGENT: Final[str] = "azdosync"


class ServiceArea(StrEnum):
    """Azure DevOps hosts a few APIs on dedicated domains."""

    DEFAULT = "default"
    FEEDS = "feeds"
    VSSPS = "vssps"


@dataclass(frozen=True, slots=True)
class AzureDevOpsConfig:
    """Connection parameters resolved from a ``ConnectorConfig`` record."""

    token: str
    base_urls: dict[ServiceArea, str] = field(
        default_factory=lambda: {
            ServiceArea.DEFAULT: DEFAULT_API_URL,
            ServiceArea.FEEDS: DEFAULT_FEEDS_URL,
            ServiceArea.VSSPS: DEFAULT_VSSPS_URL,
        }
    )
    verbose: bool = False
    timeout_seconds: float = 40.0

    def base_url(self, area: ServiceArea) -> str:
        return self.base_urls.get(area) or self.base_urls[ServiceArea.DEFAULT]

    def resilience(self, area: ServiceArea = ServiceArea.DEFAULT) -> ResilienceConfig:
        return ResilienceConfig(
            name=f"azuredevops-{area}",
            base_url=self.base_url(area),
            timeout_seconds=self.timeout_seconds,
            retry=RetryPolicy(total=3),
            ratelimit=RateLimit(max_calls=10, per_seconds=1.0),
            default_headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
            throttle_headers=THROTTLE_HEADERS,
        )
