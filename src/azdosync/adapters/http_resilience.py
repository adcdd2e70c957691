"""Async HTTP client shared by the Azure DevOps adapters."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, TypedDict, Unpack

import httpx
from aiolimiter import AsyncLimiter
from httpx_retries import Retry, RetryTransport

from azdosync.config.http_resilience import RateLimit, ResilienceConfig, RetryPolicy

if TYPE_CHECKING:
    from types import TracebackType

    from httpx._types import AuthTypes, HeaderTypes, QueryParamTypes, TimeoutTypes, URLTypes

    from azdosync.config.http_resilience import ResponseHook

log = getLogger(__name__)


def build_retry(policy: RetryPolicy) -> Retry:
    return Retry(
        total=policy.total,
        backoff_factor=policy.backoff_factor,
        max_backoff_wait=policy.max_backoff_wait,
        respect_retry_after_header=policy.respect_retry_after_header,
        allowed_methods=tuple(policy.allowed_methods),
        status_forcelist=tuple(policy.status_forcelist),
        retry_on_exceptions=policy.retry_on_exceptions,
        backoff_jitter=policy.backoff_jitter,
    )


class RequestOptions(TypedDict, total=False):
    params: QueryParamTypes | None
    json: object
    headers: HeaderTypes | None
    auth: AuthTypes | None
    timeout: TimeoutTypes


def throttling_hook(config: ResilienceConfig) -> ResponseHook:
    """Warn when the service reports that it delays or rejects our requests.

    Azure DevOps announces delays in response headers before it rejects requests with 429.
    """

    async def report(response: httpx.Response) -> None:
        delays = {
            name: response.headers[name]
            for name in config.throttle_headers
            if name in response.headers
        }
        if not delays and response.status_code != httpx.codes.TOO_MANY_REQUESTS:
            return
        request = response.request
        log.warning(
            "%s throttled %s %s (status %s, %s)",
            config.name,
            request.method,
            request.url.path,
            response.status_code,
            delays or "no delay announced",
        )

    return report


class ResilientClient:
    """httpx client with bounded transport retries and an optional client-side rate limit.

    Responses are never cached: callers observe live remote state.
    """

    def __init__(self, config: ResilienceConfig) -> None:
        self.config = config
        self._limiter: AsyncLimiter | None = (
            AsyncLimiter(config.ratelimit.max_calls, config.ratelimit.per_seconds)
            if config.ratelimit
            else None
        )

        hooks = list(config.response_hooks)
        if config.throttle_headers:
            hooks.append(throttling_hook(config))

        self._client = httpx.AsyncClient(
            base_url=config.base_url or "",
            timeout=config.timeout_seconds,
            headers=dict(config.default_headers or {}),
            event_hooks={"response": hooks},
            transport=RetryTransport(retry=build_retry(config.retry)),
        )

    @property
    def limiter(self) -> AsyncLimiter | None:
        return self._limiter

    @property
    def closed(self) -> bool:
        return self._client.is_closed

    async def __aenter__(self) -> ResilientClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def request(
        self,
        method: str,
        url: URLTypes,
        **kwargs: Unpack[RequestOptions],
    ) -> httpx.Response:
        if self._limiter is None:
            return await self._client.request(method, url, **kwargs)
        async with self._limiter:
            return await self._client.request(method, url, **kwargs)


__all__ = [
    "RateLimit",
    "RequestOptions",
    "ResilienceConfig",
    "ResilientClient",
    "RetryPolicy",
    "build_retry",
    "throttling_hook",
]
