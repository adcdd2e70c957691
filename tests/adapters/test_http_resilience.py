from __future__ import annotations

import asyncio
import logging

import httpx
import pytest

from azdosync.adapters.http_resilience import ResilientClient, build_retry, throttling_hook
from azdosync.config import AzureDevOpsConfig, RateLimit, ResilienceConfig, RetryPolicy

CONFIG = AzureDevOpsConfig(token="pat-token").resilience()
REQUEST = httpx.Request("GET", "https://dev.azure.test/acme/_apis/projects")


def _report(response: httpx.Response) -> None:
    asyncio.run(throttling_hook(CONFIG)(response))


def test_throttling_headers_are_reported(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.WARNING)

    _report(httpx.Response(200, headers={"X-RateLimit-Delay": "2.5"}, request=REQUEST))

    assert "azuredevops-default throttled GET /acme/_apis/projects" in caplog.text
    assert "X-RateLimit-Delay" in caplog.text


def test_rejected_requests_are_reported_without_headers(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.WARNING)

    _report(httpx.Response(429, request=REQUEST))

    assert "status 429, no delay announced" in caplog.text


def test_regular_responses_are_not_reported(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.WARNING)

    _report(httpx.Response(200, headers={"X-Custom": "1"}, request=REQUEST))

    assert caplog.text == ""


def test_retry_follows_the_policy() -> None:
    retry = build_retry(RetryPolicy(total=2, status_forcelist=frozenset({503})))

    assert retry.total == 2
    assert 503 in retry.status_forcelist
    assert 429 not in retry.status_forcelist


def test_rate_limited_client_still_sends_requests() -> None:
    seen: list[str] = []

    async def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.path)
        return httpx.Response(204)

    async def send() -> list[int]:
        config = ResilienceConfig(name="test", ratelimit=RateLimit(max_calls=1, per_seconds=0.01))
        async with ResilientClient(config) as client:
            client._client = httpx.AsyncClient(transport=httpx.MockTransport(handler))  # noqa: SLF001  # type: ignore[reportPrivateUsage]
            first = await client.request("GET", "https://dev.azure.test/a")
            second = await client.request("GET", "https://dev.azure.test/b")
        return [first.status_code, second.status_code]

    assert asyncio.run(send()) == [204, 204]
    assert seen == ["/a", "/b"]


def test_requests_draw_from_the_client_limiter() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(204)

    async def send() -> bool:
        config = ResilienceConfig(name="test", ratelimit=RateLimit(max_calls=2, per_seconds=60))
        async with ResilientClient(config) as client:
            client._client = httpx.AsyncClient(transport=httpx.MockTransport(handler))  # noqa: SLF001  # type: ignore[reportPrivateUsage]
            await client.request("GET", "https://dev.azure.test/a")
            await client.request("GET", "https://dev.azure.test/b")
            assert client.limiter is not None
            return client.limiter.has_capacity()

    assert asyncio.run(send()) is False
