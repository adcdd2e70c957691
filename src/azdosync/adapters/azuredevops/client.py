"""HTTP client for the Azure DevOps REST API."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING, Any

import httpx

from azdosync.adapters.http_resilience import ResilientClient
from azdosync.config.azuredevops import API_VERSION, USER_AGENT, ServiceArea
from azdosync.domain.reconciliation.errors import (
    ExternalAPIError,
    ExternalConflictError,
    ExternalNotFoundError,
    PassDeadlineExceededError,
)

from .schema import ErrorResponse

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping
    from types import TracebackType

    from azdosync.config.azuredevops import AzureDevOpsConfig
    from azdosync.config.http_resilience import ResilienceConfig

log = getLogger(__name__)

# The service answers an unauthenticated request with a sign-in page and status 203.
_SIGN_IN_STATUS = 203


class AzureDevOpsAPIError(ExternalAPIError):
    """Raised when the Azure DevOps API rejects a request."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        type_key: str | None = None,
    ) -> None:
        super().__init__(message, status_code=status_code)
        self.type_key = type_key


class NotFoundError(AzureDevOpsAPIError, ExternalNotFoundError):
    """Raised on 404 responses."""


class ConflictError(AzureDevOpsAPIError, ExternalConflictError):
    """Raised on 409 responses and on ``*AlreadyExistsException`` payloads."""


class AzureDevOpsClient:
    """Low-level synchronous client on top of one event loop.

    The loop and one ``ResilientClient`` per service area live until ``close``, so every
    call made through the instance shares the same connection pool and rate limiter.
    ``timeout`` returns the seconds left for the running reconcile pass and bounds every
    call, retries included.
    """

    def __init__(
        self,
        *,
        config: AzureDevOpsConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
        timeout: Callable[[], float | None] | None = None,
    ) -> None:
        self.config = config
        self._client_factory = client_factory or ResilientClient
        self._timeout = timeout or (lambda: None)
        self._auth = httpx.BasicAuth(USER_AGENT, config.token)
        self._runner: asyncio.Runner | None = None
        self._clients: dict[ServiceArea, ResilientClient] = {}

    def __enter__(self) -> AzureDevOpsClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        if self._runner is None:
            return
        runner, self._runner = self._runner, None
        clients = list(self._clients.values())
        self._clients.clear()
        try:
            for client in clients:
                runner.run(client.aclose())
        finally:
            runner.close()

    def url(self, path: str, area: ServiceArea = ServiceArea.DEFAULT) -> str:
        return f"{self.config.base_url(area).rstrip('/')}/{path.lstrip('/')}"

    def get(self, path: str, **kwargs: Any) -> Any:
        return self.request("GET", path, **kwargs)

    def post(self, path: str, **kwargs: Any) -> Any:
        return self.request("POST", path, **kwargs)

    def put(self, path: str, **kwargs: Any) -> Any:
        return self.request("PUT", path, **kwargs)

    def patch(self, path: str, **kwargs: Any) -> Any:
        return self.request("PATCH", path, **kwargs)

    def delete(self, path: str, **kwargs: Any) -> Any:
        return self.request("DELETE", path, **kwargs)

    def request(
        self,
        method: str,
        path: str,
        *,
        area: ServiceArea = ServiceArea.DEFAULT,
        params: Mapping[str, str | int] | None = None,
        json: object = None,
        api_version: str = API_VERSION,
    ) -> Any:
        """Perform a request and return the decoded JSON body (``None`` when empty)."""

        query: dict[str, str | int] = {"api-version": api_version}
        if params:
            query.update(params)
        if self._runner is None:
            self._runner = asyncio.Runner()
        return self._runner.run(
            self._request_async(method, self.url(path, area), area=area, params=query, json=json)
        )

    def _client_for(self, area: ServiceArea) -> ResilientClient:
        client = self._clients.get(area)
        if client is None:
            client = self._clients[area] = self._client_factory(self.config.resilience(area))
        return client

    async def _request_async(
        self,
        method: str,
        url: str,
        *,
        area: ServiceArea,
        params: dict[str, str | int],
        json: object,
    ) -> Any:
        timeout = self._timeout()
        client = self._client_for(area)
        try:
            response = await asyncio.wait_for(
                client.request(
                    method,
                    url,
                    params=httpx.QueryParams(params),
                    json=json,
                    auth=self._auth,
                ),
                timeout=timeout,
            )
        except TimeoutError as exc:
            raise PassDeadlineExceededError(f"{method} {url} exceeded the pass deadline") from exc

        if self.config.verbose:
            log.debug(
                "%s %s -> %s: %s", method, response.request.url, response.status_code, response.text
            )
        _raise_for_status(method, url, response)

        if response.status_code == httpx.codes.NO_CONTENT or not response.content:
            return None
        return response.json()


def _raise_for_status(method: str, url: str, response: httpx.Response) -> None:
    status = response.status_code
    if status == _SIGN_IN_STATUS:
        raise AzureDevOpsAPIError(
            f"{method} {url}: authentication failed", status_code=httpx.codes.UNAUTHORIZED
        )
    if status < httpx.codes.BAD_REQUEST:
        return

    message = response.reason_phrase or "request failed"
    type_key: str | None = None
    try:
        error = ErrorResponse.model_validate(response.json())
    except ValueError:
        log.debug("Error payload of %s %s is not an Azure DevOps error document", method, url)
    else:
        message = error.message
        type_key = error.type_key

    text = f"{method} {url} failed with {status}: {message}"
    if status == httpx.codes.NOT_FOUND:
        raise NotFoundError(text, status_code=status, type_key=type_key)
    if status == httpx.codes.CONFLICT or (type_key or "").endswith("AlreadyExistsException"):
        raise ConflictError(text, status_code=status, type_key=type_key)
    log.error(text)
    raise AzureDevOpsAPIError(text, status_code=status, type_key=type_key)


__all__ = [
    "AzureDevOpsAPIError",
    "AzureDevOpsClient",
    "ConflictError",
    "NotFoundError",
]
