"""Turns a record's ``ConnectorConfig`` reference into a ready-to-use Azure DevOps client."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from azdosync.adapters.azuredevops import AzureDevOpsAPI, AzureDevOpsClient
from azdosync.config.azuredevops import AzureDevOpsConfig, ServiceArea
from azdosync.domain.model import ConnectorConfig, ManagedResource, Secret
from azdosync.domain.reconciliation import ConnectionConfigError, ReferenceResolutionError

if TYPE_CHECKING:
    from collections.abc import Callable

    from azdosync.adapters.http_resilience import ResilientClient
    from azdosync.config.http_resilience import ResilienceConfig
    from azdosync.domain.reconciliation import ExternalClient, PassContext

log = getLogger(__name__)

type ExternalFactory[T: ManagedResource] = Callable[[AzureDevOpsAPI], ExternalClient[T]]


def load_connection_config(resource: ManagedResource, ctx: PassContext) -> AzureDevOpsConfig:
    """Resolve the connector record and its credential secret."""

    reference = resource.spec.connector_config_ref
    if reference is None:
        raise ConnectionConfigError(
            f"{resource.KIND} {resource.reference} does not reference a ConnectorConfig"
        )
    try:
        connector = ctx.resolver.resolve_object(ConnectorConfig, reference)
        credentials = connector.spec.credentials
        secret = ctx.resolver.resolve_object(Secret, credentials.reference)
    except ReferenceResolutionError as exc:
        raise ConnectionConfigError(f"Cannot load connection settings: {exc}") from exc

    token = secret.data.get(credentials.key, "").strip()
    if not token:
        raise ConnectionConfigError(
            f"Secret {credentials.reference} has no value under key {credentials.key!r}"
        )
    spec = connector.spec
    return AzureDevOpsConfig(
        token=token,
        base_urls={
            ServiceArea.DEFAULT: spec.api_url,
            ServiceArea.FEEDS: spec.feeds_url,
            ServiceArea.VSSPS: spec.vssps_url,
        },
        verbose=spec.verbose,
    )


class AzureDevOpsConnector[T: ManagedResource]:
    """Connector building one kind's external client on top of a per-pass HTTP client.

    The HTTP client is closed when the pass ends.
    """

    def __init__(
        self,
        external_factory: ExternalFactory[T],
        *,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        self._external_factory = external_factory
        self._client_factory = client_factory

    def connect(self, resource: T, ctx: PassContext) -> ExternalClient[T]:
        config = load_connection_config(resource, ctx)
        client = AzureDevOpsClient(
            config=config, client_factory=self._client_factory, timeout=ctx.remaining
        )
        ctx.cleanup.callback(client.close)
        log.debug("Connected %s %s to %s", resource.KIND, resource.reference, client.url(""))
        return self._external_factory(AzureDevOpsAPI(client))


__all__ = ["AzureDevOpsConnector", "ExternalFactory", "load_connection_config"]
