"""Feed: package feeds, organization-wide or scoped to a project."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from azdosync.adapters.azuredevops import NotFoundError
from azdosync.adapters.azuredevops.schema import Feed as RemoteFeed
from azdosync.adapters.azuredevops.schema import UpstreamSource as RemoteUpstream
from azdosync.domain.model import TeamProject
from azdosync.domain.reconciliation import ExternalObservation
from azdosync.domain.reconciliation.compare import is_subset

from .support import PROJECT_FIELD, recorded_id

if TYPE_CHECKING:
    from azdosync.adapters.azuredevops import AzureDevOpsAPI
    from azdosync.domain.model import Feed, FeedPermission, UpstreamSource
    from azdosync.domain.reconciliation import PassContext

log = getLogger(__name__)


def feed_name(resource: Feed) -> str:
    return resource.spec.name or resource.metadata.name


def resolve_feed_scope(
    resource: Feed | FeedPermission, ctx: PassContext
) -> tuple[str, str | None]:
    """Organization and optional project name the feed lives under."""

    spec = resource.spec
    if spec.project_ref is not None:
        project = ctx.binder.require(PROJECT_FIELD, TeamProject, spec.project_ref)
        return project.spec.organization, project.spec.name
    if not spec.organization:
        raise ValueError(
            f"{resource.KIND} {resource.reference} sets neither organization nor project_ref"
        )
    return spec.organization, None


def upstream_matches(desired: UpstreamSource, observed: RemoteUpstream) -> bool:
    return (
        desired.name == observed.name
        and desired.location in {observed.location, observed.display_location}
        and desired.protocol.lower() == observed.protocol.lower()
        and desired.upstream_source_type.lower() == (observed.upstream_source_type or "").lower()
    )


def is_up_to_date(resource: Feed, observed: RemoteFeed) -> bool:
    """The service adds upstreams of its own, so desired ones only need to be present."""

    if observed.name != feed_name(resource):
        return False
    return is_subset(
        resource.spec.upstream_sources,
        observed.upstream_sources,
        matches=upstream_matches,  # type: ignore[arg-type]
    )


def _to_remote(source: UpstreamSource) -> RemoteUpstream:
    return RemoteUpstream(
        name=source.name,
        protocol=source.protocol,
        location=source.location,
        upstream_source_type=source.upstream_source_type,
    )


class FeedExternal:
    def __init__(self, api: AzureDevOpsAPI) -> None:
        self.api = api

    def observe(self, resource: Feed, ctx: PassContext) -> ExternalObservation:
        organization, project = resolve_feed_scope(resource, ctx)
        try:
            observed = self.api.feeds.get(
                organization, project, resource.status.id or feed_name(resource)
            )
        except NotFoundError:
            return ExternalObservation(exists=False)

        self._record(resource, observed)
        return ExternalObservation(exists=True, up_to_date=is_up_to_date(resource, observed))

    def create(self, resource: Feed, ctx: PassContext) -> None:
        organization, project = resolve_feed_scope(resource, ctx)
        spec = resource.spec
        body = RemoteFeed(
            name=feed_name(resource),
            description=spec.description,
            upstream_enabled=spec.upstream_enabled,
            upstream_sources=[_to_remote(source) for source in spec.upstream_sources],
        )
        self._record(resource, self.api.feeds.create(organization, project, body))

    def update(self, resource: Feed, ctx: PassContext) -> None:
        organization, project = resolve_feed_scope(resource, ctx)
        feed_id = recorded_id(resource)
        observed = self.api.feeds.get(organization, project, feed_id)

        upstreams = list(observed.upstream_sources)
        for source in resource.spec.upstream_sources:
            if not any(upstream_matches(source, existing) for existing in upstreams):
                upstreams.append(_to_remote(source))

        body = RemoteFeed(
            name=feed_name(resource),
            description=resource.spec.description,
            upstream_enabled=resource.spec.upstream_enabled,
            upstream_sources=upstreams,
        )
        self._record(resource, self.api.feeds.update(organization, project, feed_id, body))

    def delete(self, resource: Feed, ctx: PassContext) -> None:
        if not resource.status.id:
            return
        organization, project = resolve_feed_scope(resource, ctx)
        try:
            self.api.feeds.delete(organization, project, resource.status.id)
        except NotFoundError:
            log.debug("Feed %s is already gone", resource.status.id)

    @staticmethod
    def _record(resource: Feed, remote: RemoteFeed) -> None:
        if remote.id:
            resource.status.bind_external(remote.id)
        resource.status.url = remote.url


__all__ = ["FeedExternal", "feed_name", "is_up_to_date", "resolve_feed_scope", "upstream_matches"]
