"""FeedPermission: role of a build service or group on a package feed.

Permissions exist as long as the feed does; observe compares the identity's role and
update sets it. Deleting the record leaves the role in place.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from azdosync.adapters.azuredevops import NotFoundError
from azdosync.adapters.azuredevops.schema import FeedPermission as RemotePermission
from azdosync.domain.reconciliation import ExternalObservation

from .feed import resolve_feed_scope
from .support import resolve_identity

if TYPE_CHECKING:
    from azdosync.adapters.azuredevops import AzureDevOpsAPI
    from azdosync.domain.model import FeedPermission
    from azdosync.domain.reconciliation import PassContext

log = getLogger(__name__)


def has_role(resource: FeedPermission, descriptor: str, observed: list[RemotePermission]) -> bool:
    role = resource.spec.role
    return any(
        entry.identity_descriptor == descriptor and entry.role.lower() == role
        for entry in observed
    )


class FeedPermissionExternal:
    def __init__(self, api: AzureDevOpsAPI) -> None:
        self.api = api

    def observe(self, resource: FeedPermission, ctx: PassContext) -> ExternalObservation:
        organization, project = resolve_feed_scope(resource, ctx)
        try:
            observed = self.api.feeds.get_permissions(organization, project, resource.spec.feed)
        except NotFoundError:
            if resource.deletion_requested:
                return ExternalObservation(exists=False)
            raise
        descriptor = resolve_identity(self.api, ctx, resource.spec.identity)

        resource.status.external_name = descriptor
        resource.status.identity_descriptor = descriptor
        return ExternalObservation(
            exists=True, up_to_date=has_role(resource, descriptor, observed)
        )

    def create(self, resource: FeedPermission, ctx: PassContext) -> None:
        log.debug("Feed permissions exist with their feed (%s)", resource.reference)

    def update(self, resource: FeedPermission, ctx: PassContext) -> None:
        organization, project = resolve_feed_scope(resource, ctx)
        descriptor = resource.status.identity_descriptor or resolve_identity(
            self.api, ctx, resource.spec.identity
        )
        self.api.feeds.update_permissions(
            organization,
            project,
            resource.spec.feed,
            [RemotePermission(identity_descriptor=descriptor, role=resource.spec.role.value)],
        )
        log.info(
            "Granted %s on feed %s to %s", resource.spec.role, resource.spec.feed, descriptor
        )

    def delete(self, resource: FeedPermission, ctx: PassContext) -> None:
        log.debug("Feed permissions are left in place (%s)", resource.reference)


__all__ = ["FeedPermissionExternal", "has_role"]
