"""RepositoryPermission: access control entry of a build service or group on a repository.

The entry always exists in the repository's security namespace; observe compares the
permission bits and update rewrites them. Deleting the record leaves the entry in place.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from azdosync.adapters.azuredevops import (
    GIT_REPOSITORIES_NAMESPACE,
    GitRepositoryPermission,
    repository_token,
)
from azdosync.adapters.azuredevops.schema import AccessControlEntriesUpdate, AccessControlEntry
from azdosync.domain.reconciliation import ExternalObservation

from .support import resolve_identity, resolve_project, resolve_repository

if TYPE_CHECKING:
    from azdosync.adapters.azuredevops import AzureDevOpsAPI
    from azdosync.domain.model import RepositoryPermission, RepositoryPermissionSpec
    from azdosync.domain.reconciliation import PassContext

log = getLogger(__name__)


def desired_bits(spec: RepositoryPermissionSpec) -> tuple[int, int]:
    """Allow and deny bits the spec asks for."""

    allow = GitRepositoryPermission.parse(spec.allow)
    deny = GitRepositoryPermission.parse(spec.deny)
    return int(allow), int(deny)


def entry_matches(spec: RepositoryPermissionSpec, entry: AccessControlEntry | None) -> bool:
    """Without merge the entry must carry exactly the desired bits, with merge at least them."""

    if entry is None:
        return False
    allow, deny = desired_bits(spec)
    if spec.merge:
        return entry.allow & allow == allow and entry.deny & deny == deny
    return entry.allow == allow and entry.deny == deny


class RepositoryPermissionExternal:
    def __init__(self, api: AzureDevOpsAPI) -> None:
        self.api = api

    def observe(self, resource: RepositoryPermission, ctx: PassContext) -> ExternalObservation:
        organization, token = self._target(resource, ctx)
        descriptor = resolve_identity(self.api, ctx, resource.spec.identity)
        entry = self.api.security.get_access_control_entry(
            organization, GIT_REPOSITORIES_NAMESPACE, token, descriptor
        )

        status = resource.status
        status.external_name = token
        status.identity_descriptor = descriptor
        if entry is not None:
            status.allow_bits, status.deny_bits = entry.allow, entry.deny
        return ExternalObservation(exists=True, up_to_date=entry_matches(resource.spec, entry))

    def create(self, resource: RepositoryPermission, ctx: PassContext) -> None:
        log.debug("Repository permissions always exist remotely (%s)", resource.reference)

    def update(self, resource: RepositoryPermission, ctx: PassContext) -> None:
        organization, token = self._target(resource, ctx)
        descriptor = resource.status.identity_descriptor or resolve_identity(
            self.api, ctx, resource.spec.identity
        )
        allow, deny = desired_bits(resource.spec)
        entries = self.api.security.set_access_control_entries(
            organization,
            GIT_REPOSITORIES_NAMESPACE,
            AccessControlEntriesUpdate(
                token=token,
                merge=resource.spec.merge,
                access_control_entries=[
                    AccessControlEntry(descriptor=descriptor, allow=allow, deny=deny)
                ],
            ),
        )
        for entry in entries:
            if entry.descriptor == descriptor:
                resource.status.allow_bits, resource.status.deny_bits = entry.allow, entry.deny
        log.info("Updated permissions of %s on %s", descriptor, token)

    def delete(self, resource: RepositoryPermission, ctx: PassContext) -> None:
        log.debug("Repository permissions are left in place (%s)", resource.reference)

    @staticmethod
    def _target(resource: RepositoryPermission, ctx: PassContext) -> tuple[str, str]:
        """Organization and security token of the repository."""

        repository, repository_id = resolve_repository(ctx, resource.spec.repository_ref)
        scope = resolve_project(ctx, repository.spec.project_ref)
        return scope.organization, repository_token(scope.project_id, repository_id)


__all__ = ["RepositoryPermissionExternal", "desired_bits", "entry_matches"]
