"""GitRepository: created empty or with an initial commit; never updated in place."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Final

from azdosync.adapters.azuredevops import NotFoundError
from azdosync.adapters.azuredevops.schema import (
    GitChange,
    GitCommit,
    GitItem,
    GitNewContent,
    GitPush,
    GitRefUpdate,
)
from azdosync.domain.reconciliation import ExternalObservation

from .support import resolve_project

if TYPE_CHECKING:
    from azdosync.adapters.azuredevops import AzureDevOpsAPI
    from azdosync.adapters.azuredevops.schema import GitRepository as RemoteRepository
    from azdosync.domain.model import GitRepository
    from azdosync.domain.reconciliation import PassContext

log = getLogger(__name__)

INITIAL_BRANCH: Final[str] = "refs/heads/main"
EMPTY_OBJECT_ID: Final[str] = "0" * 40


class GitRepositoryExternal:
    def __init__(self, api: AzureDevOpsAPI) -> None:
        self.api = api

    def observe(self, resource: GitRepository, ctx: PassContext) -> ExternalObservation:
        scope = resolve_project(ctx, resource.spec.project_ref)
        try:
            remote = self.api.git.get_repository(
                scope.organization, scope.project_id, resource.status.id or resource.spec.name
            )
        except NotFoundError:
            return ExternalObservation(exists=False)

        self._record(resource, remote)
        return ExternalObservation(exists=True)

    def create(self, resource: GitRepository, ctx: PassContext) -> None:
        scope = resolve_project(ctx, resource.spec.project_ref)
        remote = self.api.git.create_repository(
            scope.organization, scope.project_id, resource.spec.name
        )
        self._record(resource, remote)
        log.info(
            "Created repository %s (%s) in %s", remote.name, remote.id, scope.project.spec.name
        )

        if resource.spec.initialize and remote.id:
            ctx.raise_if_cancelled()
            self.api.git.create_push(
                scope.organization, scope.project_id, remote.id, _initial_push(resource.spec.name)
            )
            resource.status.default_branch = INITIAL_BRANCH

    def update(self, resource: GitRepository, ctx: PassContext) -> None:
        log.debug("Repositories are not updated in place (%s)", resource.reference)

    def delete(self, resource: GitRepository, ctx: PassContext) -> None:
        if not resource.status.id:
            return
        scope = resolve_project(ctx, resource.spec.project_ref)
        try:
            self.api.git.delete_repository(
                scope.organization, scope.project_id, resource.status.id
            )
        except NotFoundError:
            log.debug("Repository %s is already gone", resource.status.id)

    @staticmethod
    def _record(resource: GitRepository, remote: RemoteRepository) -> None:
        status = resource.status
        if remote.id:
            status.bind_external(remote.id)
        status.default_branch = remote.default_branch or status.default_branch
        status.remote_url = remote.remote_url
        status.ssh_url = remote.ssh_url
        status.url = remote.url


def _initial_push(name: str) -> GitPush:
    return GitPush(
        ref_updates=[GitRefUpdate(name=INITIAL_BRANCH, old_object_id=EMPTY_OBJECT_ID)],
        commits=[
            GitCommit(
                comment="Initial commit",
                changes=[
                    GitChange(
                        item=GitItem(path="/README.md"),
                        new_content=GitNewContent(content=f"# {name}\n"),
                    )
                ],
            )
        ],
    )


__all__ = ["GitRepositoryExternal"]
