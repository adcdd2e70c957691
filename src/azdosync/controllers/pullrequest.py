"""PullRequest: opened once, then kept in line with title, description, status and target."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from azdosync.adapters.azuredevops import NotFoundError
from azdosync.adapters.azuredevops.schema import GitPullRequest
from azdosync.domain.reconciliation import ExternalObservation

from .support import parse_int_id, recorded_int_id, resolve_project, resolve_repository

if TYPE_CHECKING:
    from azdosync.adapters.azuredevops import AzureDevOpsAPI
    from azdosync.domain.model import PullRequest
    from azdosync.domain.reconciliation import PassContext

log = getLogger(__name__)


class PullRequestExternal:
    def __init__(self, api: AzureDevOpsAPI) -> None:
        self.api = api

    def observe(self, resource: PullRequest, ctx: PassContext) -> ExternalObservation:
        remote = self._find(resource, ctx)
        if remote is None:
            return ExternalObservation(exists=False)
        if remote.pull_request_id is not None:
            resource.status.bind_external(str(remote.pull_request_id))
        return ExternalObservation(exists=True, up_to_date=not changed_fields(resource, remote))

    def create(self, resource: PullRequest, ctx: PassContext) -> None:
        spec = resource.spec
        scope = resolve_project(ctx, spec.project_ref)
        _, repository_id = resolve_repository(ctx, spec.repository_ref)

        body = GitPullRequest(
            title=spec.title,
            description=spec.description,
            source_ref_name=spec.source_ref_name,
            target_ref_name=spec.target_ref_name,
            is_draft=spec.is_draft,
        )
        remote = self.api.git.create_pull_request(
            scope.organization, scope.project_id, repository_id, body
        )
        if remote.pull_request_id is not None:
            resource.status.bind_external(str(remote.pull_request_id))

    def update(self, resource: PullRequest, ctx: PassContext) -> None:
        spec = resource.spec
        scope = resolve_project(ctx, spec.project_ref)
        _, repository_id = resolve_repository(ctx, spec.repository_ref)
        pull_request_id = recorded_int_id(resource)

        remote = self.api.git.get_pull_request(
            scope.organization, scope.project_id, repository_id, pull_request_id
        )
        changes = changed_fields(resource, remote)
        if not changes:
            return
        log.debug("Updating %s of pull request %s", ", ".join(sorted(changes)), pull_request_id)
        self.api.git.update_pull_request(
            scope.organization,
            scope.project_id,
            repository_id,
            pull_request_id,
            GitPullRequest(**changes),
        )

    def delete(self, resource: PullRequest, ctx: PassContext) -> None:
        log.info("Pull request %s is left open; deletion is not supported", resource.status.id)

    def _find(self, resource: PullRequest, ctx: PassContext) -> GitPullRequest | None:
        spec = resource.spec
        scope = resolve_project(ctx, spec.project_ref)
        _, repository_id = resolve_repository(ctx, spec.repository_ref)

        pull_request_id = parse_int_id(resource.status.id)
        if pull_request_id is not None:
            try:
                return self.api.git.get_pull_request(
                    scope.organization, scope.project_id, repository_id, pull_request_id
                )
            except NotFoundError:
                return None

        candidates = self.api.git.list_pull_requests(
            scope.organization,
            scope.project_id,
            repository_id,
            source_ref_name=spec.source_ref_name,
            target_ref_name=spec.target_ref_name,
        )
        for candidate in candidates:
            if candidate.title == spec.title:
                return candidate
        return None


def changed_fields(resource: PullRequest, remote: GitPullRequest) -> dict[str, str]:
    """Fields whose desired value differs from the remote pull request."""

    spec = resource.spec
    changes: dict[str, str] = {}
    if spec.title != remote.title:
        changes["title"] = spec.title
    if spec.description != (remote.description or ""):
        changes["description"] = spec.description
    if spec.status.value != (remote.status or "").lower():
        changes["status"] = spec.status.value
    if spec.target_ref_name != remote.target_ref_name:
        changes["target_ref_name"] = spec.target_ref_name
    return changes


__all__ = ["PullRequestExternal", "changed_fields"]
