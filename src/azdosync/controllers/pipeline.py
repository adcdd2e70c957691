"""Pipeline: YAML pipelines bound to a repository; updates and deletes are not supported."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from azdosync.adapters.azuredevops import NotFoundError
from azdosync.adapters.azuredevops.schema import Pipeline as RemotePipeline
from azdosync.adapters.azuredevops.schema import PipelineConfiguration, PipelineRepository
from azdosync.domain.reconciliation import ExternalObservation

from .support import parse_int_id, resolve_project, resolve_repository

if TYPE_CHECKING:
    from azdosync.adapters.azuredevops import AzureDevOpsAPI
    from azdosync.domain.model import Pipeline
    from azdosync.domain.reconciliation import PassContext

log = getLogger(__name__)


class PipelineExternal:
    def __init__(self, api: AzureDevOpsAPI) -> None:
        self.api = api

    def observe(self, resource: Pipeline, ctx: PassContext) -> ExternalObservation:
        scope = resolve_project(ctx, resource.spec.project_ref)
        resolve_repository(ctx, resource.spec.repository_ref)

        remote = self._find(resource, scope.organization, scope.project_id)
        if remote is None:
            return ExternalObservation(exists=False)
        _record(resource, remote)
        return ExternalObservation(exists=True)

    def create(self, resource: Pipeline, ctx: PassContext) -> None:
        spec = resource.spec
        scope = resolve_project(ctx, spec.project_ref)
        repository, repository_id = resolve_repository(ctx, spec.repository_ref)

        body = RemotePipeline(
            name=spec.name,
            folder=spec.folder,
            configuration=PipelineConfiguration(
                path=spec.config_path,
                repository=PipelineRepository(id=repository_id, name=repository.spec.name),
            ),
        )
        remote = self.api.pipelines.create(scope.organization, scope.project_id, body)
        _record(resource, remote)

    def update(self, resource: Pipeline, ctx: PassContext) -> None:
        log.debug("Pipelines are not updated in place (%s)", resource.reference)

    def delete(self, resource: Pipeline, ctx: PassContext) -> None:
        log.info("Pipeline %s is left in place; deletion is not supported", resource.status.id)

    def _find(
        self, resource: Pipeline, organization: str, project_id: str
    ) -> RemotePipeline | None:
        pipeline_id = parse_int_id(resource.status.id)
        if pipeline_id is not None:
            try:
                return self.api.pipelines.get(organization, project_id, pipeline_id)
            except NotFoundError:
                return None
        for remote in self.api.pipelines.list_pipelines(organization, project_id):
            if remote.name != resource.spec.name:
                continue
            if _same_folder(remote.folder, resource.spec.folder):
                return remote
        return None


def _same_folder(remote: str | None, desired: str) -> bool:
    return (remote or "\\").strip("\\") == desired.strip("\\")


def _record(resource: Pipeline, remote: RemotePipeline) -> None:
    status = resource.status
    if remote.id is not None:
        status.bind_external(str(remote.id))
    status.revision = remote.revision
    status.url = remote.url


__all__ = ["PipelineExternal"]
