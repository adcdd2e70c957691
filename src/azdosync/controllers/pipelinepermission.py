"""PipelinePermission: authorizes pipelines to use a protected resource.

The authorization document always exists on the service, so there is nothing to create
or delete; observe compares it and update rewrites it.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, assert_never

from azdosync.adapters.azuredevops.schema import (
    Permission,
    PermissionResource,
    ResourcePipelinePermissions,
)
from azdosync.adapters.azuredevops.schema import (
    PipelineAuthorization as RemoteAuthorization,
)
from azdosync.domain.conversion import composite_repository_id
from azdosync.domain.model import (
    Endpoint,
    Environment,
    GitRepository,
    Pipeline,
    Queue,
    ReferencableKind,
    TeamProject,
)
from azdosync.domain.reconciliation import ExternalObservation

from .support import resolve_project

if TYPE_CHECKING:
    from azdosync.adapters.azuredevops import AzureDevOpsAPI
    from azdosync.domain.model import PipelinePermission
    from azdosync.domain.reconciliation import PassContext

    from .support import ProjectScope

log = getLogger(__name__)

RESOURCE_FIELD = "resource.resource_ref"


def resolve_resource_id(resource: PipelinePermission, ctx: PassContext) -> str:
    """Identifier of the protected resource in the form the permissions API expects."""

    kind = resource.spec.resource.type
    reference = resource.spec.resource.resource_ref
    binder = ctx.binder
    match kind:
        case ReferencableKind.GIT_REPOSITORY:
            repository, repository_id = binder.require_id(RESOURCE_FIELD, GitRepository, reference)
            project = ctx.resolver.resolve_object(TeamProject, repository.spec.project_ref)
            if not project.status.id:
                return repository_id
            return composite_repository_id(project.status.id, repository_id)
        case ReferencableKind.ENVIRONMENT:
            return _numeric(binder.require_id(RESOURCE_FIELD, Environment, reference)[1])
        case ReferencableKind.QUEUE:
            return _numeric(binder.require_id(RESOURCE_FIELD, Queue, reference)[1])
        case ReferencableKind.ENDPOINT:
            return binder.require_id(RESOURCE_FIELD, Endpoint, reference)[1]
        case ReferencableKind.TEAM_PROJECT:
            return binder.require_id(RESOURCE_FIELD, TeamProject, reference)[1]
        case _:
            assert_never(kind)


def _numeric(value: str) -> str:
    return str(int(value))


class PipelinePermissionExternal:
    def __init__(self, api: AzureDevOpsAPI) -> None:
        self.api = api

    def observe(self, resource: PipelinePermission, ctx: PassContext) -> ExternalObservation:
        scope = resolve_project(ctx, resource.spec.project_ref)
        resource_id = resolve_resource_id(resource, ctx)
        desired = self._desired_pipelines(resource, ctx)

        observed = self.api.pipelines.get_permissions(
            scope.organization, scope.project_id, resource.spec.resource.type, resource_id
        )
        resource.status.bind_external(resource_id)
        return ExternalObservation(exists=True, up_to_date=_matches(resource, desired, observed))

    def create(self, resource: PipelinePermission, ctx: PassContext) -> None:
        log.debug("Pipeline permissions always exist remotely (%s)", resource.reference)

    def update(self, resource: PipelinePermission, ctx: PassContext) -> None:
        scope = resolve_project(ctx, resource.spec.project_ref)
        resource_id = resolve_resource_id(resource, ctx)
        desired = self._desired_pipelines(resource, ctx)
        self._write(resource, scope, resource_id, desired)

    def delete(self, resource: PipelinePermission, ctx: PassContext) -> None:
        log.debug("Pipeline permissions are left in place (%s)", resource.reference)

    def _desired_pipelines(
        self, resource: PipelinePermission, ctx: PassContext
    ) -> dict[int, bool]:
        desired: dict[int, bool] = {}
        for index, authorization in enumerate(resource.spec.pipelines):
            _, pipeline_id = ctx.binder.require_id(
                f"pipelines[{index}]", Pipeline, authorization.pipeline_ref
            )
            desired[int(pipeline_id)] = authorization.authorized
        return desired

    def _write(
        self,
        resource: PipelinePermission,
        scope: ProjectScope,
        resource_id: str,
        desired: dict[int, bool],
    ) -> None:
        kind = resource.spec.resource.type
        body = ResourcePipelinePermissions(
            all_pipelines=Permission(authorized=bool(resource.spec.authorize_all)),
            pipelines=[
                RemoteAuthorization(id=pipeline_id, authorized=authorized)
                for pipeline_id, authorized in desired.items()
            ],
            resource=PermissionResource(id=resource_id, type=kind),
        )
        self.api.pipelines.update_permissions(
            scope.organization, scope.project_id, kind, resource_id, body
        )


def _matches(
    resource: PipelinePermission, desired: dict[int, bool], observed: ResourcePipelinePermissions
) -> bool:
    authorize_all = bool(resource.spec.authorize_all)
    observed_all = bool(observed.all_pipelines and observed.all_pipelines.authorized)
    if authorize_all != observed_all:
        return False
    granted = {entry.id for entry in observed.pipelines if entry.authorized}
    return all(
        (pipeline_id in granted) == authorized for pipeline_id, authorized in desired.items()
    )


__all__ = ["PipelinePermissionExternal", "resolve_resource_id"]
