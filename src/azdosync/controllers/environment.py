"""Environment: deployment environment of a project, kept in line with name and description."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from azdosync.adapters.azuredevops import NotFoundError
from azdosync.adapters.azuredevops.schema import EnvironmentInstance
from azdosync.domain.reconciliation import ExternalObservation

from .support import recorded_int_id, resolve_project, returned_id

if TYPE_CHECKING:
    from azdosync.adapters.azuredevops import AzureDevOpsAPI
    from azdosync.domain.model import Environment
    from azdosync.domain.reconciliation import PassContext

    from .support import ProjectScope

log = getLogger(__name__)


def is_up_to_date(resource: Environment, observed: EnvironmentInstance) -> bool:
    spec = resource.spec
    return observed.name == spec.name and (observed.description or "") == spec.description


class EnvironmentExternal:
    def __init__(self, api: AzureDevOpsAPI) -> None:
        self.api = api

    def observe(self, resource: Environment, ctx: PassContext) -> ExternalObservation:
        scope = resolve_project(ctx, resource.spec.project_ref)
        observed = self._find(resource, scope)
        if observed is None:
            return ExternalObservation(exists=False)

        self._record(resource, observed)
        return ExternalObservation(exists=True, up_to_date=is_up_to_date(resource, observed))

    def create(self, resource: Environment, ctx: PassContext) -> None:
        scope = resolve_project(ctx, resource.spec.project_ref)
        created = self.api.distributedtask.create_environment(
            scope.organization, scope.project_id, self._body(resource)
        )
        self._record(resource, created)

    def update(self, resource: Environment, ctx: PassContext) -> None:
        scope = resolve_project(ctx, resource.spec.project_ref)
        updated = self.api.distributedtask.update_environment(
            scope.organization, scope.project_id, recorded_int_id(resource), self._body(resource)
        )
        self._record(resource, updated)

    def delete(self, resource: Environment, ctx: PassContext) -> None:
        if not resource.status.id:
            return
        scope = resolve_project(ctx, resource.spec.project_ref)
        try:
            self.api.distributedtask.delete_environment(
                scope.organization, scope.project_id, recorded_int_id(resource)
            )
        except NotFoundError:
            log.debug("Environment %s is already gone", resource.status.id)

    def _find(self, resource: Environment, scope: ProjectScope) -> EnvironmentInstance | None:
        tasks = self.api.distributedtask
        if resource.status.id:
            try:
                return tasks.get_environment(
                    scope.organization, scope.project_id, recorded_int_id(resource)
                )
            except NotFoundError:
                return None
        for environment in tasks.list_environments(scope.organization, scope.project_id):
            if environment.name == resource.spec.name:
                return environment
        return None

    @staticmethod
    def _body(resource: Environment) -> EnvironmentInstance:
        return EnvironmentInstance(name=resource.spec.name, description=resource.spec.description)

    @staticmethod
    def _record(resource: Environment, remote: EnvironmentInstance) -> None:
        environment_id = returned_id(remote.id, f"environment {remote.name}")
        resource.status.bind_external(str(environment_id))


__all__ = ["EnvironmentExternal", "is_up_to_date"]
