"""Endpoint: service connection created in a project and optionally shared with others.

Authorization secrets cannot be read back, so an endpoint is created once and never
updated in place.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from azdosync.adapters.azuredevops import NotFoundError
from azdosync.adapters.azuredevops.schema import (
    EndpointAuthorization as RemoteAuthorization,
)
from azdosync.adapters.azuredevops.schema import (
    EndpointProjectReference,
    ServiceEndpoint,
    ServiceEndpointProjectReference,
)
from azdosync.domain.model import Secret, TeamProject
from azdosync.domain.reconciliation import ExternalObservation

from .support import recorded_id, resolve_project, returned_id

if TYPE_CHECKING:
    from azdosync.adapters.azuredevops import AzureDevOpsAPI
    from azdosync.domain.model import Endpoint, EndpointAuthorization
    from azdosync.domain.reconciliation import PassContext

    from .support import ProjectScope

log = getLogger(__name__)


def authorization_parameters(
    authorization: EndpointAuthorization, ctx: PassContext
) -> dict[str, str]:
    """Literal parameters merged with the ones read from secrets."""

    parameters = dict(authorization.parameters)
    for name, selector in authorization.secret_parameters.items():
        secret = ctx.resolver.resolve_object(Secret, selector.reference)
        value = secret.data.get(selector.key)
        if value is None:
            raise ValueError(f"Secret {selector.reference} has no value under key {selector.key!r}")
        parameters[name] = value
    return parameters


class EndpointExternal:
    def __init__(self, api: AzureDevOpsAPI) -> None:
        self.api = api

    def observe(self, resource: Endpoint, ctx: PassContext) -> ExternalObservation:
        scope = resolve_project(ctx, resource.spec.project_ref)
        observed = self._find(resource, scope)
        if observed is None:
            return ExternalObservation(exists=False)

        self._record(resource, observed)
        return ExternalObservation(exists=True, available=observed.is_ready is not False)

    def create(self, resource: Endpoint, ctx: PassContext) -> None:
        scope = resolve_project(ctx, resource.spec.project_ref)
        created = self.api.serviceendpoints.create(
            scope.organization, self._body(resource, scope, ctx)
        )
        self._record(resource, created)
        log.info("Created endpoint %s (%s) in %s", created.name, created.id, scope.organization)

    def update(self, resource: Endpoint, ctx: PassContext) -> None:
        log.debug("Endpoints are not updated in place (%s)", resource.reference)

    def delete(self, resource: Endpoint, ctx: PassContext) -> None:
        if not resource.status.id:
            return
        scope = resolve_project(ctx, resource.spec.project_ref)
        try:
            self.api.serviceendpoints.delete(
                scope.organization, recorded_id(resource), [scope.project_id]
            )
        except NotFoundError:
            log.debug("Endpoint %s is already gone", resource.status.id)

    def _find(self, resource: Endpoint, scope: ProjectScope) -> ServiceEndpoint | None:
        endpoints = self.api.serviceendpoints
        if resource.status.id:
            try:
                return endpoints.get(scope.organization, scope.project_id, resource.status.id)
            except NotFoundError:
                return None
        for endpoint in endpoints.find(scope.organization, scope.project_id, resource.spec.name):
            if endpoint.name == resource.spec.name:
                return endpoint
        return None

    def _body(self, resource: Endpoint, scope: ProjectScope, ctx: PassContext) -> ServiceEndpoint:
        spec = resource.spec
        projects = [(scope.project_id, scope.project.spec.name)]
        for index, reference in enumerate(spec.shared_project_refs):
            project, project_id = ctx.binder.require_id(
                f"shared_project_refs[{index}]", TeamProject, reference
            )
            projects.append((project_id, project.spec.name))

        authorization = None
        if spec.authorization is not None:
            authorization = RemoteAuthorization(
                scheme=spec.authorization.scheme,
                parameters=authorization_parameters(spec.authorization, ctx),
            )
        return ServiceEndpoint(
            name=spec.name,
            type=spec.type,
            url=spec.url,
            description=spec.description,
            owner=spec.owner,
            is_shared=spec.is_shared or len(projects) > 1,
            authorization=authorization,
            data=dict(spec.data),
            service_endpoint_project_references=[
                ServiceEndpointProjectReference(
                    name=spec.name,
                    description=spec.description,
                    project_reference=EndpointProjectReference(id=project_id, name=name),
                )
                for project_id, name in projects
            ],
        )

    @staticmethod
    def _record(resource: Endpoint, remote: ServiceEndpoint) -> None:
        resource.status.bind_external(returned_id(remote.id, f"endpoint {remote.name}"))
        resource.status.url = remote.url


__all__ = ["EndpointExternal", "authorization_parameters"]
