"""Policy: branch policy configurations, compared on an explicit allow-list of fields."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Any

from azdosync.adapters.azuredevops import NotFoundError
from azdosync.adapters.azuredevops.schema import PolicyConfiguration, PolicyType
from azdosync.adapters.azuredevops.schema import PolicyScope as RemoteScope
from azdosync.domain.model import GitRepository
from azdosync.domain.reconciliation import ExternalObservation
from azdosync.domain.reconciliation.compare import (
    POLICY_COMPARED_FIELDS,
    POLICY_COMPARED_SETTINGS,
    fields_equal,
    same_multiset,
)

from .support import parse_int_id, recorded_int_id, resolve_project

if TYPE_CHECKING:
    from collections.abc import Hashable

    from azdosync.adapters.azuredevops import AzureDevOpsAPI
    from azdosync.domain.model import Policy
    from azdosync.domain.reconciliation import PassContext

log = getLogger(__name__)


def resolve_scopes(resource: Policy, ctx: PassContext) -> list[RemoteScope]:
    scopes: list[RemoteScope] = []
    for index, scope in enumerate(resource.spec.settings.scope):
        repository_id: str | None = None
        if scope.repository_ref is not None:
            _, repository_id = ctx.binder.require_id(
                f"settings.scope[{index}].repository_ref", GitRepository, scope.repository_ref
            )
        scopes.append(
            RemoteScope(
                repository_id=repository_id, ref_name=scope.ref_name, match_kind=scope.match_kind
            )
        )
    return scopes


def desired_configuration(resource: Policy, scopes: list[RemoteScope]) -> PolicyConfiguration:
    spec = resource.spec
    settings: dict[str, Any] = dict(spec.settings.extra)
    settings["scope"] = [scope.to_payload() for scope in scopes]
    return PolicyConfiguration(
        type=PolicyType(id=spec.type_id),
        is_enabled=spec.is_enabled,
        is_blocking=spec.is_blocking,
        settings=settings,
    )


def _comparable(configuration: PolicyConfiguration) -> dict[str, Any]:
    values: dict[str, Any] = {
        "type_id": configuration.type.id,
        "is_enabled": configuration.is_enabled,
        "is_blocking": configuration.is_blocking,
    }
    return {name: values[name] for name in POLICY_COMPARED_FIELDS}


def _scope_key(scope: dict[str, Any]) -> Hashable:
    return (scope.get("repositoryId"), scope.get("refName"), scope.get("matchKind"))


def is_up_to_date(desired: PolicyConfiguration, observed: PolicyConfiguration) -> bool:
    if not fields_equal(_comparable(desired), _comparable(observed), POLICY_COMPARED_FIELDS):
        return False
    for name in POLICY_COMPARED_SETTINGS:
        wanted = desired.settings.get(name) or []
        actual = observed.settings.get(name) or []
        if not same_multiset(map(_scope_key, wanted), map(_scope_key, actual)):
            return False
    return True


class PolicyExternal:
    def __init__(self, api: AzureDevOpsAPI) -> None:
        self.api = api

    def observe(self, resource: Policy, ctx: PassContext) -> ExternalObservation:
        scope = resolve_project(ctx, resource.spec.project_ref)
        desired = desired_configuration(resource, resolve_scopes(resource, ctx))

        configuration_id = parse_int_id(resource.status.id)
        if configuration_id is None:
            return ExternalObservation(exists=False)
        try:
            observed = self.api.policies.get(
                scope.organization, scope.project_id, configuration_id
            )
        except NotFoundError:
            return ExternalObservation(exists=False)
        if observed.is_deleted:
            return ExternalObservation(exists=False)
        return ExternalObservation(exists=True, up_to_date=is_up_to_date(desired, observed))

    def create(self, resource: Policy, ctx: PassContext) -> None:
        scope = resolve_project(ctx, resource.spec.project_ref)
        desired = desired_configuration(resource, resolve_scopes(resource, ctx))
        created = self.api.policies.create(scope.organization, scope.project_id, desired)
        if created.id is not None:
            resource.status.bind_external(str(created.id))

    def update(self, resource: Policy, ctx: PassContext) -> None:
        scope = resolve_project(ctx, resource.spec.project_ref)
        configuration_id = recorded_int_id(resource)
        desired = desired_configuration(resource, resolve_scopes(resource, ctx))
        self.api.policies.update(scope.organization, scope.project_id, configuration_id, desired)

    def delete(self, resource: Policy, ctx: PassContext) -> None:
        scope = resolve_project(ctx, resource.spec.project_ref)
        configuration_id = parse_int_id(resource.status.id)
        if configuration_id is None:
            return
        try:
            self.api.policies.delete(scope.organization, scope.project_id, configuration_id)
        except NotFoundError:
            log.debug("Policy configuration %s is already gone", configuration_id)


__all__ = ["PolicyExternal", "desired_configuration", "is_up_to_date", "resolve_scopes"]
