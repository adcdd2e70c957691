"""Conversion between the served ``v1alpha1`` and the stored ``v1alpha2`` PipelinePermission.

``v1alpha1`` names its project and resource by literal values (name or id); ``v1alpha2``
points at the stored records instead. Converting therefore needs live lookups, which
are all done up front in a planning phase. Only when every lookup succeeded is the
target object materialized, so a failed conversion never yields a partial object and
never touches its input.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Final, assert_never

from azdosync.domain.model import (
    REFERENCABLE_TYPES,
    Endpoint,
    Environment,
    GitRepository,
    LegacyPermissionResource,
    ManagedResource,
    ObjectMeta,
    PermissionResource,
    PipelinePermission,
    PipelinePermissionSpec,
    PipelinePermissionV1Alpha1,
    PipelinePermissionV1Alpha1Spec,
    Queue,
    ReferencableKind,
    Reference,
    TeamProject,
)
from azdosync.domain.reconciliation.references import (
    ReferenceNotFoundError,
    ReferenceResolutionError,
    ReferenceResolver,
    status_id,
)

if TYPE_CHECKING:
    from azdosync.domain.ports.store import ObjectStore

log = getLogger(__name__)

STORAGE_VERSION: Final[str] = PipelinePermission.API_VERSION
LEGACY_VERSION: Final[str] = PipelinePermissionV1Alpha1.API_VERSION
REPOSITORY_ID_SEPARATOR: Final[str] = "."


class ConversionError(RuntimeError):
    """Raised when an object cannot be converted; the input is left untouched."""

    def __init__(self, message: str, *, name: str | None = None) -> None:
        super().__init__(message)
        self.name = name


def parse_referencable_kind(value: str) -> ReferencableKind:
    try:
        return ReferencableKind(value.strip().lower())
    except ValueError as exc:
        raise ConversionError(f"Unsupported resource type: {value!r}") from exc


def composite_repository_id(project_id: str, repository_id: str) -> str:
    return f"{project_id}{REPOSITORY_ID_SEPARATOR}{repository_id}"


def split_repository_id(value: str) -> str:
    """Return the repository part of ``<projectId>.<repositoryId>``; plain ids pass through."""

    _, separator, repository_id = value.partition(REPOSITORY_ID_SEPARATOR)
    return repository_id if separator else value


@dataclass(frozen=True, slots=True)
class StoragePlan:
    project: Reference
    resource_kind: ReferencableKind
    resource: Reference


@dataclass(frozen=True, slots=True)
class LegacyPlan:
    project: str
    organization: str
    resource_kind: ReferencableKind
    resource_id: str
    resource_name: str | None


class PipelinePermissionConverter:
    def __init__(self, store: ObjectStore) -> None:
        self.resolver = ReferenceResolver(store)

    def convert_to(self, source: PipelinePermissionV1Alpha1) -> PipelinePermission:
        """Convert a legacy object to the storage version."""

        return self.materialize_storage(source, self.plan_storage(source))

    def convert_from(self, source: PipelinePermission) -> PipelinePermissionV1Alpha1:
        """Convert a stored object back to the legacy version."""

        return self.materialize_legacy(source, self.plan_legacy(source))

    def plan_storage(self, source: PipelinePermissionV1Alpha1) -> StoragePlan:
        spec = source.spec
        name = source.metadata.name
        resource_type = spec.resource.type
        kind = parse_referencable_kind(resource_type)
        try:
            project = self._find_project(spec.project, spec.organization)
            if not project.status.id:
                raise ConversionError(
                    f"Cannot convert {name}: TeamProject {project.reference} has no identifier yet",
                    name=name,
                )
            target = self._find_resource(kind, spec.resource)
        except ReferenceResolutionError as exc:
            raise ConversionError(f"Cannot convert {name}: {exc}", name=name) from exc
        return StoragePlan(project=project.reference, resource_kind=kind, resource=target.reference)

    def plan_legacy(self, source: PipelinePermission) -> LegacyPlan:
        spec = source.spec
        name = source.metadata.name
        try:
            project = self.resolver.resolve_object(TeamProject, spec.project_ref)
            resource_id, resource_name = self._describe_resource(
                spec.resource.type, spec.resource.resource_ref
            )
        except ReferenceResolutionError as exc:
            raise ConversionError(f"Cannot convert {name}: {exc}", name=name) from exc

        if not resource_id:
            raise ConversionError(
                f"Cannot convert {name}: {spec.resource.type} {spec.resource.resource_ref} "
                "has no identifier yet",
                name=name,
            )
        return LegacyPlan(
            project=project.status.id or project.spec.name,
            organization=project.spec.organization,
            resource_kind=spec.resource.type,
            resource_id=resource_id,
            resource_name=resource_name,
        )

    def materialize_storage(
        self, source: PipelinePermissionV1Alpha1, plan: StoragePlan
    ) -> PipelinePermission:
        return PipelinePermission(
            metadata=_copy_meta(source.metadata),
            spec=PipelinePermissionSpec(
                connector_config_ref=source.spec.connector_config_ref,
                management_policies=source.spec.management_policies,
                project_ref=plan.project,
                resource=PermissionResource(type=plan.resource_kind, resource_ref=plan.resource),
                authorize_all=source.spec.authorize,
            ),
            status=copy.deepcopy(source.status),
        )

    def materialize_legacy(
        self, source: PipelinePermission, plan: LegacyPlan
    ) -> PipelinePermissionV1Alpha1:
        if source.spec.pipelines:
            log.debug(
                "Per-pipeline authorizations of %s have no %s representation and are dropped",
                source.metadata.name,
                LEGACY_VERSION,
            )
        return PipelinePermissionV1Alpha1(
            metadata=_copy_meta(source.metadata),
            spec=PipelinePermissionV1Alpha1Spec(
                connector_config_ref=source.spec.connector_config_ref,
                management_policies=source.spec.management_policies,
                project=plan.project,
                organization=plan.organization,
                resource=LegacyPermissionResource(
                    type=str(plan.resource_kind),
                    id=plan.resource_id,
                    name=plan.resource_name,
                ),
                authorize=source.spec.authorize_all,
            ),
            status=copy.deepcopy(source.status),
        )

    def _find_project(self, literal: str, organization: str | None) -> TeamProject:
        """Find the project whose id, or failing that whose name, equals ``literal``."""

        def by_id(project: TeamProject) -> str | None:
            if organization and project.spec.organization != organization:
                return None
            return project.status.id

        def by_name(project: TeamProject) -> str | None:
            if organization and project.spec.organization != organization:
                return None
            return project.spec.name

        try:
            return self.resolver.find_by_value(TeamProject, by_id, literal)
        except ReferenceNotFoundError:
            log.debug("No TeamProject with id %r, looking it up by name", literal)
        return self.resolver.find_by_value(TeamProject, by_name, literal)

    def _find_resource(
        self, kind: ReferencableKind, resource: LegacyPermissionResource
    ) -> ManagedResource:
        target = REFERENCABLE_TYPES[kind]
        if resource.id:
            value = resource.id
            if kind is ReferencableKind.GIT_REPOSITORY:
                value = split_repository_id(value)
            return self.resolver.find_by_value(target, status_id, value)
        if resource.name:
            found = self.resolver.find_by_value(target, _spec_name, resource.name)
            if not status_id(found):
                raise ConversionError(f"{kind} {found.reference} has no identifier yet")
            return found
        raise ConversionError(f"Resource of type {kind} carries neither id nor name")

    def _describe_resource(
        self, kind: ReferencableKind, reference: Reference
    ) -> tuple[str | None, str | None]:
        match kind:
            case ReferencableKind.GIT_REPOSITORY:
                repository = self.resolver.resolve_object(GitRepository, reference)
                project = self.resolver.resolve_object(TeamProject, repository.spec.project_ref)
                if not repository.status.id or not project.status.id:
                    return None, repository.spec.name
                return (
                    composite_repository_id(project.status.id, repository.status.id),
                    repository.spec.name,
                )
            case ReferencableKind.TEAM_PROJECT:
                project = self.resolver.resolve_object(TeamProject, reference)
                return project.status.id, project.spec.name
            case ReferencableKind.ENVIRONMENT:
                environment = self.resolver.resolve_object(Environment, reference)
                return environment.status.id, environment.spec.name
            case ReferencableKind.QUEUE:
                queue = self.resolver.resolve_object(Queue, reference)
                return queue.status.id, queue.spec.name
            case ReferencableKind.ENDPOINT:
                endpoint = self.resolver.resolve_object(Endpoint, reference)
                return endpoint.status.id, endpoint.spec.name
            case _:
                assert_never(kind)


def _spec_name(resource: ManagedResource) -> str | None:
    return getattr(resource.spec, "name", None)


def _copy_meta(metadata: ObjectMeta) -> ObjectMeta:
    return copy.deepcopy(metadata)


def convert(
    converter: PipelinePermissionConverter,
    obj: PipelinePermission | PipelinePermissionV1Alpha1,
    to_version: str,
) -> PipelinePermission | PipelinePermissionV1Alpha1:
    """Convert ``obj`` to ``to_version``; converting to the object's own version copies it."""

    if to_version == obj.API_VERSION:
        return copy.deepcopy(obj)
    if isinstance(obj, PipelinePermissionV1Alpha1) and to_version == STORAGE_VERSION:
        return converter.convert_to(obj)
    if isinstance(obj, PipelinePermission) and to_version == LEGACY_VERSION:
        return converter.convert_from(obj)
    raise ConversionError(f"Unsupported target version {to_version!r}", name=obj.metadata.name)


__all__ = [
    "LEGACY_VERSION",
    "STORAGE_VERSION",
    "ConversionError",
    "LegacyPlan",
    "PipelinePermissionConverter",
    "StoragePlan",
    "composite_repository_id",
    "convert",
    "parse_referencable_kind",
    "split_repository_id",
]