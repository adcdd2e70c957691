from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Final, assert_never

from azdosync.domain.model import GitRepository, IdentityType, TeamProject
from azdosync.domain.reconciliation import ExternalAPIError, status_id

if TYPE_CHECKING:
    from azdosync.adapters.azuredevops import AzureDevOpsAPI
    from azdosync.domain.model import ManagedResource, PermissionIdentity, Reference
    from azdosync.domain.reconciliation import PassContext

PROJECT_FIELD = "project_ref"
REPOSITORY_FIELD = "repository_ref"
IDENTITY_PROJECT_FIELD = "identity.project_ref"

# Descriptors read "<identity type>;<identifier>".
IDENTITY_DESCRIPTOR_TYPES: Final[dict[IdentityType, str]] = {
    IdentityType.BUILD_SERVICE: "Microsoft.TeamFoundation.ServiceIdentity",
    IdentityType.AZURE_GROUP: "Microsoft.TeamFoundation.Identity",
}


@dataclass(frozen=True, slots=True)
class ProjectScope:
    """Organization and project id a project-scoped call is addressed to."""

    organization: str
    project_id: str
    project: TeamProject


def resolve_project(ctx: PassContext, reference: Reference | None) -> ProjectScope:
    project, project_id = ctx.binder.require_id(PROJECT_FIELD, TeamProject, reference)
    return ProjectScope(project.spec.organization, project_id, project)


def resolve_repository(
    ctx: PassContext, reference: Reference | None
) -> tuple[GitRepository, str]:
    return ctx.binder.require_id(REPOSITORY_FIELD, GitRepository, reference)


def identity_display_name(
    identity: PermissionIdentity, project: TeamProject, project_id: str
) -> str:
    match identity.type:
        case IdentityType.BUILD_SERVICE:
            return project_id
        case IdentityType.AZURE_GROUP:
            if not identity.name:
                raise ValueError("A group identity needs a name")
            return f"[{project.spec.name}]\\{identity.name}"
        case _:
            assert_never(identity.type)


def resolve_identity(api: AzureDevOpsAPI, ctx: PassContext, identity: PermissionIdentity) -> str:
    """Descriptor of the build service or project group ``identity`` names."""

    project, project_id = ctx.binder.require_id(
        IDENTITY_PROJECT_FIELD, TeamProject, identity.project_ref
    )
    display_name = identity_display_name(identity, project, project_id)
    descriptor_type = IDENTITY_DESCRIPTOR_TYPES[identity.type]
    for candidate in api.security.find_identities(project.spec.organization, display_name):
        if (
            candidate.descriptor.partition(";")[0] == descriptor_type
            and candidate.provider_display_name == display_name
        ):
            return candidate.descriptor
    raise ExternalAPIError(
        f"No {identity.type} identity {display_name!r} in {project.spec.organization}"
    )


def parse_int_id(value: str | None) -> int | None:
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def recorded_id(resource: ManagedResource) -> str:
    """The external id stored on ``resource``; updates and deletes are addressed by it."""

    value = status_id(resource)
    if not value:
        raise ExternalAPIError(f"{resource.KIND} {resource.reference} has no external id")
    return value


def recorded_int_id(resource: ManagedResource) -> int:
    value = parse_int_id(recorded_id(resource))
    if value is None:
        raise ExternalAPIError(
            f"{resource.KIND} {resource.reference} has a non-numeric id {status_id(resource)!r}"
        )
    return value


def returned_id[V](value: V | None, what: str) -> V:
    """``value`` as sent back by the service, which must not leave it out."""

    if value is None:
        raise ExternalAPIError(f"The service returned {what} without an id")
    return value


__all__ = [
    "IDENTITY_DESCRIPTOR_TYPES",
    "IDENTITY_PROJECT_FIELD",
    "PROJECT_FIELD",
    "REPOSITORY_FIELD",
    "ProjectScope",
    "identity_display_name",
    "parse_int_id",
    "recorded_id",
    "recorded_int_id",
    "resolve_identity",
    "resolve_project",
    "resolve_repository",
    "returned_id",
]
