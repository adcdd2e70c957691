"""TeamProject: creation and deletion run as asynchronous operations on the service."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Final

from azdosync.adapters.azuredevops import OPERATION_PENDING, OPERATION_SUCCEEDED, NotFoundError
from azdosync.adapters.azuredevops.schema import (
    ProcessTemplateCapability,
    ProjectCapabilities,
    VersionControlCapability,
)
from azdosync.adapters.azuredevops.schema import TeamProject as RemoteProject
from azdosync.domain.reconciliation import ExternalObservation

from .support import recorded_id, returned_id

if TYPE_CHECKING:
    from azdosync.adapters.azuredevops import AzureDevOpsAPI
    from azdosync.domain.model import TeamProject
    from azdosync.domain.reconciliation import PassContext

log = getLogger(__name__)

AGILE_PROCESS_TEMPLATE_ID: Final[str] = "adcc42ab-9882-493e-a8a9-6d7f5d5d4e9b"
WELL_FORMED: Final[str] = "wellFormed"


class TeamProjectExternal:
    def __init__(self, api: AzureDevOpsAPI) -> None:
        self.api = api

    def observe(self, resource: TeamProject, ctx: PassContext) -> ExternalObservation:
        spec, status = resource.spec, resource.status

        if status.operation_id:
            operation = self.api.projects.get_operation(spec.organization, status.operation_id)
            if operation.status in OPERATION_PENDING:
                log.debug(
                    "Operation %s on %s is %s", operation.id, resource.reference, operation.status
                )
                return ExternalObservation(exists=True, available=False)
            if operation.status != OPERATION_SUCCEEDED:
                log.warning(
                    "Operation %s on %s ended as %s: %s",
                    operation.id,
                    resource.reference,
                    operation.status,
                    operation.result_message,
                )
            status.operation_id = None

        try:
            remote = self.api.projects.get(spec.organization, status.id or spec.name)
        except NotFoundError:
            return ExternalObservation(exists=False)

        status.bind_external(returned_id(remote.id, f"project {spec.name}"))
        status.state = remote.state
        return ExternalObservation(
            exists=True,
            up_to_date=_is_up_to_date(resource, remote),
            available=remote.state == WELL_FORMED,
        )

    def create(self, resource: TeamProject, ctx: PassContext) -> None:
        spec = resource.spec
        body = RemoteProject(
            name=spec.name,
            description=spec.description,
            visibility=spec.visibility,
            capabilities=ProjectCapabilities(
                versioncontrol=VersionControlCapability(
                    source_control_type=spec.source_control_type
                ),
                process_template=ProcessTemplateCapability(
                    template_type_id=spec.process_template_id or AGILE_PROCESS_TEMPLATE_ID
                ),
            ),
        )
        operation = self.api.projects.create(spec.organization, body)
        resource.status.operation_id = operation.id
        log.info(
            "Queued creation of project %s/%s: %s", spec.organization, spec.name, operation.status
        )

    def update(self, resource: TeamProject, ctx: PassContext) -> None:
        spec = resource.spec
        body = RemoteProject(
            name=spec.name, description=spec.description, visibility=spec.visibility
        )
        operation = self.api.projects.update(spec.organization, recorded_id(resource), body)
        resource.status.operation_id = operation.id

    def delete(self, resource: TeamProject, ctx: PassContext) -> None:
        spec, status = resource.spec, resource.status
        if not status.id:
            log.info("Project %s was never assigned an id, nothing to delete", resource.reference)
            return
        try:
            self.api.projects.delete(spec.organization, status.id)
        except NotFoundError:
            log.debug("Project %s is already gone", status.id)


def _is_up_to_date(resource: TeamProject, remote: RemoteProject) -> bool:
    spec = resource.spec
    if remote.name != spec.name:
        return False
    if remote.description is not None and remote.description != spec.description:
        return False
    return remote.visibility is None or remote.visibility.lower() == spec.visibility.value


__all__ = ["AGILE_PROCESS_TEMPLATE_ID", "TeamProjectExternal"]
