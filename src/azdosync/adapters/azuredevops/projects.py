"""Core area: team projects and the long-running operations behind them."""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

from .paths import segment
from .schema import Operation, OperationReference, TeamProject

if TYPE_CHECKING:
    from .client import AzureDevOpsClient

# Operation states reported by ``_apis/operations``.
OPERATION_PENDING: Final[frozenset[str]] = frozenset({"notSet", "queued", "inProgress"})
OPERATION_SUCCEEDED: Final[str] = "succeeded"


class ProjectsAPI:
    def __init__(self, client: AzureDevOpsClient) -> None:
        self._client = client

    def get(self, organization: str, project: str) -> TeamProject:
        """Fetch a project by id or by name."""

        payload = self._client.get(
            f"{segment(organization)}/_apis/projects/{segment(project)}",
            params={"includeCapabilities": "true"},
        )
        return TeamProject.model_validate(payload)

    def create(self, organization: str, project: TeamProject) -> OperationReference:
        payload = self._client.post(
            f"{segment(organization)}/_apis/projects", json=project.to_payload()
        )
        return OperationReference.model_validate(payload)

    def update(self, organization: str, project_id: str, project: TeamProject) -> OperationReference:
        payload = self._client.patch(
            f"{segment(organization)}/_apis/projects/{segment(project_id)}",
            json=project.to_payload(),
        )
        return OperationReference.model_validate(payload)

    def delete(self, organization: str, project_id: str) -> OperationReference:
        payload = self._client.delete(f"{segment(organization)}/_apis/projects/{segment(project_id)}")
        return OperationReference.model_validate(payload)

    def get_operation(self, organization: str, operation_id: str) -> Operation:
        payload = self._client.get(
            f"{segment(organization)}/_apis/operations/{segment(operation_id)}"
        )
        return Operation.model_validate(payload)


__all__ = ["OPERATION_PENDING", "OPERATION_SUCCEEDED", "ProjectsAPI"]
