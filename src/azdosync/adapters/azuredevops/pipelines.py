"""Pipelines area: YAML pipelines and resource authorizations."""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

from .paths import segment
from .schema import ListResponse, Pipeline, ResourcePipelinePermissions

if TYPE_CHECKING:
    from .client import AzureDevOpsClient

PIPELINE_PERMISSIONS_API_VERSION: Final[str] = "7.0-preview.1"


class PipelinesAPI:
    def __init__(self, client: AzureDevOpsClient) -> None:
        self._client = client

    def _pipelines(self, organization: str, project: str) -> str:
        return f"{segment(organization)}/{segment(project)}/_apis/pipelines"

    def get(self, organization: str, project: str, pipeline_id: int) -> Pipeline:
        payload = self._client.get(f"{self._pipelines(organization, project)}/{pipeline_id}")
        return Pipeline.model_validate(payload)

    def list_pipelines(self, organization: str, project: str) -> list[Pipeline]:
        payload = self._client.get(self._pipelines(organization, project))
        return ListResponse[Pipeline].model_validate(payload).value

    def create(self, organization: str, project: str, pipeline: Pipeline) -> Pipeline:
        payload = self._client.post(
            self._pipelines(organization, project), json=pipeline.to_payload()
        )
        return Pipeline.model_validate(payload)

    def _permissions(
        self, organization: str, project: str, resource_type: str, resource_id: str
    ) -> str:
        return (
            f"{segment(organization)}/{segment(project)}/_apis/pipelines/pipelinepermissions/"
            f"{segment(resource_type)}/{segment(resource_id)}"
        )

    def get_permissions(
        self, organization: str, project: str, resource_type: str, resource_id: str
    ) -> ResourcePipelinePermissions:
        payload = self._client.get(
            self._permissions(organization, project, resource_type, resource_id),
            api_version=PIPELINE_PERMISSIONS_API_VERSION,
        )
        return ResourcePipelinePermissions.model_validate(payload or {})

    def update_permissions(
        self,
        organization: str,
        project: str,
        resource_type: str,
        resource_id: str,
        permissions: ResourcePipelinePermissions,
    ) -> ResourcePipelinePermissions:
        payload = self._client.patch(
            self._permissions(organization, project, resource_type, resource_id),
            json=permissions.to_payload(),
            api_version=PIPELINE_PERMISSIONS_API_VERSION,
        )
        return ResourcePipelinePermissions.model_validate(payload or {})


__all__ = ["PIPELINE_PERMISSIONS_API_VERSION", "PipelinesAPI"]
