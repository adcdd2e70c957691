"""Service endpoints (service connections)."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .paths import segment
from .schema import ListResponse, ServiceEndpoint

if TYPE_CHECKING:
    from .client import AzureDevOpsClient


class ServiceEndpointsAPI:
    def __init__(self, client: AzureDevOpsClient) -> None:
        self._client = client

    def get(self, organization: str, project: str, endpoint_id: str) -> ServiceEndpoint | None:
        """The service answers an unknown id with an empty body, reported as ``None``."""

        payload = self._client.get(
            f"{segment(organization)}/{segment(project)}/_apis/serviceendpoint/endpoints/"
            f"{segment(endpoint_id)}"
        )
        return ServiceEndpoint.model_validate(payload) if payload else None

    def find(self, organization: str, project: str, name: str) -> list[ServiceEndpoint]:
        payload = self._client.get(
            f"{segment(organization)}/{segment(project)}/_apis/serviceendpoint/endpoints",
            params={"endpointNames": name},
        )
        return ListResponse[ServiceEndpoint].model_validate(payload).value

    def create(self, organization: str, endpoint: ServiceEndpoint) -> ServiceEndpoint:
        """Endpoints are created once per organization and shared into projects."""

        payload = self._client.post(
            f"{segment(organization)}/_apis/serviceendpoint/endpoints",
            json=endpoint.to_payload(),
        )
        return ServiceEndpoint.model_validate(payload)

    def delete(self, organization: str, endpoint_id: str, project_ids: list[str]) -> None:
        self._client.delete(
            f"{segment(organization)}/_apis/serviceendpoint/endpoints/{segment(endpoint_id)}",
            params={"projectIds": ",".join(project_ids)},
        )


__all__ = ["ServiceEndpointsAPI"]
