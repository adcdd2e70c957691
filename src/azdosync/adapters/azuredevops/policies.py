"""Policy area: branch policy configurations."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .paths import segment
from .schema import ListResponse, PolicyConfiguration

if TYPE_CHECKING:
    from .client import AzureDevOpsClient


class PoliciesAPI:
    def __init__(self, client: AzureDevOpsClient) -> None:
        self._client = client

    def _configurations(self, organization: str, project: str) -> str:
        return f"{segment(organization)}/{segment(project)}/_apis/policy/configurations"

    def get(self, organization: str, project: str, configuration_id: int) -> PolicyConfiguration:
        payload = self._client.get(
            f"{self._configurations(organization, project)}/{configuration_id}"
        )
        return PolicyConfiguration.model_validate(payload)

    def list_configurations(self, organization: str, project: str) -> list[PolicyConfiguration]:
        payload = self._client.get(self._configurations(organization, project))
        return ListResponse[PolicyConfiguration].model_validate(payload).value

    def create(
        self, organization: str, project: str, configuration: PolicyConfiguration
    ) -> PolicyConfiguration:
        payload = self._client.post(
            self._configurations(organization, project), json=configuration.to_payload()
        )
        return PolicyConfiguration.model_validate(payload)

    def update(
        self,
        organization: str,
        project: str,
        configuration_id: int,
        configuration: PolicyConfiguration,
    ) -> PolicyConfiguration:
        payload = self._client.put(
            f"{self._configurations(organization, project)}/{configuration_id}",
            json=configuration.to_payload(),
        )
        return PolicyConfiguration.model_validate(payload)

    def delete(self, organization: str, project: str, configuration_id: int) -> None:
        self._client.delete(f"{self._configurations(organization, project)}/{configuration_id}")


__all__ = ["PoliciesAPI"]
