"""Distributed task area: deployment environments, agent queues and agent pools."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .paths import segment
from .schema import EnvironmentInstance, ListResponse, TaskAgentPool, TaskAgentQueue

if TYPE_CHECKING:
    from .client import AzureDevOpsClient


class DistributedTaskAPI:
    def __init__(self, client: AzureDevOpsClient) -> None:
        self._client = client

    def _project(self, organization: str, project: str) -> str:
        return f"{segment(organization)}/{segment(project)}/_apis/distributedtask"

    def get_environment(
        self, organization: str, project: str, environment_id: int
    ) -> EnvironmentInstance:
        payload = self._client.get(
            f"{self._project(organization, project)}/environments/{environment_id}"
        )
        return EnvironmentInstance.model_validate(payload)

    def list_environments(self, organization: str, project: str) -> list[EnvironmentInstance]:
        payload = self._client.get(f"{self._project(organization, project)}/environments")
        return ListResponse[EnvironmentInstance].model_validate(payload).value

    def create_environment(
        self, organization: str, project: str, environment: EnvironmentInstance
    ) -> EnvironmentInstance:
        payload = self._client.post(
            f"{self._project(organization, project)}/environments",
            json=environment.to_payload(),
        )
        return EnvironmentInstance.model_validate(payload)

    def update_environment(
        self,
        organization: str,
        project: str,
        environment_id: int,
        environment: EnvironmentInstance,
    ) -> EnvironmentInstance:
        payload = self._client.patch(
            f"{self._project(organization, project)}/environments/{environment_id}",
            json=environment.to_payload(),
        )
        return EnvironmentInstance.model_validate(payload)

    def delete_environment(self, organization: str, project: str, environment_id: int) -> None:
        self._client.delete(
            f"{self._project(organization, project)}/environments/{environment_id}"
        )

    def get_queue(self, organization: str, project: str, queue_id: int) -> TaskAgentQueue:
        payload = self._client.get(f"{self._project(organization, project)}/queues/{queue_id}")
        return TaskAgentQueue.model_validate(payload)

    def find_queues(self, organization: str, project: str, name: str) -> list[TaskAgentQueue]:
        payload = self._client.get(
            f"{self._project(organization, project)}/queues", params={"queueNames": name}
        )
        return ListResponse[TaskAgentQueue].model_validate(payload).value

    def create_queue(
        self, organization: str, project: str, queue: TaskAgentQueue
    ) -> TaskAgentQueue:
        payload = self._client.post(
            f"{self._project(organization, project)}/queues", json=queue.to_payload()
        )
        return TaskAgentQueue.model_validate(payload)

    def delete_queue(self, organization: str, project: str, queue_id: int) -> None:
        self._client.delete(f"{self._project(organization, project)}/queues/{queue_id}")

    def find_pools(self, organization: str, name: str) -> list[TaskAgentPool]:
        """Agent pools are organization-wide."""

        payload = self._client.get(
            f"{segment(organization)}/_apis/distributedtask/pools", params={"poolName": name}
        )
        return ListResponse[TaskAgentPool].model_validate(payload).value


__all__ = ["DistributedTaskAPI"]
