"""Git area: repositories, pushes and pull requests."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .paths import segment
from .schema import GitPullRequest, GitPush, GitRepository, ListResponse, ProjectReference

if TYPE_CHECKING:
    from .client import AzureDevOpsClient


class GitAPI:
    def __init__(self, client: AzureDevOpsClient) -> None:
        self._client = client

    def _repositories(self, organization: str, project: str) -> str:
        return f"{segment(organization)}/{segment(project)}/_apis/git/repositories"

    def get_repository(self, organization: str, project: str, repository: str) -> GitRepository:
        payload = self._client.get(
            f"{self._repositories(organization, project)}/{segment(repository)}"
        )
        return GitRepository.model_validate(payload)

    def create_repository(self, organization: str, project_id: str, name: str) -> GitRepository:
        body = GitRepository(name=name, project=ProjectReference(id=project_id))
        payload = self._client.post(
            self._repositories(organization, project_id), json=body.to_payload()
        )
        return GitRepository.model_validate(payload)

    def delete_repository(self, organization: str, project: str, repository_id: str) -> None:
        self._client.delete(
            f"{self._repositories(organization, project)}/{segment(repository_id)}"
        )

    def create_push(
        self, organization: str, project: str, repository_id: str, push: GitPush
    ) -> None:
        self._client.post(
            f"{self._repositories(organization, project)}/{segment(repository_id)}/pushes",
            json=push.to_payload(),
        )

    def _pull_requests(self, organization: str, project: str, repository_id: str) -> str:
        return (
            f"{self._repositories(organization, project)}/{segment(repository_id)}/pullrequests"
        )

    def get_pull_request(
        self, organization: str, project: str, repository_id: str, pull_request_id: int
    ) -> GitPullRequest:
        payload = self._client.get(
            f"{self._pull_requests(organization, project, repository_id)}/{pull_request_id}"
        )
        return GitPullRequest.model_validate(payload)

    def list_pull_requests(
        self,
        organization: str,
        project: str,
        repository_id: str,
        *,
        source_ref_name: str | None = None,
        target_ref_name: str | None = None,
        status: str = "all",
    ) -> list[GitPullRequest]:
        params: dict[str, str | int] = {"searchCriteria.status": status}
        if source_ref_name:
            params["searchCriteria.sourceRefName"] = source_ref_name
        if target_ref_name:
            params["searchCriteria.targetRefName"] = target_ref_name
        payload = self._client.get(
            self._pull_requests(organization, project, repository_id), params=params
        )
        return ListResponse[GitPullRequest].model_validate(payload).value

    def create_pull_request(
        self, organization: str, project: str, repository_id: str, pull_request: GitPullRequest
    ) -> GitPullRequest:
        payload = self._client.post(
            self._pull_requests(organization, project, repository_id),
            json=pull_request.to_payload(),
        )
        return GitPullRequest.model_validate(payload)

    def update_pull_request(
        self,
        organization: str,
        project: str,
        repository_id: str,
        pull_request_id: int,
        changes: GitPullRequest,
    ) -> GitPullRequest:
        payload = self._client.patch(
            f"{self._pull_requests(organization, project, repository_id)}/{pull_request_id}",
            json=changes.to_payload(),
        )
        return GitPullRequest.model_validate(payload)


__all__ = ["GitAPI"]
