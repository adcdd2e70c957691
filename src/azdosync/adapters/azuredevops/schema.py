"""Pydantic models for the Azure DevOps REST API (only the fields the controllers use)."""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class AzureDevOpsModel(BaseModel):
    model_config = ConfigDict(extra="ignore", alias_generator=to_camel, populate_by_name=True)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class ErrorResponse(AzureDevOpsModel):
    message: str
    type_key: str | None = None
    error_code: int | None = None
    event_id: int | None = None


T = TypeVar("T")


class ListResponse(AzureDevOpsModel, Generic[T]):
    count: int | None = None
    value: list[T] = Field(default_factory=list)


class OperationReference(AzureDevOpsModel):
    id: str
    status: str | None = None
    url: str | None = None


class Operation(OperationReference):
    result_message: str | None = None


class VersionControlCapability(AzureDevOpsModel):
    source_control_type: str


class ProcessTemplateCapability(AzureDevOpsModel):
    template_type_id: str


class ProjectCapabilities(AzureDevOpsModel):
    versioncontrol: VersionControlCapability | None = None
    process_template: ProcessTemplateCapability | None = None


class TeamProject(AzureDevOpsModel):
    id: str | None = None
    name: str
    description: str | None = None
    visibility: str | None = None
    state: str | None = None
    url: str | None = None
    capabilities: ProjectCapabilities | None = None


class ProjectReference(AzureDevOpsModel):
    id: str
    name: str | None = None


class GitRepository(AzureDevOpsModel):
    id: str | None = None
    name: str
    project: ProjectReference | None = None
    default_branch: str | None = None
    remote_url: str | None = None
    ssh_url: str | None = None
    url: str | None = None
    is_disabled: bool | None = None


class GitRefUpdate(AzureDevOpsModel):
    name: str
    old_object_id: str


class GitItem(AzureDevOpsModel):
    path: str


class GitNewContent(AzureDevOpsModel):
    content: str
    content_type: str = "rawtext"


class GitChange(AzureDevOpsModel):
    change_type: str = "add"
    item: GitItem
    new_content: GitNewContent


class GitCommit(AzureDevOpsModel):
    comment: str
    changes: list[GitChange]


class GitPush(AzureDevOpsModel):
    ref_updates: list[GitRefUpdate]
    commits: list[GitCommit]


class PipelineRepository(AzureDevOpsModel):
    id: str
    name: str | None = None
    type: str = "azureReposGit"


class PipelineConfiguration(AzureDevOpsModel):
    type: str = "yaml"
    path: str | None = None
    repository: PipelineRepository | None = None


class Pipeline(AzureDevOpsModel):
    id: int | None = None
    name: str
    folder: str | None = None
    revision: int | None = None
    url: str | None = None
    configuration: PipelineConfiguration | None = None


class Permission(AzureDevOpsModel):
    authorized: bool


class PipelineAuthorization(AzureDevOpsModel):
    id: int
    authorized: bool = True


class PermissionResource(AzureDevOpsModel):
    id: str
    type: str
    name: str | None = None


class ResourcePipelinePermissions(AzureDevOpsModel):
    all_pipelines: Permission | None = None
    pipelines: list[PipelineAuthorization] = Field(default_factory=list)
    resource: PermissionResource | None = None


class GitPullRequest(AzureDevOpsModel):
    pull_request_id: int | None = None
    title: str | None = None
    description: str | None = None
    source_ref_name: str | None = None
    target_ref_name: str | None = None
    status: str | None = None
    is_draft: bool | None = None
    url: str | None = None


class PolicyType(AzureDevOpsModel):
    id: str
    display_name: str | None = None


class PolicyScope(AzureDevOpsModel):
    repository_id: str | None = None
    ref_name: str | None = None
    match_kind: str | None = None


class PolicyConfiguration(AzureDevOpsModel):
    id: int | None = None
    type: PolicyType
    is_enabled: bool = True
    is_blocking: bool = True
    is_deleted: bool | None = None
    settings: dict[str, Any] = Field(default_factory=dict)
    url: str | None = None


class UpstreamSource(AzureDevOpsModel):
    id: str | None = None
    name: str
    protocol: str
    location: str | None = None
    display_location: str | None = None
    upstream_source_type: str | None = None


class Feed(AzureDevOpsModel):
    id: str | None = None
    name: str
    description: str | None = None
    upstream_enabled: bool | None = None
    upstream_sources: list[UpstreamSource] = Field(default_factory=list)
    url: str | None = None


class FeedPermission(AzureDevOpsModel):
    identity_descriptor: str | None = None
    role: str
    display_name: str | None = None
    is_inherited_role: bool | None = None


class EnvironmentInstance(AzureDevOpsModel):
    id: int | None = None
    name: str
    description: str | None = None


class TaskAgentPoolReference(AzureDevOpsModel):
    id: int
    name: str | None = None


class TaskAgentPool(TaskAgentPoolReference):
    is_hosted: bool | None = None


class TaskAgentQueue(AzureDevOpsModel):
    id: int | None = None
    name: str
    pool: TaskAgentPoolReference | None = None
    project_id: str | None = None


class EndpointAuthorization(AzureDevOpsModel):
    scheme: str
    parameters: dict[str, str] = Field(default_factory=dict)


class EndpointProjectReference(AzureDevOpsModel):
    id: str
    name: str | None = None


class ServiceEndpointProjectReference(AzureDevOpsModel):
    name: str
    description: str | None = None
    project_reference: EndpointProjectReference


class ServiceEndpoint(AzureDevOpsModel):
    id: str | None = None
    name: str
    type: str | None = None
    url: str | None = None
    description: str | None = None
    owner: str | None = None
    is_shared: bool | None = None
    is_ready: bool | None = None
    authorization: EndpointAuthorization | None = None
    data: dict[str, str] = Field(default_factory=dict)
    service_endpoint_project_references: list[ServiceEndpointProjectReference] = Field(
        default_factory=list
    )


class Identity(AzureDevOpsModel):
    id: str | None = None
    descriptor: str
    provider_display_name: str | None = None
    is_active: bool | None = None


class AccessControlEntry(AzureDevOpsModel):
    descriptor: str
    allow: int = 0
    deny: int = 0


class AccessControlList(AzureDevOpsModel):
    token: str | None = None
    inherit_permissions: bool | None = None
    aces_dictionary: dict[str, AccessControlEntry] = Field(default_factory=dict)


class AccessControlEntriesUpdate(AzureDevOpsModel):
    token: str
    merge: bool
    access_control_entries: list[AccessControlEntry]


__all__ = [
    "AccessControlEntriesUpdate",
    "AccessControlEntry",
    "AccessControlList",
    "AzureDevOpsModel",
    "EndpointAuthorization",
    "EndpointProjectReference",
    "EnvironmentInstance",
    "ErrorResponse",
    "Feed",
    "FeedPermission",
    "GitChange",
    "GitCommit",
    "GitItem",
    "GitNewContent",
    "GitPullRequest",
    "GitPush",
    "GitRefUpdate",
    "GitRepository",
    "Identity",
    "ListResponse",
    "Operation",
    "OperationReference",
    "Permission",
    "PermissionResource",
    "Pipeline",
    "PipelineAuthorization",
    "PipelineConfiguration",
    "PipelineRepository",
    "PolicyConfiguration",
    "PolicyScope",
    "PolicyType",
    "ProcessTemplateCapability",
    "ProjectCapabilities",
    "ProjectReference",
    "ResourcePipelinePermissions",
    "ServiceEndpoint",
    "ServiceEndpointProjectReference",
    "TaskAgentPool",
    "TaskAgentPoolReference",
    "TaskAgentQueue",
    "TeamProject",
    "UpstreamSource",
    "VersionControlCapability",
]
