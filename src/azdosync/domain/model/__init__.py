"""Public domain model surface."""

from __future__ import annotations

from typing import Final

from azdosync.domain.model.artifacts import (
    Feed,
    FeedPermission,
    FeedPermissionSpec,
    FeedSpec,
    FeedStatus,
    UpstreamSource,
)
from azdosync.domain.model.core import (
    ConnectorConfig,
    ConnectorConfigSpec,
    Endpoint,
    EndpointAuthorization,
    EndpointSpec,
    EndpointStatus,
    Environment,
    EnvironmentSpec,
    GitRepository,
    GitRepositorySpec,
    GitRepositoryStatus,
    IdentifiedStatus,
    PermissionIdentity,
    PermissionStatus,
    ProjectScopedSpec,
    Queue,
    QueueSpec,
    Secret,
    SecretKeySelector,
    TeamProject,
    TeamProjectSpec,
    TeamProjectStatus,
)
from azdosync.domain.model.enums import (
    ConditionReason,
    ConditionType,
    EventType,
    FeedRole,
    IdentityType,
    ManagementAction,
    ProjectVisibility,
    PullRequestStatus,
    ReferencableKind,
    ResourceKind,
)
from azdosync.domain.model.git import (
    Policy,
    PolicyScope,
    PolicySettings,
    PolicySpec,
    PullRequest,
    PullRequestSpec,
    RepositoryPermission,
    RepositoryPermissionSpec,
    RepositoryPermissionStatus,
)
from azdosync.domain.model.meta import (
    ALL_ACTIONS,
    DEFAULT_NAMESPACE,
    Condition,
    ItemKey,
    ManagedResource,
    ManagedSpec,
    ManagedStatus,
    ObjectMeta,
    Reference,
    Selector,
    StoredObject,
    utcnow,
)
from azdosync.domain.model.pipelines import (
    LegacyPermissionResource,
    PermissionResource,
    Pipeline,
    PipelineAuthorization,
    PipelinePermission,
    PipelinePermissionSpec,
    PipelinePermissionV1Alpha1,
    PipelinePermissionV1Alpha1Spec,
    PipelineSpec,
    PipelineStatus,
)

type ManagedKind = (
    TeamProject
    | GitRepository
    | Pipeline
    | PipelinePermission
    | PullRequest
    | Policy
    | Feed
    | Environment
    | Queue
    | Endpoint
    | RepositoryPermission
    | FeedPermission
)

# Storage version of every kind the object store keeps.
RESOURCE_TYPES: Final[dict[ResourceKind, type[StoredObject]]] = {
    ResourceKind.SECRET: Secret,
    ResourceKind.CONNECTOR_CONFIG: ConnectorConfig,
    ResourceKind.TEAM_PROJECT: TeamProject,
    ResourceKind.GIT_REPOSITORY: GitRepository,
    ResourceKind.PIPELINE: Pipeline,
    ResourceKind.PIPELINE_PERMISSION: PipelinePermission,
    ResourceKind.PULL_REQUEST: PullRequest,
    ResourceKind.POLICY: Policy,
    ResourceKind.FEED: Feed,
    ResourceKind.ENVIRONMENT: Environment,
    ResourceKind.QUEUE: Queue,
    ResourceKind.ENDPOINT: Endpoint,
    ResourceKind.REPOSITORY_PERMISSION: RepositoryPermission,
    ResourceKind.FEED_PERMISSION: FeedPermission,
}

# Kinds a pipeline permission may point at, by permission resource type.
REFERENCABLE_TYPES: Final[dict[ReferencableKind, type[ManagedResource]]] = {
    ReferencableKind.GIT_REPOSITORY: GitRepository,
    ReferencableKind.ENVIRONMENT: Environment,
    ReferencableKind.QUEUE: Queue,
    ReferencableKind.TEAM_PROJECT: TeamProject,
    ReferencableKind.ENDPOINT: Endpoint,
}

__all__ = [  # noqa: RUF022
    # meta
    "ALL_ACTIONS",
    "DEFAULT_NAMESPACE",
    "Condition",
    "ItemKey",
    "ManagedResource",
    "ManagedSpec",
    "ManagedStatus",
    "ObjectMeta",
    "Reference",
    "Selector",
    "StoredObject",
    "utcnow",
    # enums
    "ConditionReason",
    "ConditionType",
    "EventType",
    "FeedRole",
    "IdentityType",
    "ManagementAction",
    "ProjectVisibility",
    "PullRequestStatus",
    "ReferencableKind",
    "ResourceKind",
    # core kinds
    "ConnectorConfig",
    "ConnectorConfigSpec",
    "Endpoint",
    "EndpointAuthorization",
    "EndpointSpec",
    "EndpointStatus",
    "Environment",
    "EnvironmentSpec",
    "GitRepository",
    "GitRepositorySpec",
    "GitRepositoryStatus",
    "IdentifiedStatus",
    "PermissionIdentity",
    "PermissionStatus",
    "ProjectScopedSpec",
    "Queue",
    "QueueSpec",
    "Secret",
    "SecretKeySelector",
    "TeamProject",
    "TeamProjectSpec",
    "TeamProjectStatus",
    # pipelines
    "LegacyPermissionResource",
    "PermissionResource",
    "Pipeline",
    "PipelineAuthorization",
    "PipelinePermission",
    "PipelinePermissionSpec",
    "PipelinePermissionV1Alpha1",
    "PipelinePermissionV1Alpha1Spec",
    "PipelineSpec",
    "PipelineStatus",
    # git
    "Policy",
    "PolicyScope",
    "PolicySettings",
    "PolicySpec",
    "PullRequest",
    "PullRequestSpec",
    "RepositoryPermission",
    "RepositoryPermissionSpec",
    "RepositoryPermissionStatus",
    # artifacts
    "Feed",
    "FeedPermission",
    "FeedPermissionSpec",
    "FeedSpec",
    "FeedStatus",
    "UpstreamSource",
    # registries
    "ManagedKind",
    "REFERENCABLE_TYPES",
    "RESOURCE_TYPES",
]
