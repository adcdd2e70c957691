"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class ResourceKind(StrEnum):
    SECRET = "Secret"
    CONNECTOR_CONFIG = "ConnectorConfig"
    TEAM_PROJECT = "TeamProject"
    GIT_REPOSITORY = "GitRepository"
    PIPELINE = "Pipeline"
    PIPELINE_PERMISSION = "PipelinePermission"
    PULL_REQUEST = "PullRequest"
    POLICY = "Policy"
    FEED = "Feed"
    ENVIRONMENT = "Environment"
    QUEUE = "Queue"
    ENDPOINT = "Endpoint"
    REPOSITORY_PERMISSION = "RepositoryPermission"
    FEED_PERMISSION = "FeedPermission"


class ReferencableKind(StrEnum):
    """Resource types a pipeline permission can authorize."""

    GIT_REPOSITORY = "repository"
    ENVIRONMENT = "environment"
    QUEUE = "queue"
    TEAM_PROJECT = "teamproject"
    ENDPOINT = "endpoint"


class ManagementAction(StrEnum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class ConditionType(StrEnum):
    READY = "Ready"
    SYNCED = "Synced"


class ConditionReason(StrEnum):
    AVAILABLE = "Available"
    UNAVAILABLE = "Unavailable"
    CREATING = "Creating"
    DELETING = "Deleting"
    EXTERNAL_RESOURCE_MISSING = "ExternalResourceMissing"
    RECONCILE_SUCCESS = "ReconcileSuccess"
    RECONCILE_ERROR = "ReconcileError"
    REFERENCE_NOT_FOUND = "ReferenceNotFound"
    REFERENCE_NOT_READY = "ReferenceNotReady"
    REFERENCE_AMBIGUOUS = "ReferenceAmbiguous"


class EventType(StrEnum):
    NORMAL = "Normal"
    WARNING = "Warning"


class ProjectVisibility(StrEnum):
    PRIVATE = "private"
    PUBLIC = "public"


class PullRequestStatus(StrEnum):
    ACTIVE = "active"
    ABANDONED = "abandoned"
    COMPLETED = "completed"


class IdentityType(StrEnum):
    """Identities a repository or feed permission can be granted to."""

    BUILD_SERVICE = "build-service"
    AZURE_GROUP = "azure-group"


class FeedRole(StrEnum):
    READER = "reader"
    CONTRIBUTOR = "contributor"
    COLLABORATOR = "collaborator"
    ADMINISTRATOR = "administrator"
