"""Per-kind external clients and the registry the app wires into the manager."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Final

from azdosync.domain.model import (
    Endpoint,
    Environment,
    Feed,
    FeedPermission,
    GitRepository,
    Pipeline,
    PipelinePermission,
    Policy,
    PullRequest,
    Queue,
    RepositoryPermission,
    TeamProject,
)

from .connector import AzureDevOpsConnector, ExternalFactory, load_connection_config
from .endpoint import EndpointExternal
from .environment import EnvironmentExternal
from .feed import FeedExternal
from .feedpermission import FeedPermissionExternal
from .pipeline import PipelineExternal
from .pipelinepermission import PipelinePermissionExternal
from .policy import PolicyExternal
from .pullrequest import PullRequestExternal
from .queue import QueueExternal
from .repository import GitRepositoryExternal
from .repositorypermission import RepositoryPermissionExternal
from .teamproject import TeamProjectExternal

if TYPE_CHECKING:
    from azdosync.domain.model import ManagedResource

# Registration order: referenced kinds come before the kinds pointing at them.
EXTERNALS: Final[dict[type[ManagedResource], ExternalFactory[Any]]] = {
    TeamProject: TeamProjectExternal,
    GitRepository: GitRepositoryExternal,
    Environment: EnvironmentExternal,
    Queue: QueueExternal,
    Endpoint: EndpointExternal,
    Pipeline: PipelineExternal,
    PipelinePermission: PipelinePermissionExternal,
    PullRequest: PullRequestExternal,
    Policy: PolicyExternal,
    RepositoryPermission: RepositoryPermissionExternal,
    Feed: FeedExternal,
    FeedPermission: FeedPermissionExternal,
}

__all__ = [
    "EXTERNALS",
    "AzureDevOpsConnector",
    "EndpointExternal",
    "EnvironmentExternal",
    "ExternalFactory",
    "FeedExternal",
    "FeedPermissionExternal",
    "GitRepositoryExternal",
    "PipelineExternal",
    "PipelinePermissionExternal",
    "PolicyExternal",
    "PullRequestExternal",
    "QueueExternal",
    "RepositoryPermissionExternal",
    "TeamProjectExternal",
    "load_connection_config",
]
