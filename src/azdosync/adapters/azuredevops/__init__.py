"""Azure DevOps REST adapter."""

from __future__ import annotations

from .api import AzureDevOpsAPI
from .client import AzureDevOpsAPIError, AzureDevOpsClient, ConflictError, NotFoundError
from .distributedtask import DistributedTaskAPI
from .feeds import FeedsAPI
from .git import GitAPI
from .pipelines import PIPELINE_PERMISSIONS_API_VERSION, PipelinesAPI
from .policies import PoliciesAPI
from .projects import OPERATION_PENDING, OPERATION_SUCCEEDED, ProjectsAPI
from .security import (
    GIT_REPOSITORIES_NAMESPACE,
    GitRepositoryPermission,
    SecurityAPI,
    repository_token,
)
from .serviceendpoints import ServiceEndpointsAPI

__all__ = [
    "GIT_REPOSITORIES_NAMESPACE",
    "OPERATION_PENDING",
    "OPERATION_SUCCEEDED",
    "PIPELINE_PERMISSIONS_API_VERSION",
    "AzureDevOpsAPI",
    "AzureDevOpsAPIError",
    "AzureDevOpsClient",
    "ConflictError",
    "DistributedTaskAPI",
    "FeedsAPI",
    "GitAPI",
    "GitRepositoryPermission",
    "NotFoundError",
    "PipelinesAPI",
    "PoliciesAPI",
    "ProjectsAPI",
    "SecurityAPI",
    "ServiceEndpointsAPI",
    "repository_token",
]
