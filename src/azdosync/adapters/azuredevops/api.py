from __future__ import annotations

from typing import TYPE_CHECKING

from .distributedtask import DistributedTaskAPI
from .feeds import FeedsAPI
from .git import GitAPI
from .pipelines import PipelinesAPI
from .policies import PoliciesAPI
from .projects import ProjectsAPI
from .security import SecurityAPI
from .serviceendpoints import ServiceEndpointsAPI

if TYPE_CHECKING:
    from .client import AzureDevOpsClient


class AzureDevOpsAPI:
    """Bundle of the REST areas the controllers use, sharing one client."""

    def __init__(self, client: AzureDevOpsClient) -> None:
        self.client = client
        self.projects = ProjectsAPI(client)
        self.git = GitAPI(client)
        self.pipelines = PipelinesAPI(client)
        self.policies = PoliciesAPI(client)
        self.feeds = FeedsAPI(client)
        self.distributedtask = DistributedTaskAPI(client)
        self.serviceendpoints = ServiceEndpointsAPI(client)
        self.security = SecurityAPI(client)


__all__ = ["AzureDevOpsAPI"]
