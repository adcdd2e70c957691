"""Queue: agent queue linking a project to an organization agent pool.

The pool of a queue cannot change, so queues are never updated in place.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from azdosync.adapters.azuredevops import NotFoundError
from azdosync.adapters.azuredevops.schema import TaskAgentPoolReference, TaskAgentQueue
from azdosync.domain.reconciliation import ExternalAPIError, ExternalObservation

from .support import recorded_int_id, resolve_project, returned_id

if TYPE_CHECKING:
    from azdosync.adapters.azuredevops import AzureDevOpsAPI
    from azdosync.domain.model import Queue
    from azdosync.domain.reconciliation import PassContext

    from .support import ProjectScope

log = getLogger(__name__)


class QueueExternal:
    def __init__(self, api: AzureDevOpsAPI) -> None:
        self.api = api

    def observe(self, resource: Queue, ctx: PassContext) -> ExternalObservation:
        scope = resolve_project(ctx, resource.spec.project_ref)
        observed = self._find(resource, scope)
        if observed is None:
            return ExternalObservation(exists=False)

        self._record(resource, observed)
        if observed.pool and observed.pool.name and observed.pool.name != resource.spec.pool:
            log.warning(
                "Queue %s is backed by pool %s instead of %s",
                resource.reference,
                observed.pool.name,
                resource.spec.pool,
            )
        return ExternalObservation(exists=True)

    def create(self, resource: Queue, ctx: PassContext) -> None:
        scope = resolve_project(ctx, resource.spec.project_ref)
        pool = self._pool(scope.organization, resource.spec.pool)
        created = self.api.distributedtask.create_queue(
            scope.organization,
            scope.project_id,
            TaskAgentQueue(name=resource.spec.name, pool=TaskAgentPoolReference(id=pool)),
        )
        self._record(resource, created)

    def update(self, resource: Queue, ctx: PassContext) -> None:
        log.debug("Queues are not updated in place (%s)", resource.reference)

    def delete(self, resource: Queue, ctx: PassContext) -> None:
        if not resource.status.id:
            return
        scope = resolve_project(ctx, resource.spec.project_ref)
        try:
            self.api.distributedtask.delete_queue(
                scope.organization, scope.project_id, recorded_int_id(resource)
            )
        except NotFoundError:
            log.debug("Queue %s is already gone", resource.status.id)

    def _find(self, resource: Queue, scope: ProjectScope) -> TaskAgentQueue | None:
        tasks = self.api.distributedtask
        if resource.status.id:
            try:
                return tasks.get_queue(
                    scope.organization, scope.project_id, recorded_int_id(resource)
                )
            except NotFoundError:
                return None
        for queue in tasks.find_queues(scope.organization, scope.project_id, resource.spec.name):
            if queue.name == resource.spec.name:
                return queue
        return None

    def _pool(self, organization: str, name: str) -> int:
        for pool in self.api.distributedtask.find_pools(organization, name):
            if pool.name == name:
                return pool.id
        raise ExternalAPIError(f"Agent pool {name!r} not found in {organization}")

    @staticmethod
    def _record(resource: Queue, remote: TaskAgentQueue) -> None:
        queue_id = returned_id(remote.id, f"queue {remote.name}")
        resource.status.bind_external(str(queue_id))


__all__ = ["QueueExternal"]
