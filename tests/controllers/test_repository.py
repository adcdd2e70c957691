from __future__ import annotations

from typing import TYPE_CHECKING

import httpx

from azdosync.domain.model import ConditionReason, ConditionType, GitRepository, Reference
from tests.support.controllers import run_pass
from tests.support.records import make_project, make_repository

if TYPE_CHECKING:
    from azdosync.adapters.events import InMemoryEventRecorder
    from azdosync.adapters.memory import InMemoryObjectStore
    from tests.support.http import FakeAzureDevOps

REPOSITORIES = "/acme/p-1/_apis/git/repositories"
CREATED = {
    "id": "r-1",
    "name": "app",
    "remoteUrl": "https://dev.azure.test/acme/demo/_git/app",
    "sshUrl": "git@ssh.dev.azure.test:v3/acme/demo/app",
    "url": "https://dev.azure.test/acme/_apis/git/repositories/r-1",
}


def _stored(store: InMemoryObjectStore) -> GitRepository:
    return store.get(GitRepository, "app", "default")


def test_repository_is_created_in_the_referenced_project(
    connected_store: InMemoryObjectStore,
    recorder: InMemoryEventRecorder,
    devops: FakeAzureDevOps,
) -> None:
    connected_store.apply(make_project(project_id="p-1"))
    connected_store.apply(make_repository())
    devops.on("POST", REPOSITORIES, httpx.Response(201, json=CREATED))

    result = run_pass(connected_store, recorder, devops, GitRepository, "app")

    status = _stored(connected_store).status
    assert result.error is None
    assert devops.body("POST", REPOSITORIES) == {"name": "app", "project": {"id": "p-1"}}
    assert status.id == "r-1"
    assert status.remote_url == CREATED["remoteUrl"]
    assert status.ssh_url == CREATED["sshUrl"]
    assert status.bound_references == {"project_ref": Reference("demo")}


def test_initialized_repository_gets_a_first_commit(
    connected_store: InMemoryObjectStore,
    recorder: InMemoryEventRecorder,
    devops: FakeAzureDevOps,
) -> None:
    connected_store.apply(make_project(project_id="p-1"))
    repository = make_repository()
    repository.spec.initialize = True
    connected_store.apply(repository)
    devops.on("POST", REPOSITORIES, httpx.Response(201, json=CREATED))
    devops.on("POST", f"{REPOSITORIES}/r-1/pushes", httpx.Response(201, json={"pushId": 1}))

    run_pass(connected_store, recorder, devops, GitRepository, "app")

    push = devops.body("POST", f"{REPOSITORIES}/r-1/pushes")
    assert push["refUpdates"] == [{"name": "refs/heads/main", "oldObjectId": "0" * 40}]
    change = push["commits"][0]["changes"][0]
    assert change["item"] == {"path": "/README.md"}
    assert change["newContent"] == {"content": "# app\n", "contentType": "rawtext"}
    assert _stored(connected_store).status.default_branch == "refs/heads/main"


def test_project_without_identifier_blocks_the_repository(
    connected_store: InMemoryObjectStore,
    recorder: InMemoryEventRecorder,
    devops: FakeAzureDevOps,
) -> None:
    connected_store.apply(make_project())
    connected_store.apply(make_repository())

    result = run_pass(connected_store, recorder, devops, GitRepository, "app")

    assert result.error is not None
    assert devops.requests == []
    synced = _stored(connected_store).status.get_condition(ConditionType.SYNCED)
    assert synced is not None and synced.reason is ConditionReason.REFERENCE_NOT_READY


def test_existing_repository_is_observed_by_id(
    connected_store: InMemoryObjectStore,
    recorder: InMemoryEventRecorder,
    devops: FakeAzureDevOps,
) -> None:
    connected_store.apply(make_project(project_id="p-1"))
    connected_store.apply(make_repository(repository_id="r-1"))
    devops.on(
        "GET",
        f"{REPOSITORIES}/r-1",
        httpx.Response(200, json={**CREATED, "defaultBranch": "refs/heads/trunk"}),
    )

    run_pass(connected_store, recorder, devops, GitRepository, "app")

    assert [request.method for request in devops.requests] == ["GET"]
    assert _stored(connected_store).status.default_branch == "refs/heads/trunk"


def test_deleted_record_removes_the_repository(
    connected_store: InMemoryObjectStore,
    recorder: InMemoryEventRecorder,
    devops: FakeAzureDevOps,
) -> None:
    connected_store.apply(make_project(project_id="p-1"))
    connected_store.apply(make_repository(repository_id="r-1"))
    connected_store.request_deletion(GitRepository, "app", "default")
    devops.on("GET", f"{REPOSITORIES}/r-1", httpx.Response(200, json=CREATED))
    devops.on("DELETE", f"{REPOSITORIES}/r-1", httpx.Response(204))

    result = run_pass(connected_store, recorder, devops, GitRepository, "app")

    assert result.released is True
    assert len(devops.sent("DELETE", f"{REPOSITORIES}/r-1")) == 1
