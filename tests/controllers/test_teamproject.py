from __future__ import annotations

from typing import TYPE_CHECKING

import httpx

from azdosync.controllers.teamproject import AGILE_PROCESS_TEMPLATE_ID
from azdosync.domain.model import ConditionReason, ConditionType, TeamProject
from tests.support.controllers import run_pass
from tests.support.records import make_project

if TYPE_CHECKING:
    from azdosync.adapters.events import InMemoryEventRecorder
    from azdosync.adapters.memory import InMemoryObjectStore
    from tests.support.http import FakeAzureDevOps

PROJECTS = "/acme/_apis/projects"
OPERATION = "/acme/_apis/operations/op-1"


def _remote(**overrides: object) -> dict[str, object]:
    payload: dict[str, object] = {
        "id": "p-1",
        "name": "demo",
        "description": "",
        "visibility": "private",
        "state": "wellFormed",
    }
    payload.update(overrides)
    return payload


def _operation(status: str) -> httpx.Response:
    return httpx.Response(200, json={"id": "op-1", "status": status})


def _ready_reason(store: InMemoryObjectStore) -> ConditionReason:
    condition = store.get(TeamProject, "demo", "default").status.get_condition(ConditionType.READY)
    assert condition is not None
    return condition.reason


def test_missing_project_is_queued_for_creation(
    connected_store: InMemoryObjectStore,
    recorder: InMemoryEventRecorder,
    devops: FakeAzureDevOps,
) -> None:
    connected_store.apply(make_project())
    devops.on("POST", PROJECTS, httpx.Response(202, json={"id": "op-1", "status": "queued"}))

    result = run_pass(connected_store, recorder, devops, TeamProject, "demo")

    assert result.error is None
    assert connected_store.get(TeamProject, "demo", "default").status.operation_id == "op-1"
    assert devops.body("POST", PROJECTS) == {
        "name": "demo",
        "description": "",
        "visibility": "private",
        "capabilities": {
            "versioncontrol": {"sourceControlType": "Git"},
            "processTemplate": {"templateTypeId": AGILE_PROCESS_TEMPLATE_ID},
        },
    }


def test_pending_operation_reports_creating(
    connected_store: InMemoryObjectStore,
    recorder: InMemoryEventRecorder,
    devops: FakeAzureDevOps,
) -> None:
    project = make_project()
    project.status.operation_id = "op-1"
    connected_store.apply(project)
    devops.on("GET", OPERATION, _operation("inProgress"))

    run_pass(connected_store, recorder, devops, TeamProject, "demo")

    assert _ready_reason(connected_store) is ConditionReason.CREATING
    assert devops.sent("POST", PROJECTS) == []
    assert connected_store.get(TeamProject, "demo", "default").status.operation_id == "op-1"


def test_finished_operation_binds_the_project(
    connected_store: InMemoryObjectStore,
    recorder: InMemoryEventRecorder,
    devops: FakeAzureDevOps,
) -> None:
    project = make_project()
    project.status.operation_id = "op-1"
    connected_store.apply(project)
    devops.on("GET", OPERATION, _operation("succeeded"))
    devops.on("GET", f"{PROJECTS}/demo", httpx.Response(200, json=_remote()))

    run_pass(connected_store, recorder, devops, TeamProject, "demo")

    status = connected_store.get(TeamProject, "demo", "default").status
    assert status.id == "p-1"
    assert status.external_name == "p-1"
    assert status.operation_id is None
    assert status.state == "wellFormed"
    assert _ready_reason(connected_store) is ConditionReason.AVAILABLE


def test_project_still_being_provisioned_is_not_available(
    connected_store: InMemoryObjectStore,
    recorder: InMemoryEventRecorder,
    devops: FakeAzureDevOps,
) -> None:
    connected_store.apply(make_project(project_id="p-1"))
    devops.on("GET", f"{PROJECTS}/p-1", httpx.Response(200, json=_remote(state="createPending")))

    run_pass(connected_store, recorder, devops, TeamProject, "demo")

    assert _ready_reason(connected_store) is ConditionReason.CREATING


def test_drifted_description_is_patched(
    connected_store: InMemoryObjectStore,
    recorder: InMemoryEventRecorder,
    devops: FakeAzureDevOps,
) -> None:
    project = make_project(project_id="p-1")
    project.spec.description = "Team services"
    connected_store.apply(project)
    devops.on("GET", f"{PROJECTS}/p-1", httpx.Response(200, json=_remote(description="old")))
    devops.on("PATCH", f"{PROJECTS}/p-1", httpx.Response(202, json={"id": "op-2"}))

    run_pass(connected_store, recorder, devops, TeamProject, "demo")

    assert devops.body("PATCH", f"{PROJECTS}/p-1") == {
        "name": "demo",
        "description": "Team services",
        "visibility": "private",
    }
    assert connected_store.get(TeamProject, "demo", "default").status.operation_id == "op-2"


def test_matching_project_is_left_alone(
    connected_store: InMemoryObjectStore,
    recorder: InMemoryEventRecorder,
    devops: FakeAzureDevOps,
) -> None:
    connected_store.apply(make_project(project_id="p-1"))
    devops.on("GET", f"{PROJECTS}/p-1", httpx.Response(200, json=_remote(visibility="Private")))

    run_pass(connected_store, recorder, devops, TeamProject, "demo")

    assert [request.method for request in devops.requests] == ["GET"]


def test_deleted_record_removes_the_project(
    connected_store: InMemoryObjectStore,
    recorder: InMemoryEventRecorder,
    devops: FakeAzureDevOps,
) -> None:
    connected_store.apply(make_project(project_id="p-1"))
    connected_store.request_deletion(TeamProject, "demo", "default")
    devops.on("GET", f"{PROJECTS}/p-1", httpx.Response(200, json=_remote()))
    devops.on("DELETE", f"{PROJECTS}/p-1", httpx.Response(202, json={"id": "op-3"}))

    result = run_pass(connected_store, recorder, devops, TeamProject, "demo")

    assert result.released is True
    assert len(devops.sent("DELETE", f"{PROJECTS}/p-1")) == 1
    assert connected_store.list(TeamProject) == []
