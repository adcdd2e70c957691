from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
import pytest

from azdosync.adapters.azuredevops.schema import PolicyConfiguration, PolicyType
from azdosync.controllers.policy import is_up_to_date
from azdosync.domain.model import (
    ConditionReason,
    ConditionType,
    ObjectMeta,
    Policy,
    PolicyScope,
    PolicySettings,
    PolicySpec,
    Reference,
)
from tests.support.controllers import run_pass
from tests.support.records import CONNECTOR, make_project, make_repository

if TYPE_CHECKING:
    from azdosync.adapters.events import InMemoryEventRecorder
    from azdosync.adapters.memory import InMemoryObjectStore
    from tests.support.http import FakeAzureDevOps

CONFIGURATIONS = "/acme/p-1/_apis/policy/configurations"
MINIMUM_REVIEWERS = "fa4e907d-c16b-4a4c-9dfa-4906e5d171dd"


def _policy(configuration_id: str | None = None, *, repository: str = "app") -> Policy:
    policy = Policy(
        metadata=ObjectMeta(name="reviewers"),
        spec=PolicySpec(
            connector_config_ref=CONNECTOR,
            project_ref=Reference("demo"),
            type_id=MINIMUM_REVIEWERS,
            settings=PolicySettings(
                scope=[
                    PolicyScope(
                        repository_ref=Reference(repository),
                        ref_name="refs/heads/main",
                        match_kind="exact",
                    )
                ],
                extra={"minimumApproverCount": 2},
            ),
        ),
    )
    if configuration_id:
        policy.status.bind_external(configuration_id)
    return policy


def _configuration(**settings: object) -> dict[str, object]:
    return {
        "id": 5,
        "type": {"id": MINIMUM_REVIEWERS},
        "isEnabled": True,
        "isBlocking": True,
        "settings": {
            "minimumApproverCount": 2,
            "scope": [{"repositoryId": "r-1", "refName": "refs/heads/main", "matchKind": "exact"}],
            **settings,
        },
    }


@pytest.fixture
def seeded(connected_store: InMemoryObjectStore) -> InMemoryObjectStore:
    connected_store.apply(make_project(project_id="p-1"))
    connected_store.apply(make_repository(repository_id="r-1"))
    return connected_store


def test_policy_is_created_with_resolved_scopes(
    seeded: InMemoryObjectStore, recorder: InMemoryEventRecorder, devops: FakeAzureDevOps
) -> None:
    seeded.apply(_policy())
    devops.on("POST", CONFIGURATIONS, httpx.Response(200, json=_configuration()))

    run_pass(seeded, recorder, devops, Policy, "reviewers")

    assert devops.body("POST", CONFIGURATIONS) == {
        "type": {"id": MINIMUM_REVIEWERS},
        "isEnabled": True,
        "isBlocking": True,
        "settings": {
            "minimumApproverCount": 2,
            "scope": [{"repositoryId": "r-1", "refName": "refs/heads/main", "matchKind": "exact"}],
        },
    }
    status = seeded.get(Policy, "reviewers", "default").status
    assert status.id == "5"
    assert "settings.scope[0].repository_ref" in status.bound_references


def test_scope_drift_is_put_back(
    seeded: InMemoryObjectStore, recorder: InMemoryEventRecorder, devops: FakeAzureDevOps
) -> None:
    seeded.apply(_policy("5"))
    devops.on(
        "GET",
        f"{CONFIGURATIONS}/5",
        httpx.Response(200, json=_configuration(scope=[{"repositoryId": "r-9"}])),
    )
    devops.on("PUT", f"{CONFIGURATIONS}/5", httpx.Response(200, json=_configuration()))

    run_pass(seeded, recorder, devops, Policy, "reviewers")

    assert len(devops.sent("PUT", f"{CONFIGURATIONS}/5")) == 1


def test_deleted_configuration_is_recreated(
    seeded: InMemoryObjectStore, recorder: InMemoryEventRecorder, devops: FakeAzureDevOps
) -> None:
    seeded.apply(_policy("5"))
    deleted = {**_configuration(), "isDeleted": True}
    devops.on("GET", f"{CONFIGURATIONS}/5", httpx.Response(200, json=deleted))
    devops.on("POST", CONFIGURATIONS, httpx.Response(200, json={**_configuration(), "id": 6}))

    run_pass(seeded, recorder, devops, Policy, "reviewers")

    assert seeded.get(Policy, "reviewers", "default").status.id == "6"


def test_unresolved_scope_repository_is_a_reference_error(
    seeded: InMemoryObjectStore, recorder: InMemoryEventRecorder, devops: FakeAzureDevOps
) -> None:
    seeded.apply(_policy(repository="ghost"))

    run_pass(seeded, recorder, devops, Policy, "reviewers")

    synced = seeded.get(Policy, "reviewers", "default").status.get_condition(ConditionType.SYNCED)
    assert synced is not None and synced.reason is ConditionReason.REFERENCE_NOT_FOUND
    assert devops.requests == []


def test_comparison_covers_only_allow_listed_fields_and_ignores_scope_order() -> None:
    scopes = [
        {"repositoryId": "r-1", "refName": "refs/heads/main", "matchKind": "exact"},
        {"repositoryId": "r-2", "refName": "refs/heads/main", "matchKind": "exact"},
    ]
    desired = PolicyConfiguration(
        type=PolicyType(id=MINIMUM_REVIEWERS),
        settings={"scope": scopes, "minimumApproverCount": 2},
    )
    observed = PolicyConfiguration(
        id=5,
        type=PolicyType(id=MINIMUM_REVIEWERS, display_name="Minimum number of reviewers"),
        settings={"scope": list(reversed(scopes)), "minimumApproverCount": 1},
        url="https://dev.azure.test/policy/5",
    )

    assert is_up_to_date(desired, observed)
    assert not is_up_to_date(desired, observed.model_copy(update={"is_blocking": False}))
    narrowed = observed.model_copy(update={"settings": {"scope": scopes[:1]}})
    assert not is_up_to_date(desired, narrowed)
