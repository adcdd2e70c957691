from __future__ import annotations

from typing import TYPE_CHECKING

import httpx

from azdosync.domain.model import (
    ConditionType,
    Endpoint,
    EndpointAuthorization,
    EndpointSpec,
    ObjectMeta,
    Reference,
    Secret,
    SecretKeySelector,
)
from tests.support.controllers import run_pass
from tests.support.records import CONNECTOR, make_project

if TYPE_CHECKING:
    from azdosync.adapters.events import InMemoryEventRecorder
    from azdosync.adapters.memory import InMemoryObjectStore
    from tests.support.http import FakeAzureDevOps

PROJECT_ENDPOINTS = "/acme/p-1/_apis/serviceendpoint/endpoints"
ENDPOINTS = "/acme/_apis/serviceendpoint/endpoints"
ARM_URL = "https://management.azure.com/"
CREATED = {"id": "e-1", "name": "azure", "url": ARM_URL, "isReady": True}


def _endpoint(*, endpoint_id: str | None = None, shared: tuple[str, ...] = ()) -> Endpoint:
    endpoint = Endpoint(
        metadata=ObjectMeta(name="azure"),
        spec=EndpointSpec(
            connector_config_ref=CONNECTOR,
            project_ref=Reference("demo"),
            name="azure",
            type="azurerm",
            url=ARM_URL,
            authorization=EndpointAuthorization(
                scheme="ServicePrincipal",
                parameters={"tenantid": "t-1", "serviceprincipalid": "sp-1"},
                secret_parameters={
                    "serviceprincipalkey": SecretKeySelector(name="azure-sp", key="key")
                },
            ),
            data={"subscriptionId": "s-1"},
            shared_project_refs=[Reference(name) for name in shared],
        ),
    )
    if endpoint_id:
        endpoint.status.bind_external(endpoint_id)
    return endpoint


def _seed(store: InMemoryObjectStore, endpoint: Endpoint) -> None:
    store.apply(make_project(project_id="p-1"))
    store.apply(Secret(metadata=ObjectMeta(name="azure-sp"), data={"key": "s3cret"}))
    store.apply(endpoint)


def test_endpoint_is_created_with_secret_parameters_and_shared_projects(
    connected_store: InMemoryObjectStore,
    recorder: InMemoryEventRecorder,
    devops: FakeAzureDevOps,
) -> None:
    connected_store.apply(make_project("tools", project_id="p-2"))
    _seed(connected_store, _endpoint(shared=("tools",)))
    devops.on("GET", PROJECT_ENDPOINTS, httpx.Response(200, json={"count": 0, "value": []}))
    devops.on("POST", ENDPOINTS, httpx.Response(200, json=CREATED))

    result = run_pass(connected_store, recorder, devops, Endpoint, "azure")

    assert result.error is None
    body = devops.body("POST", ENDPOINTS)
    assert body["authorization"] == {
        "scheme": "ServicePrincipal",
        "parameters": {
            "tenantid": "t-1",
            "serviceprincipalid": "sp-1",
            "serviceprincipalkey": "s3cret",
        },
    }
    assert body["isShared"] is True
    assert body["data"] == {"subscriptionId": "s-1"}
    assert [ref["projectReference"] for ref in body["serviceEndpointProjectReferences"]] == [
        {"id": "p-1", "name": "demo"},
        {"id": "p-2", "name": "tools"},
    ]
    status = connected_store.get(Endpoint, "azure", "default").status
    assert status.id == "e-1"
    assert status.url == ARM_URL


def test_missing_secret_key_stops_creation(
    connected_store: InMemoryObjectStore,
    recorder: InMemoryEventRecorder,
    devops: FakeAzureDevOps,
) -> None:
    endpoint = _endpoint()
    assert endpoint.spec.authorization is not None
    endpoint.spec.authorization.secret_parameters = {
        "serviceprincipalkey": SecretKeySelector(name="azure-sp", key="missing")
    }
    _seed(connected_store, endpoint)
    devops.on("GET", PROJECT_ENDPOINTS, httpx.Response(200, json={"count": 0, "value": []}))

    result = run_pass(connected_store, recorder, devops, Endpoint, "azure")

    assert isinstance(result.error, ValueError)
    assert devops.sent("POST", ENDPOINTS) == []


def test_endpoint_that_is_not_ready_is_not_available(
    connected_store: InMemoryObjectStore,
    recorder: InMemoryEventRecorder,
    devops: FakeAzureDevOps,
) -> None:
    _seed(connected_store, _endpoint(endpoint_id="e-1"))
    devops.on(
        "GET", f"{PROJECT_ENDPOINTS}/e-1", httpx.Response(200, json={**CREATED, "isReady": False})
    )

    result = run_pass(connected_store, recorder, devops, Endpoint, "azure")

    assert result.error is None
    status = connected_store.get(Endpoint, "azure", "default").status
    ready = status.get_condition(ConditionType.READY)
    assert ready is not None and ready.status is False


def test_unknown_endpoint_id_counts_as_missing(
    connected_store: InMemoryObjectStore,
    recorder: InMemoryEventRecorder,
    devops: FakeAzureDevOps,
) -> None:
    _seed(connected_store, _endpoint(endpoint_id="e-1"))
    devops.on("GET", f"{PROJECT_ENDPOINTS}/e-1", httpx.Response(200))
    devops.on("POST", ENDPOINTS, httpx.Response(200, json={**CREATED, "id": "e-2"}))

    run_pass(connected_store, recorder, devops, Endpoint, "azure")

    assert connected_store.get(Endpoint, "azure", "default").status.id == "e-2"


def test_deleted_record_removes_the_endpoint_from_its_project(
    connected_store: InMemoryObjectStore,
    recorder: InMemoryEventRecorder,
    devops: FakeAzureDevOps,
) -> None:
    _seed(connected_store, _endpoint(endpoint_id="e-1"))
    connected_store.request_deletion(Endpoint, "azure", "default")
    devops.on("GET", f"{PROJECT_ENDPOINTS}/e-1", httpx.Response(200, json=CREATED))
    devops.on("DELETE", f"{ENDPOINTS}/e-1", httpx.Response(204))

    result = run_pass(connected_store, recorder, devops, Endpoint, "azure")

    assert result.released is True
    assert devops.sent("DELETE", f"{ENDPOINTS}/e-1")[0].url.params["projectIds"] == "p-1"
