from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
import pytest

from azdosync.adapters.azuredevops.schema import Feed as RemoteFeed
from azdosync.adapters.azuredevops.schema import UpstreamSource as RemoteUpstream
from azdosync.controllers.feed import is_up_to_date, upstream_matches
from azdosync.domain.model import (
    ConditionType,
    Feed,
    FeedSpec,
    ObjectMeta,
    Reference,
    UpstreamSource,
)
from tests.support.controllers import run_pass
from tests.support.records import CONNECTOR, make_project

if TYPE_CHECKING:
    from azdosync.adapters.events import InMemoryEventRecorder
    from azdosync.adapters.memory import InMemoryObjectStore
    from tests.support.http import FakeAzureDevOps

ORGANIZATION_FEEDS = "/acme/_apis/packaging/feeds"
PROJECT_FEEDS = "/acme/demo/_apis/packaging/feeds"
NUGET_URL = "https://api.nuget.org/v3/index.json"
NUGET = UpstreamSource(name="NuGet Gallery", protocol="nuget", location=NUGET_URL)


def _feed(*, project: bool = False, feed_id: str | None = None) -> Feed:
    feed = Feed(
        metadata=ObjectMeta(name="packages"),
        spec=FeedSpec(
            connector_config_ref=CONNECTOR,
            organization=None if project else "acme",
            project_ref=Reference("demo") if project else None,
            upstream_enabled=True,
            upstream_sources=[NUGET],
        ),
    )
    if feed_id:
        feed.status.bind_external(feed_id)
    return feed


def _remote_nuget(**overrides: str) -> dict[str, str]:
    upstream = {
        "name": "NuGet Gallery",
        "protocol": "NuGet",
        "location": NUGET_URL,
        "upstreamSourceType": "Public",
    }
    upstream.update(overrides)
    return upstream


def test_organization_feed_is_created_on_the_feeds_host(
    connected_store: InMemoryObjectStore,
    recorder: InMemoryEventRecorder,
    devops: FakeAzureDevOps,
) -> None:
    connected_store.apply(_feed())
    devops.on(
        "POST",
        ORGANIZATION_FEEDS,
        httpx.Response(201, json={"id": "f-1", "name": "packages", "url": "https://feeds/f-1"}),
    )

    run_pass(connected_store, recorder, devops, Feed, "packages")

    assert {request.url.host for request in devops.requests} == {"feeds.azure.test"}
    assert devops.body("POST", ORGANIZATION_FEEDS) == {
        "name": "packages",
        "description": "",
        "upstreamEnabled": True,
        "upstreamSources": [
            {
                "name": "NuGet Gallery",
                "protocol": "nuget",
                "location": "https://api.nuget.org/v3/index.json",
                "upstreamSourceType": "public",
            }
        ],
    }
    status = connected_store.get(Feed, "packages", "default").status
    assert status.id == "f-1"
    assert status.url == "https://feeds/f-1"


def test_project_feed_lives_under_the_project_name(
    connected_store: InMemoryObjectStore,
    recorder: InMemoryEventRecorder,
    devops: FakeAzureDevOps,
) -> None:
    connected_store.apply(make_project(project_id="p-1"))
    connected_store.apply(_feed(project=True))
    observed = {"id": "f-2", "name": "packages", "upstreamSources": [_remote_nuget()]}
    devops.on("GET", f"{PROJECT_FEEDS}/packages", httpx.Response(200, json=observed))

    result = run_pass(connected_store, recorder, devops, Feed, "packages")

    assert result.error is None
    assert [request.method for request in devops.requests] == ["GET"]
    assert connected_store.get(Feed, "packages", "default").status.id == "f-2"


def test_missing_upstream_is_added_next_to_the_existing_ones(
    connected_store: InMemoryObjectStore,
    recorder: InMemoryEventRecorder,
    devops: FakeAzureDevOps,
) -> None:
    connected_store.apply(_feed(feed_id="f-1"))
    npm = _remote_nuget(name="npmjs", protocol="npm", location="https://registry.npmjs.org/")
    observed = {"id": "f-1", "name": "packages", "upstreamSources": [npm]}
    devops.on("GET", f"{ORGANIZATION_FEEDS}/f-1", httpx.Response(200, json=observed))
    devops.on("PATCH", f"{ORGANIZATION_FEEDS}/f-1", httpx.Response(200, json=observed))

    run_pass(connected_store, recorder, devops, Feed, "packages")

    sent = devops.body("PATCH", f"{ORGANIZATION_FEEDS}/f-1")["upstreamSources"]
    assert [upstream["name"] for upstream in sent] == ["npmjs", "NuGet Gallery"]


def test_feed_without_scope_fails(
    connected_store: InMemoryObjectStore,
    recorder: InMemoryEventRecorder,
    devops: FakeAzureDevOps,
) -> None:
    feed = _feed()
    feed.spec.organization = None
    connected_store.apply(feed)

    result = run_pass(connected_store, recorder, devops, Feed, "packages")

    assert isinstance(result.error, ValueError)
    status = connected_store.get(Feed, "packages", "default").status
    synced = status.get_condition(ConditionType.SYNCED)
    assert synced is not None and synced.status is False


@pytest.mark.parametrize(
    ("overrides", "expected"),
    [
        ({}, True),
        ({"location": "https://elsewhere", "displayLocation": NUGET_URL}, True),
        ({"name": "nuget.org"}, False),
        ({"upstreamSourceType": "internal"}, False),
    ],
)
def test_upstreams_match_loosely(overrides: dict[str, str], expected: bool) -> None:
    observed = RemoteUpstream.model_validate(_remote_nuget(**overrides))

    assert upstream_matches(NUGET, observed) is expected


def test_feed_name_defaults_to_the_record_name() -> None:
    upstream = RemoteUpstream.model_validate(_remote_nuget())
    observed = RemoteFeed(name="packages", upstream_sources=[upstream])

    assert is_up_to_date(_feed(), observed)
    assert not is_up_to_date(_feed(), observed.model_copy(update={"name": "renamed"}))
