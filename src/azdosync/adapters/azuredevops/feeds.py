"""Artifacts area: package feeds and their permissions (served from the feeds host)."""

from __future__ import annotations

from typing import TYPE_CHECKING

from azdosync.config.azuredevops import ServiceArea

from .paths import segment
from .schema import Feed, FeedPermission, ListResponse

if TYPE_CHECKING:
    from .client import AzureDevOpsClient


class FeedsAPI:
    def __init__(self, client: AzureDevOpsClient) -> None:
        self._client = client

    def _feeds(self, organization: str, project: str | None) -> str:
        scope = segment(organization)
        if project:
            scope = f"{scope}/{segment(project)}"
        return f"{scope}/_apis/packaging/feeds"

    def get(self, organization: str, project: str | None, feed: str) -> Feed:
        """Fetch a feed by id or by name."""

        payload = self._client.get(
            f"{self._feeds(organization, project)}/{segment(feed)}", area=ServiceArea.FEEDS
        )
        return Feed.model_validate(payload)

    def list_feeds(self, organization: str, project: str | None) -> list[Feed]:
        payload = self._client.get(self._feeds(organization, project), area=ServiceArea.FEEDS)
        return ListResponse[Feed].model_validate(payload).value

    def create(self, organization: str, project: str | None, feed: Feed) -> Feed:
        payload = self._client.post(
            self._feeds(organization, project), json=feed.to_payload(), area=ServiceArea.FEEDS
        )
        return Feed.model_validate(payload)

    def update(self, organization: str, project: str | None, feed_id: str, feed: Feed) -> Feed:
        payload = self._client.patch(
            f"{self._feeds(organization, project)}/{segment(feed_id)}",
            json=feed.to_payload(),
            area=ServiceArea.FEEDS,
        )
        return Feed.model_validate(payload)

    def delete(self, organization: str, project: str | None, feed_id: str) -> None:
        self._client.delete(
            f"{self._feeds(organization, project)}/{segment(feed_id)}", area=ServiceArea.FEEDS
        )

    def get_permissions(
        self, organization: str, project: str | None, feed: str
    ) -> list[FeedPermission]:
        payload = self._client.get(
            f"{self._feeds(organization, project)}/{segment(feed)}/permissions",
            area=ServiceArea.FEEDS,
        )
        return ListResponse[FeedPermission].model_validate(payload).value

    def update_permissions(
        self,
        organization: str,
        project: str | None,
        feed: str,
        permissions: list[FeedPermission],
    ) -> list[FeedPermission]:
        payload = self._client.patch(
            f"{self._feeds(organization, project)}/{segment(feed)}/permissions",
            json=[permission.to_payload() for permission in permissions],
            area=ServiceArea.FEEDS,
        )
        return ListResponse[FeedPermission].model_validate(payload or {}).value


__all__ = ["FeedsAPI"]
