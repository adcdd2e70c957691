"""Package feeds and their permissions."""

from __future__ import annotations

from dataclasses import dataclass, field

from .core import IdentifiedStatus, PermissionIdentity, PermissionStatus
from .enums import FeedRole, ResourceKind
from .meta import ManagedResource, ManagedSpec, Reference


@dataclass(frozen=True, slots=True)
class UpstreamSource:
    name: str
    protocol: str
    location: str
    upstream_source_type: str = "public"


@dataclass(kw_only=True)
class FeedSpec(ManagedSpec):
    name: str = ""
    organization: str | None = None
    project_ref: Reference | None = None
    description: str = ""
    upstream_enabled: bool = False
    upstream_sources: list[UpstreamSource] = field(default_factory=list)


@dataclass(slots=True, kw_only=True)
class FeedStatus(IdentifiedStatus):
    url: str | None = None


@dataclass(kw_only=True)
class Feed(ManagedResource):
    KIND = ResourceKind.FEED

    spec: FeedSpec
    status: FeedStatus = field(default_factory=FeedStatus)


@dataclass(kw_only=True)
class FeedPermissionSpec(ManagedSpec):
    """Role of one identity on a feed, addressed by feed name or id."""

    feed: str
    identity: PermissionIdentity
    role: FeedRole = FeedRole.READER
    organization: str | None = None
    project_ref: Reference | None = None


@dataclass(kw_only=True)
class FeedPermission(ManagedResource):
    KIND = ResourceKind.FEED_PERMISSION

    spec: FeedPermissionSpec
    status: PermissionStatus = field(default_factory=PermissionStatus)
