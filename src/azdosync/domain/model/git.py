"""Pull requests, branch policies and repository permissions."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .core import IdentifiedStatus, PermissionIdentity, PermissionStatus
from .enums import PullRequestStatus, ResourceKind
from .meta import ManagedResource, ManagedSpec, Reference


@dataclass(kw_only=True)
class PullRequestSpec(ManagedSpec):
    project_ref: Reference
    repository_ref: Reference
    title: str
    source_ref_name: str
    target_ref_name: str
    description: str = ""
    status: PullRequestStatus = PullRequestStatus.ACTIVE
    is_draft: bool = False


@dataclass(kw_only=True)
class PullRequest(ManagedResource):
    KIND = ResourceKind.PULL_REQUEST

    spec: PullRequestSpec
    status: IdentifiedStatus = field(default_factory=IdentifiedStatus)


@dataclass(frozen=True, slots=True)
class PolicyScope:
    repository_ref: Reference | None = None
    ref_name: str | None = None
    match_kind: str | None = None


@dataclass(slots=True, kw_only=True)
class PolicySettings:
    scope: list[PolicyScope] = field(default_factory=list)
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass(kw_only=True)
class PolicySpec(ManagedSpec):
    project_ref: Reference
    type_id: str
    is_enabled: bool = True
    is_blocking: bool = True
    settings: PolicySettings = field(default_factory=PolicySettings)


@dataclass(kw_only=True)
class Policy(ManagedResource):
    KIND = ResourceKind.POLICY

    spec: PolicySpec
    status: IdentifiedStatus = field(default_factory=IdentifiedStatus)


@dataclass(kw_only=True)
class RepositoryPermissionSpec(ManagedSpec):
    """Access control entry of one identity on a repository.

    ``allow`` and ``deny`` name repository permissions such as ``GenericRead``. With
    ``merge`` the entry only has to carry the listed bits; without it, exactly them.
    """

    repository_ref: Reference
    identity: PermissionIdentity
    allow: list[str] = field(default_factory=list)
    deny: list[str] = field(default_factory=list)
    merge: bool = False


@dataclass(slots=True, kw_only=True)
class RepositoryPermissionStatus(PermissionStatus):
    allow_bits: int | None = None
    deny_bits: int | None = None


@dataclass(kw_only=True)
class RepositoryPermission(ManagedResource):
    KIND = ResourceKind.REPOSITORY_PERMISSION

    spec: RepositoryPermissionSpec
    status: RepositoryPermissionStatus = field(default_factory=RepositoryPermissionStatus)
