"""Pipelines and pipeline permissions (storage and legacy versions)."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar

from .core import IdentifiedStatus
from .enums import ReferencableKind, ResourceKind
from .meta import ManagedResource, ManagedSpec, Reference


@dataclass(kw_only=True)
class PipelineSpec(ManagedSpec):
    project_ref: Reference
    repository_ref: Reference
    name: str
    folder: str = "\\"
    config_path: str = "azure-pipelines.yml"


@dataclass(slots=True, kw_only=True)
class PipelineStatus(IdentifiedStatus):
    revision: int | None = None
    url: str | None = None


@dataclass(kw_only=True)
class Pipeline(ManagedResource):
    KIND = ResourceKind.PIPELINE

    spec: PipelineSpec
    status: PipelineStatus = field(default_factory=PipelineStatus)


@dataclass(frozen=True, slots=True)
class PermissionResource:
    type: ReferencableKind
    resource_ref: Reference


@dataclass(frozen=True, slots=True)
class PipelineAuthorization:
    pipeline_ref: Reference
    authorized: bool = True


@dataclass(kw_only=True)
class PipelinePermissionSpec(ManagedSpec):
    project_ref: Reference
    resource: PermissionResource
    pipelines: list[PipelineAuthorization] = field(default_factory=list)
    authorize_all: bool | None = None


@dataclass(kw_only=True)
class PipelinePermission(ManagedResource):
    """Storage version: project and resource expressed as references."""

    KIND = ResourceKind.PIPELINE_PERMISSION
    API_VERSION: ClassVar[str] = "v1alpha2"

    spec: PipelinePermissionSpec
    status: IdentifiedStatus = field(default_factory=IdentifiedStatus)


@dataclass(frozen=True, slots=True)
class LegacyPermissionResource:
    type: str
    id: str | None = None
    name: str | None = None


@dataclass(kw_only=True)
class PipelinePermissionV1Alpha1Spec(ManagedSpec):
    project: str
    organization: str
    resource: LegacyPermissionResource
    authorize: bool | None = None


@dataclass(kw_only=True)
class PipelinePermissionV1Alpha1(ManagedResource):
    """Served legacy version: project and resource expressed as literal values."""

    KIND = ResourceKind.PIPELINE_PERMISSION
    API_VERSION: ClassVar[str] = "v1alpha1"

    spec: PipelinePermissionV1Alpha1Spec
    status: IdentifiedStatus = field(default_factory=IdentifiedStatus)
