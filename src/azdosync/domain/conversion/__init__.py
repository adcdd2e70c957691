"""Schema-version conversion for stored records."""

from __future__ import annotations

from .pipelinepermissions import (
    LEGACY_VERSION,
    STORAGE_VERSION,
    ConversionError,
    LegacyPlan,
    PipelinePermissionConverter,
    StoragePlan,
    composite_repository_id,
    convert,
    parse_referencable_kind,
    split_repository_id,
)

__all__ = [
    "LEGACY_VERSION",
    "STORAGE_VERSION",
    "ConversionError",
    "LegacyPlan",
    "PipelinePermissionConverter",
    "StoragePlan",
    "composite_repository_id",
    "convert",
    "parse_referencable_kind",
    "split_repository_id",
]
