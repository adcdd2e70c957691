"""Application orchestration entry points."""

from __future__ import annotations

import json
import threading
from functools import cache
from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import TypeAdapter, ValidationError

from azdosync.adapters.events import LoggingEventRecorder
from azdosync.adapters.memory import InMemoryObjectStore
from azdosync.controllers import EXTERNALS, AzureDevOpsConnector
from azdosync.domain.conversion import (
    LEGACY_VERSION,
    ConversionError,
    PipelinePermissionConverter,
    convert,
)
from azdosync.domain.model import (
    RESOURCE_TYPES,
    PipelinePermissionV1Alpha1,
    ResourceKind,
    StoredObject,
)
from azdosync.domain.reconciliation import Manager

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from azdosync.adapters.http_resilience import ResilientClient
    from azdosync.config import ControllerConfig
    from azdosync.config.http_resilience import ResilienceConfig
    from azdosync.domain.model import ItemKey
    from azdosync.domain.ports.events import EventRecorder
    from azdosync.domain.reconciliation import RateLimiter, ReconcileResult

log = getLogger(__name__)

_ENVELOPE_KEYS = frozenset({"apiVersion", "kind"})


class ManifestError(RuntimeError):
    """Raised when a manifest file cannot be read or does not describe a known record."""


@cache
def _adapter(kind: type[StoredObject]) -> TypeAdapter[Any]:
    return TypeAdapter(kind)


def _record_type(kind: ResourceKind, api_version: str) -> type[StoredObject]:
    if kind is ResourceKind.PIPELINE_PERMISSION and api_version == LEGACY_VERSION:
        return PipelinePermissionV1Alpha1
    record_type = RESOURCE_TYPES[kind]
    if api_version != record_type.API_VERSION:
        raise ManifestError(f"{kind} is not served at version {api_version!r}")
    return record_type


def parse_manifest(document: dict[str, Any]) -> StoredObject:
    """Build a record from one ``{apiVersion, kind, metadata, ...}`` document."""

    try:
        kind = ResourceKind(document["kind"])
    except (KeyError, ValueError) as exc:
        raise ManifestError(f"Unknown or missing kind in manifest: {document.get('kind')!r}") from exc
    record_type = _record_type(kind, document.get("apiVersion", RESOURCE_TYPES[kind].API_VERSION))
    body = {key: value for key, value in document.items() if key not in _ENVELOPE_KEYS}
    try:
        return _adapter(record_type).validate_python(body)
    except ValidationError as exc:
        raise ManifestError(f"Invalid {kind} manifest: {exc}") from exc


def dump_manifest(obj: StoredObject) -> dict[str, Any]:
    body = _adapter(type(obj)).dump_python(obj, mode="json")
    return {"apiVersion": obj.API_VERSION, "kind": str(obj.KIND), **body}


def read_manifest_file(path: Path) -> list[StoredObject]:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise ManifestError(f"Cannot read manifest {path}: {exc}") from exc
    documents = payload if isinstance(payload, list) else [payload]
    return [parse_manifest(document) for document in documents]


def load_manifests(directory: Path) -> list[StoredObject]:
    """Read every ``*.json`` file of ``directory`` (sorted by name)."""

    if not directory.is_dir():
        raise ManifestError(f"Manifest directory {directory} does not exist")
    objects: list[StoredObject] = []
    for path in sorted(directory.glob("*.json")):
        loaded = read_manifest_file(path)
        log.debug("Loaded %d record(s) from %s", len(loaded), path)
        objects.extend(loaded)
    log.info("Loaded %d record(s) from %s", len(objects), directory)
    return objects


def convert_pending(
    store: InMemoryObjectStore, pending: Iterable[PipelinePermissionV1Alpha1]
) -> list[PipelinePermissionV1Alpha1]:
    """Store the legacy records that convert now; return those still waiting on lookups."""

    converter = PipelinePermissionConverter(store)
    waiting: list[PipelinePermissionV1Alpha1] = []
    for legacy in pending:
        try:
            store.apply(converter.convert_to(legacy))
        except ConversionError as exc:
            log.info("Deferring %s %s: %s", legacy.KIND, legacy.reference, exc)
            waiting.append(legacy)
    return waiting


def populate_store(
    store: InMemoryObjectStore, objects: Iterable[StoredObject]
) -> list[PipelinePermissionV1Alpha1]:
    legacy: list[PipelinePermissionV1Alpha1] = []
    for obj in objects:
        if isinstance(obj, PipelinePermissionV1Alpha1):
            legacy.append(obj)
        else:
            store.apply(obj)
    return convert_pending(store, legacy)


def build_manager(
    store: InMemoryObjectStore,
    recorder: EventRecorder,
    config: ControllerConfig,
    *,
    client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    rate_limiter: RateLimiter | None = None,
) -> Manager:
    """Register a controller for every reconciled kind; all of them share one rate limiter."""

    manager = Manager(store, recorder, config, rate_limiter=rate_limiter)
    for kind, external_factory in EXTERNALS.items():
        manager.register(kind, AzureDevOpsConnector(external_factory, client_factory=client_factory))
    return manager


def run_controllers(
    manifests: Path,
    config: ControllerConfig,
    *,
    once: bool = False,
    stop_event: threading.Event | None = None,
    recorder: EventRecorder | None = None,
    client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
) -> dict[ItemKey, ReconcileResult]:
    """Load manifests and reconcile them, either once or until ``stop_event`` is set."""

    store = InMemoryObjectStore()
    pending = populate_store(store, load_manifests(manifests))
    manager = build_manager(
        store, recorder or LoggingEventRecorder(), config, client_factory=client_factory
    )

    if once:
        results = manager.run_once()
        if pending:
            pending = convert_pending(store, pending)
            results.update(manager.run_once())
        for legacy in pending:
            log.warning(
                "%s %s could not be converted and was skipped", legacy.KIND, legacy.reference
            )
        _log_summary(results)
        return results

    stop = stop_event or threading.Event()
    manager.start()
    log.info("Controllers running (poll interval %ss)", config.poll_interval)
    try:
        while pending and not stop.wait(config.poll_interval):
            pending = convert_pending(store, pending)
        stop.wait()
    finally:
        manager.stop()
    return {}


def convert_manifest(path: Path, manifests: Path, to_version: str) -> list[dict[str, Any]]:
    """Convert the PipelinePermission records of ``path`` using the records of ``manifests``."""

    store = InMemoryObjectStore()
    for obj in load_manifests(manifests):
        if not isinstance(obj, PipelinePermissionV1Alpha1):
            store.apply(obj)
    converter = PipelinePermissionConverter(store)

    converted: list[dict[str, Any]] = []
    for obj in read_manifest_file(path):
        if obj.KIND is not ResourceKind.PIPELINE_PERMISSION:
            raise ManifestError(f"Only PipelinePermission records can be converted, got {obj.KIND}")
        converted.append(dump_manifest(convert(converter, obj, to_version)))  # type: ignore[arg-type]
    return converted


def _log_summary(results: dict[ItemKey, ReconcileResult]) -> None:
    failed = {key: result.error for key, result in results.items() if result.error is not None}
    log.info("Reconciled %d record(s), %d failed", len(results), len(failed))
    for key, error in failed.items():
        log.warning("%s: %s", key, error)
