"""
Record building blocks shared by every kind:
metadata, references, conditions, managed spec/status.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, ClassVar, Final

from .enums import ConditionReason, ConditionType, ManagementAction, ResourceKind

if TYPE_CHECKING:
    from collections.abc import Mapping

DEFAULT_NAMESPACE: Final[str] = "default"
ALL_ACTIONS: Final[frozenset[ManagementAction]] = frozenset(ManagementAction)


def utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True, slots=True)
class Reference:
    """Named pointer at another record."""

    name: str
    namespace: str = DEFAULT_NAMESPACE

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"


@dataclass(frozen=True, slots=True)
class Selector:
    """Label query used when the referenced name is not known up front."""

    match_labels: dict[str, str] = field(default_factory=dict)

    def matches(self, labels: Mapping[str, str]) -> bool:
        return all(labels.get(key) == value for key, value in self.match_labels.items())


@dataclass(frozen=True, slots=True)
class ItemKey:
    """Scheduling identity of one record: kind + name + namespace."""

    kind: ResourceKind
    name: str
    namespace: str = DEFAULT_NAMESPACE

    def __str__(self) -> str:
        return f"{self.kind}/{self.namespace}/{self.name}"


@dataclass(slots=True, kw_only=True)
class ObjectMeta:
    name: str
    namespace: str = DEFAULT_NAMESPACE
    labels: dict[str, str] = field(default_factory=dict)
    annotations: dict[str, str] = field(default_factory=dict)
    resource_version: int = 0
    generation: int = 0
    deletion_requested_at: datetime | None = None


@dataclass(slots=True, kw_only=True)
class Condition:
    type: ConditionType
    status: bool
    reason: ConditionReason
    message: str = ""
    last_transition_time: datetime = field(default_factory=utcnow)

    def equivalent(self, other: Condition) -> bool:
        return (
            self.type is other.type
            and self.status == other.status
            and self.reason is other.reason
            and self.message == other.message
        )


@dataclass(slots=True, kw_only=True)
class ManagedStatus:
    conditions: list[Condition] = field(default_factory=list)
    external_name: str | None = None
    bound_references: dict[str, Reference] = field(default_factory=dict)

    def get_condition(self, condition_type: ConditionType) -> Condition | None:
        for condition in self.conditions:
            if condition.type is condition_type:
                return condition
        return None

    def set_conditions(self, *conditions: Condition) -> None:
        """Upsert conditions by type; an equivalent condition keeps its transition time."""

        for condition in conditions:
            for index, existing in enumerate(self.conditions):
                if existing.type is not condition.type:
                    continue
                if not existing.equivalent(condition):
                    self.conditions[index] = condition
                break
            else:
                self.conditions.append(condition)

    def forget_external(self) -> None:
        """Drop everything tied to the external object before it is recreated."""

        self.external_name = None
        self.bound_references.clear()


@dataclass(kw_only=True)
class ManagedSpec:
    connector_config_ref: Reference | None = None
    management_policies: frozenset[ManagementAction] = ALL_ACTIONS


@dataclass(kw_only=True)
class StoredObject:
    """Anything the object store keeps; concrete kinds set ``KIND``."""

    KIND: ClassVar[ResourceKind]
    API_VERSION: ClassVar[str] = "v1alpha1"

    metadata: ObjectMeta

    @property
    def key(self) -> ItemKey:
        return ItemKey(self.KIND, self.metadata.name, self.metadata.namespace)

    @property
    def reference(self) -> Reference:
        return Reference(self.metadata.name, self.metadata.namespace)


@dataclass(kw_only=True)
class ManagedResource(StoredObject):
    """Declarative record whose external counterpart is reconciled."""

    spec: ManagedSpec = field(default_factory=ManagedSpec)
    status: ManagedStatus = field(default_factory=ManagedStatus)

    def is_action_allowed(self, action: ManagementAction) -> bool:
        return action in self.spec.management_policies

    @property
    def is_created(self) -> bool:
        return bool(self.status.external_name)

    @property
    def deletion_requested(self) -> bool:
        return self.metadata.deletion_requested_at is not None
