"""Factories for the Ready and Synced conditions."""

from __future__ import annotations

from azdosync.domain.model import Condition, ConditionReason, ConditionType


def available() -> Condition:
    return Condition(type=ConditionType.READY, status=True, reason=ConditionReason.AVAILABLE)


def unavailable(message: str = "") -> Condition:
    return Condition(
        type=ConditionType.READY,
        status=False,
        reason=ConditionReason.UNAVAILABLE,
        message=message,
    )


def creating() -> Condition:
    return Condition(type=ConditionType.READY, status=False, reason=ConditionReason.CREATING)


def deleting() -> Condition:
    return Condition(type=ConditionType.READY, status=False, reason=ConditionReason.DELETING)


def external_resource_missing(message: str) -> Condition:
    return Condition(
        type=ConditionType.READY,
        status=False,
        reason=ConditionReason.EXTERNAL_RESOURCE_MISSING,
        message=message,
    )


def reconcile_success() -> Condition:
    return Condition(
        type=ConditionType.SYNCED, status=True, reason=ConditionReason.RECONCILE_SUCCESS
    )


def reconcile_error(exc: BaseException, reason: ConditionReason | None = None) -> Condition:
    return Condition(
        type=ConditionType.SYNCED,
        status=False,
        reason=reason or ConditionReason.RECONCILE_ERROR,
        message=str(exc),
    )
