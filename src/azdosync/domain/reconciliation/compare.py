"""Drift comparison helpers for fields the remote service may reorder or extend."""

from __future__ import annotations

from collections import Counter
from typing import TYPE_CHECKING, Any, Final

if TYPE_CHECKING:
    from collections.abc import Callable, Hashable, Iterable, Mapping

# Policy configurations come back with server-populated settings; only these are compared.
POLICY_COMPARED_FIELDS: Final[tuple[str, ...]] = ("type_id", "is_enabled", "is_blocking")
POLICY_COMPARED_SETTINGS: Final[tuple[str, ...]] = ("scope",)


def same_multiset[T: Hashable](left: Iterable[T], right: Iterable[T]) -> bool:
    """Equal as multisets: order is ignored, multiplicity is not."""

    return Counter(left) == Counter(right)


def is_subset[T](
    desired: Iterable[T],
    observed: Iterable[T],
    *,
    matches: Callable[[T, T], bool] | None = None,
) -> bool:
    """Every desired element is present in ``observed``; extra observed elements are fine."""

    pool = list(observed)
    for item in desired:
        if matches is None:
            found = item in pool
        else:
            found = any(matches(item, candidate) for candidate in pool)
        if not found:
            return False
    return True


def fields_equal(
    desired: Mapping[str, Any],
    observed: Mapping[str, Any],
    fields: Iterable[str],
) -> bool:
    return all(desired.get(name) == observed.get(name) for name in fields)


__all__ = [
    "POLICY_COMPARED_FIELDS",
    "POLICY_COMPARED_SETTINGS",
    "fields_equal",
    "is_subset",
    "same_multiset",
]
