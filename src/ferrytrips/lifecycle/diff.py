"""Change detection between the stored and the proposed trip."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

from ferrytrips.models.trip import Trip

IGNORED_FIELDS = frozenset({"timestamp"})
"""Fields that change every tick without changing what the trip means."""


def _as_plain(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump()
    return value


def values_equal(left: Any, right: Any) -> bool:
    """Deep equality where an absent key and an explicit ``None`` match.

    Mappings are compared over the union of their keys, so a field present
    on only one side is a difference in either direction.
    """
    left = _as_plain(left)
    right = _as_plain(right)
    if isinstance(left, Mapping) and isinstance(right, Mapping):
        for key in left.keys() | right.keys():
            if not values_equal(left.get(key), right.get(key)):
                return False
        return True
    if isinstance(left, (list, tuple)) and isinstance(right, (list, tuple)):
        return len(left) == len(right) and all(values_equal(a, b) for a, b in zip(left, right, strict=True))
    return bool(left == right)


def trips_equal(existing: Trip, proposed: Trip) -> bool:
    """Compare every semantically meaningful field of two trips."""
    return values_equal(
        existing.model_dump(exclude=set(IGNORED_FIELDS)),
        proposed.model_dump(exclude=set(IGNORED_FIELDS)),
    )


def needs_write(existing: Trip | None, proposed: Trip) -> bool:
    """Return ``True`` when *proposed* differs from the stored *existing* trip."""
    if existing is None:
        return True
    return not trips_equal(existing, proposed)
