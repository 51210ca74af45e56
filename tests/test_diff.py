from __future__ import annotations

from typing import Any

import pytest

from ferrytrips.lifecycle.diff import needs_write, trips_equal, values_equal
from ferrytrips.models.schedule import ScheduleSnapshot
from ferrytrips.models.trip import Estimate, Trip

_BASE = 1_760_374_800_000


def _estimate(**overrides: Any) -> Estimate:
    values: dict[str, Any] = {
        "predicted": _BASE + 300_000,
        "min_time": _BASE + 240_000,
        "max_time": _BASE + 360_000,
        "mae": 1.0,
        "std_dev": 1.0,
    }
    values.update(overrides)
    return Estimate.model_validate(values)


def _trip(**overrides: Any) -> Trip:
    values: dict[str, Any] = {
        "vessel_id": "TAC",
        "departing_terminal": "P52",
        "arriving_terminal": "BBI",
        "key": "TAC--2026-10-13--10:30--P52-BBI",
        "trip_start": _BASE,
        "scheduled_departure": _BASE + 1_800_000,
        "at_dock_depart_curr": _estimate(),
        "scheduled_trip": ScheduleSnapshot(key="TAC--2026-10-13--10:30--P52-BBI", route_id=5),
        "timestamp": _BASE,
    }
    values.update(overrides)
    return Trip.model_validate(values)


def test_nothing_stored_needs_write() -> None:
    assert needs_write(None, _trip())


def test_timestamp_only_difference_is_noop() -> None:
    assert not needs_write(_trip(), _trip(timestamp=_BASE + 5_000))


@pytest.mark.parametrize(
    "change",
    [
        {"arriving_terminal": "SEA"},
        {"left_dock": _BASE + 1_900_000},
        {"at_dock": True},
        {"in_service": False},
        {"trip_delay": 0.1},
        {"prev_terminal": "BBI"},
        {"at_dock_depart_curr": None},
        {"at_sea_arrive_next": _estimate()},
        {"scheduled_trip": None},
    ],
)
def test_any_single_field_difference_needs_write(change: dict[str, Any]) -> None:
    assert needs_write(_trip(), _trip(**change))
    assert needs_write(_trip(**change), _trip())


def test_recurses_into_estimates() -> None:
    graded = _estimate(actual=_BASE + 310_000, delta_total=0.2, delta_range=0.0)
    assert needs_write(_trip(), _trip(at_dock_depart_curr=graded))


def test_recurses_into_schedule_snapshot() -> None:
    moved = ScheduleSnapshot(key="TAC--2026-10-13--10:30--P52-BBI", route_id=5, next_departing_time=_BASE)
    assert needs_write(_trip(), _trip(scheduled_trip=moved))


def test_both_absent_compare_equal() -> None:
    assert trips_equal(_trip(eta=None), _trip())


def test_values_equal_treats_missing_key_as_none() -> None:
    assert values_equal({"a": 1, "b": None}, {"a": 1})
    assert not values_equal({"a": 1}, {"a": 1, "c": 2})
    assert not values_equal({"a": 1, "c": 2}, {"a": 1})
    assert values_equal({"x": {"y": [1, 2]}}, {"x": {"y": (1, 2)}})
