from __future__ import annotations

from datetime import datetime
from zoneinfo import ZoneInfo

from ferrytrips.estimates.actualize import actualize_estimate, actualize_trip, delta_range_minutes
from ferrytrips.estimates.slots import specs_graded_on
from ferrytrips.lifecycle.events import LifecycleEvent
from ferrytrips.models.trip import Estimate, SlotName, Trip

PACIFIC = ZoneInfo("America/Los_Angeles")


def _ms(hour: int, minute: int = 0, second: int = 0) -> int:
    return int(datetime(2026, 10, 13, hour, minute, second, tzinfo=PACIFIC).timestamp() * 1000)


def _estimate(predicted: int, spread_ms: int = 60_000) -> Estimate:
    return Estimate(
        predicted=predicted,
        min_time=predicted - spread_ms,
        max_time=predicted + spread_ms,
        mae=1.0,
        std_dev=spread_ms / 60_000,
    )


def _trip(**overrides: object) -> Trip:
    values: dict[str, object] = {
        "vessel_id": "TAC",
        "departing_terminal": "P52",
        "arriving_terminal": "BBI",
        "key": "TAC--2026-10-13--10:30--P52-BBI",
        "trip_start": _ms(10),
        "scheduled_departure": _ms(10, 30),
        "at_dock_depart_curr": _estimate(_ms(10, 33)),
        "at_dock_arrive_next": _estimate(_ms(11, 8)),
        "at_dock_depart_next": _estimate(_ms(11, 42)),
        "timestamp": _ms(10, 35),
    }
    values.update(overrides)
    return Trip.model_validate(values)


def test_each_slot_is_graded_by_exactly_one_event() -> None:
    graded = {
        event: {spec.slot for spec in specs_graded_on(event)}
        for event in (LifecycleEvent.LEAVE_DOCK, LifecycleEvent.TRIP_END, LifecycleEvent.NEXT_LEAVE_DOCK)
    }
    assert graded[LifecycleEvent.LEAVE_DOCK] == {SlotName.AT_DOCK_DEPART_CURR}
    assert graded[LifecycleEvent.TRIP_END] == {SlotName.AT_DOCK_ARRIVE_NEXT, SlotName.AT_SEA_ARRIVE_NEXT}
    assert graded[LifecycleEvent.NEXT_LEAVE_DOCK] == {SlotName.AT_DOCK_DEPART_NEXT, SlotName.AT_SEA_DEPART_NEXT}
    assert specs_graded_on(LifecycleEvent.ARRIVE_DOCK) == ()


class TestActualizeEstimate:
    def test_delta_total_in_minutes(self) -> None:
        graded = actualize_estimate(
            Estimate(predicted=90_000, min_time=30_000, max_time=150_000, mae=1.0, std_dev=1.0),
            100_000,
        )
        assert graded.actual == 100_000
        assert graded.delta_total == 0.2
        assert graded.delta_range == 0.0

    def test_actual_floored_to_second(self) -> None:
        graded = actualize_estimate(_estimate(_ms(10, 33)), _ms(10, 34) + 999)
        assert graded.actual == _ms(10, 34)
        assert graded.delta_total == 1.0

    def test_already_graded_is_unchanged(self) -> None:
        graded = actualize_estimate(_estimate(_ms(10, 33)), _ms(10, 34))
        assert actualize_estimate(graded, _ms(10, 50)) is graded


class TestDeltaRange:
    def test_below_band_is_negative(self) -> None:
        assert delta_range_minutes(_ms(10, 27), _ms(10, 30), _ms(10, 36)) == -3.0

    def test_above_band_is_positive(self) -> None:
        assert delta_range_minutes(_ms(10, 37, 30), _ms(10, 30), _ms(10, 36)) == 1.5

    def test_inside_band_is_zero(self) -> None:
        assert delta_range_minutes(_ms(10, 30), _ms(10, 30), _ms(10, 36)) == 0.0
        assert delta_range_minutes(_ms(10, 33), _ms(10, 30), _ms(10, 36)) == 0.0


class TestActualizeTrip:
    def test_leave_dock_grades_depart_curr_only(self) -> None:
        result = actualize_trip(_trip(), LifecycleEvent.LEAVE_DOCK, _ms(10, 34))
        assert result.graded == (SlotName.AT_DOCK_DEPART_CURR,)
        assert result.changed
        graded = result.trip.at_dock_depart_curr
        assert graded is not None and graded.actual == _ms(10, 34)
        assert result.trip.at_dock_arrive_next is not None
        assert result.trip.at_dock_arrive_next.actual is None

        (record,) = result.records
        assert record.trip_key == "TAC--2026-10-13--10:30--P52-BBI"
        assert record.slot is SlotName.AT_DOCK_DEPART_CURR
        assert record.delta_total == 1.0
        assert record.delta_range == 0.0

    def test_trip_end_grades_arrival_slots(self) -> None:
        trip = _trip(
            at_sea_arrive_next=_estimate(_ms(11, 5)),
            left_dock=_ms(10, 34),
        )
        result = actualize_trip(trip, LifecycleEvent.TRIP_END, _ms(11, 6))
        assert set(result.graded) == {SlotName.AT_DOCK_ARRIVE_NEXT, SlotName.AT_SEA_ARRIVE_NEXT}
        assert len(result.records) == 2

    def test_second_grading_is_noop(self) -> None:
        first = actualize_trip(_trip(), LifecycleEvent.LEAVE_DOCK, _ms(10, 34))
        second = actualize_trip(first.trip, LifecycleEvent.LEAVE_DOCK, _ms(10, 40))
        assert not second.changed
        assert second.records == ()
        assert second.trip is first.trip

    def test_unknown_observation_is_noop(self) -> None:
        trip = _trip()
        result = actualize_trip(trip, LifecycleEvent.TRIP_END, None)
        assert result.trip is trip
        assert not result.changed

    def test_empty_slots_are_not_graded(self) -> None:
        trip = _trip(at_dock_depart_next=None)
        result = actualize_trip(trip, LifecycleEvent.NEXT_LEAVE_DOCK, _ms(11, 41))
        assert result.graded == ()

    def test_no_record_without_trip_key(self) -> None:
        result = actualize_trip(_trip(key=None), LifecycleEvent.LEAVE_DOCK, _ms(10, 34))
        assert result.changed
        assert result.records == ()
