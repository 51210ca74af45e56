from __future__ import annotations

import asyncio
from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from ferrytrips.config import FerryTripsConfig
from ferrytrips.exceptions import TransientIOError
from ferrytrips.lifecycle.events import TripEvents
from ferrytrips.memory import InMemoryScheduleStore
from ferrytrips.models.schedule import ArrivalLookup, ScheduleSnapshot
from ferrytrips.models.telemetry import TelemetrySample
from ferrytrips.models.trip import Trip
from ferrytrips.schedule import ScheduleEnricher, is_attachable

PACIFIC = ZoneInfo("America/Los_Angeles")
KEY = "TAC--2026-10-13--10:30--P52-BBI"


def _ms(hour: int, minute: int = 0) -> int:
    return int(datetime(2026, 10, 13, hour, minute, tzinfo=PACIFIC).timestamp() * 1000)


def _snapshot(**overrides: object) -> ScheduleSnapshot:
    values: dict[str, object] = {
        "key": KEY,
        "departing_terminal": "P52",
        "arriving_terminal": "BBI",
        "route_id": 5,
        "route_abbrev": "sea-bi",
        "sailing_day": "2026-10-13",
        "departing_time": _ms(10, 30),
        "next_departing_time": _ms(11, 40),
    }
    values.update(overrides)
    return ScheduleSnapshot.model_validate(values)


def _sample(**overrides: object) -> TelemetrySample:
    values: dict[str, object] = {
        "vessel_id": "TAC",
        "departing_terminal": "P52",
        "at_dock": True,
        "scheduled_departure": _ms(10, 30),
        "timestamp": _ms(10, 5),
    }
    values.update(overrides)
    return TelemetrySample.model_validate(values)


def _trip(**overrides: object) -> Trip:
    values: dict[str, object] = {
        "vessel_id": "TAC",
        "departing_terminal": "P52",
        "arriving_terminal": "BBI",
        "key": KEY,
        "scheduled_departure": _ms(10, 30),
        "timestamp": _ms(10, 5),
    }
    values.update(overrides)
    return Trip.model_validate(values)


class _SlowScheduleStore:
    async def lookup_arrival_terminal(
        self, vessel_id: str, departing_terminal: str, scheduled_departure: int
    ) -> ArrivalLookup | None:
        await asyncio.sleep(10)
        return None

    async def lookup_schedule_by_key(self, key: str) -> ScheduleSnapshot | None:
        await asyncio.sleep(10)
        return None


class _FailingScheduleStore:
    async def lookup_arrival_terminal(
        self, vessel_id: str, departing_terminal: str, scheduled_departure: int
    ) -> ArrivalLookup | None:
        raise TransientIOError("schedule unavailable", operation="lookup_arrival_terminal")

    async def lookup_schedule_by_key(self, key: str) -> ScheduleSnapshot | None:
        raise TransientIOError("schedule unavailable", operation="lookup_schedule_by_key")


class TestIsAttachable:
    def test_matching_direct_snapshot(self) -> None:
        assert is_attachable(_snapshot(), KEY)

    def test_indirect_snapshot_rejected(self) -> None:
        assert not is_attachable(_snapshot(direct=False), KEY)

    def test_mismatched_key_rejected(self) -> None:
        assert not is_attachable(_snapshot(key="TAC--2026-10-13--11:40--BBI-P52"), KEY)

    def test_missing_snapshot(self) -> None:
        assert not is_attachable(None, KEY)


class TestArrivalLookupArgs:
    def test_first_trip_docked_without_destination(self) -> None:
        args = ScheduleEnricher.arrival_lookup_args(_sample(), None, TripEvents(is_first_trip=True))
        assert args == ("TAC", "P52", _ms(10, 30))

    def test_not_looked_up_on_regular_tick(self) -> None:
        existing = _trip(arriving_terminal=None, key=None, at_dock=True)
        assert ScheduleEnricher.arrival_lookup_args(_sample(), existing, TripEvents()) is None

    def test_not_looked_up_when_destination_known(self) -> None:
        sample = _sample(arriving_terminal="BBI")
        assert ScheduleEnricher.arrival_lookup_args(sample, None, TripEvents(is_first_trip=True)) is None

    def test_not_looked_up_at_sea(self) -> None:
        sample = _sample(at_dock=False)
        assert ScheduleEnricher.arrival_lookup_args(sample, None, TripEvents(is_first_trip=True)) is None

    def test_not_looked_up_without_scheduled_departure(self) -> None:
        sample = _sample(scheduled_departure=None)
        assert ScheduleEnricher.arrival_lookup_args(sample, None, TripEvents(is_first_trip=True)) is None

    def test_carried_destination_suppresses_lookup(self) -> None:
        existing = _trip(at_dock=False)
        events = TripEvents(did_arrive_at_dock=True)
        assert ScheduleEnricher.arrival_lookup_args(_sample(), existing, events) is None


class TestScheduleEnricher:
    @pytest.mark.asyncio
    async def test_lookup_arrival_returns_inferred_terminal(self) -> None:
        store = InMemoryScheduleStore([_snapshot()])
        enricher = ScheduleEnricher(store)
        result = await enricher.lookup_arrival(_sample(), None, TripEvents(is_first_trip=True))
        assert result is not None
        assert result.arriving_terminal == "BBI"
        assert store.calls["lookup_arrival_terminal"] == 1

    @pytest.mark.asyncio
    async def test_lookup_arrival_ignores_indirect_sailings(self) -> None:
        store = InMemoryScheduleStore([_snapshot(direct=False)])
        result = await ScheduleEnricher(store).lookup_arrival(_sample(), None, TripEvents(is_first_trip=True))
        assert result is None

    @pytest.mark.asyncio
    async def test_attach_uses_arrival_snapshot_without_second_lookup(self) -> None:
        store = InMemoryScheduleStore([_snapshot()])
        arrival = ArrivalLookup(arriving_terminal="BBI", snapshot=_snapshot())
        trip = await ScheduleEnricher(store).attach_schedule(_trip(), TripEvents(is_first_trip=True), arrival=arrival)
        assert trip.scheduled_trip is not None
        assert trip.route_id == 5
        assert trip.route_abbrev == "sea-bi"
        assert store.calls["lookup_schedule_by_key"] == 0

    @pytest.mark.asyncio
    async def test_arrival_without_snapshot_falls_back_to_key_lookup(self) -> None:
        store = InMemoryScheduleStore([_snapshot()])
        arrival = ArrivalLookup(arriving_terminal="BBI")
        trip = await ScheduleEnricher(store).attach_schedule(_trip(), TripEvents(is_first_trip=True), arrival=arrival)
        assert trip.scheduled_trip == _snapshot()
        assert store.calls["lookup_schedule_by_key"] == 1

    @pytest.mark.asyncio
    async def test_unknown_key_leaves_trip_unchanged(self) -> None:
        store = InMemoryScheduleStore([])
        trip = _trip()
        assert await ScheduleEnricher(store).attach_schedule(trip, TripEvents(is_first_trip=True)) is trip
        assert store.calls["lookup_schedule_by_key"] == 1

    @pytest.mark.asyncio
    async def test_attach_by_key_on_qualifying_event(self) -> None:
        store = InMemoryScheduleStore([_snapshot()])
        trip = await ScheduleEnricher(store).attach_schedule(_trip(), TripEvents(did_arrive_at_dock=True))
        assert trip.scheduled_trip == _snapshot()
        assert trip.sailing_day == "2026-10-13"

    @pytest.mark.asyncio
    async def test_no_lookup_on_regular_tick(self) -> None:
        store = InMemoryScheduleStore([_snapshot()])
        trip = _trip()
        assert await ScheduleEnricher(store).attach_schedule(trip, TripEvents()) is trip
        assert store.calls["lookup_schedule_by_key"] == 0

    @pytest.mark.asyncio
    async def test_no_lookup_without_key(self) -> None:
        store = InMemoryScheduleStore([_snapshot()])
        trip = _trip(key=None)
        assert await ScheduleEnricher(store).attach_schedule(trip, TripEvents(is_first_trip=True)) is trip
        assert store.calls["lookup_schedule_by_key"] == 0

    @pytest.mark.asyncio
    async def test_matching_snapshot_not_refetched(self) -> None:
        store = InMemoryScheduleStore([_snapshot()])
        trip = _trip(scheduled_trip=_snapshot())
        assert await ScheduleEnricher(store).attach_schedule(trip, TripEvents(did_arrive_at_dock=True)) is trip
        assert store.calls["lookup_schedule_by_key"] == 0

    @pytest.mark.asyncio
    async def test_indirect_snapshot_not_attached(self) -> None:
        store = InMemoryScheduleStore([_snapshot(direct=False)])
        trip = await ScheduleEnricher(store).attach_schedule(_trip(), TripEvents(is_first_trip=True))
        assert trip.scheduled_trip is None

    @pytest.mark.asyncio
    async def test_timeout_is_a_miss(self) -> None:
        enricher = ScheduleEnricher(_SlowScheduleStore(), config=FerryTripsConfig(io_timeout=0.01))
        events = TripEvents(is_first_trip=True)
        assert await enricher.lookup_arrival(_sample(), None, events) is None
        trip = await enricher.attach_schedule(_trip(), events)
        assert trip.scheduled_trip is None

    @pytest.mark.asyncio
    async def test_collaborator_error_is_a_miss(self) -> None:
        enricher = ScheduleEnricher(_FailingScheduleStore())
        events = TripEvents(is_first_trip=True)
        assert await enricher.lookup_arrival(_sample(), None, events) is None
        trip = await enricher.attach_schedule(_trip(), events)
        assert trip.scheduled_trip is None
