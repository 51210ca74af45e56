"""Deterministic in-memory collaborators.

Used by the replay script and the tests.  Each store counts its calls so
callers can assert on batching.
"""

from __future__ import annotations

import collections
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from ferrytrips.models.model_params import ModelParameters, ModelType
from ferrytrips.models.prediction import PredictionRecord
from ferrytrips.models.schedule import ArrivalLookup, ScheduleSnapshot
from ferrytrips.models.trip import Trip
from ferrytrips.stores import TripTransition


class InMemoryTripStore:
    """Active trips keyed by vessel plus an append-only completed list."""

    def __init__(self, active: Iterable[Trip] = (), completed: Iterable[Trip] = ()) -> None:
        self._active: dict[str, Trip] = {trip.vessel_id: trip for trip in active}
        self._completed: list[Trip] = list(completed)
        self.calls: collections.Counter[str] = collections.Counter()

    @property
    def active(self) -> dict[str, Trip]:
        return dict(self._active)

    @property
    def completed(self) -> list[Trip]:
        return list(self._completed)

    async def get_all_active(self) -> list[Trip]:
        self.calls["get_all_active"] += 1
        return list(self._active.values())

    async def get_latest_completed(self, vessel_id: str) -> Trip | None:
        self.calls["get_latest_completed"] += 1
        for trip in reversed(self._completed):
            if trip.vessel_id == vessel_id:
                return trip
        return None

    async def upsert_active(self, trips: Sequence[Trip]) -> None:
        self.calls["upsert_active"] += 1
        for trip in trips:
            self._active[trip.vessel_id] = trip

    async def archive_and_start(self, transitions: Sequence[TripTransition]) -> None:
        self.calls["archive_and_start"] += 1
        for transition in transitions:
            self._completed.append(transition.completed)
            self._active[transition.started.vessel_id] = transition.started

    async def patch_completed(self, trips: Sequence[Trip]) -> None:
        self.calls["patch_completed"] += 1
        for patched in trips:
            for index in range(len(self._completed) - 1, -1, -1):
                stored = self._completed[index]
                if stored.vessel_id == patched.vessel_id and stored.key == patched.key:
                    self._completed[index] = patched
                    break


class InMemoryModelStore:
    """Models keyed by (departing terminal, arriving terminal, model type)."""

    def __init__(self, models: Iterable[ModelParameters] = ()) -> None:
        self._models: dict[tuple[str, str, ModelType], ModelParameters] = {
            params.lookup_key: params for params in models
        }
        self.calls: collections.Counter[str] = collections.Counter()

    @classmethod
    def from_documents(cls, documents: Iterable[Mapping[str, Any]]) -> InMemoryModelStore:
        return cls(ModelParameters.model_validate(doc) for doc in documents)

    async def load_models(
        self,
        departing_terminal: str,
        arriving_terminal: str,
        model_types: Sequence[ModelType],
    ) -> dict[ModelType, ModelParameters]:
        self.calls["load_models"] += 1
        found: dict[ModelType, ModelParameters] = {}
        for model_type in model_types:
            params = self._models.get((departing_terminal, arriving_terminal, model_type))
            if params is not None:
                found[model_type] = params
        return found


class InMemoryScheduleStore:
    """Schedule snapshots keyed by trip key."""

    def __init__(self, snapshots: Iterable[ScheduleSnapshot] = ()) -> None:
        self._by_key: dict[str, ScheduleSnapshot] = {
            snapshot.key: snapshot for snapshot in snapshots if snapshot.key
        }
        self.calls: collections.Counter[str] = collections.Counter()

    @classmethod
    def from_documents(cls, documents: Iterable[Mapping[str, Any]]) -> InMemoryScheduleStore:
        return cls(ScheduleSnapshot.model_validate(doc) for doc in documents)

    async def lookup_arrival_terminal(
        self,
        vessel_id: str,
        departing_terminal: str,
        scheduled_departure: int,
    ) -> ArrivalLookup | None:
        self.calls["lookup_arrival_terminal"] += 1
        prefix = f"{vessel_id}--"
        for key, snapshot in self._by_key.items():
            if (
                key.startswith(prefix)
                and snapshot.direct
                and snapshot.departing_terminal == departing_terminal
                and snapshot.departing_time == scheduled_departure
                and snapshot.arriving_terminal
            ):
                return ArrivalLookup(arriving_terminal=snapshot.arriving_terminal, snapshot=snapshot)
        return None

    async def lookup_schedule_by_key(self, key: str) -> ScheduleSnapshot | None:
        self.calls["lookup_schedule_by_key"] += 1
        return self._by_key.get(key)


class InMemoryPredictionSink:
    def __init__(self) -> None:
        self.records: list[PredictionRecord] = []
        self.calls: collections.Counter[str] = collections.Counter()

    async def insert_many(self, records: Sequence[PredictionRecord]) -> None:
        self.calls["insert_many"] += 1
        self.records.extend(records)
