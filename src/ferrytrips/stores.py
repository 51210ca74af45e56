"""Structural interfaces for the engine's external collaborators.

Having protocols here makes it easy to pass in-memory doubles while the
production adapters (database, schedule service, model registry) stay
outside this package.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping, Sequence
from typing import Protocol

from ferrytrips.models.model_params import ModelParameters, ModelType
from ferrytrips.models.prediction import PredictionRecord
from ferrytrips.models.schedule import ArrivalLookup, ScheduleSnapshot
from ferrytrips.models.trip import Trip


@dataclasses.dataclass(frozen=True)
class TripTransition:
    """An archived trip and the active trip that replaces it."""

    completed: Trip
    started: Trip


class TripStore(Protocol):
    """Active trips (one per vessel) and the append-only completed archive."""

    async def get_all_active(self) -> list[Trip]:
        ...

    async def get_latest_completed(self, vessel_id: str) -> Trip | None:
        ...

    async def upsert_active(self, trips: Sequence[Trip]) -> None:
        ...

    async def archive_and_start(self, transitions: Sequence[TripTransition]) -> None:
        """Insert each completed trip and replace its vessel's active trip, atomically per transition."""
        ...

    async def patch_completed(self, trips: Sequence[Trip]) -> None:
        """Replace archived trips, matched by vessel and key."""
        ...


class ModelStore(Protocol):
    async def load_models(
        self,
        departing_terminal: str,
        arriving_terminal: str,
        model_types: Sequence[ModelType],
    ) -> Mapping[ModelType, ModelParameters]:
        """Return the requested models that exist; missing types are simply absent."""
        ...


class ScheduleStore(Protocol):
    async def lookup_arrival_terminal(
        self,
        vessel_id: str,
        departing_terminal: str,
        scheduled_departure: int,
    ) -> ArrivalLookup | None:
        ...

    async def lookup_schedule_by_key(self, key: str) -> ScheduleSnapshot | None:
        ...


class PredictionSink(Protocol):
    async def insert_many(self, records: Sequence[PredictionRecord]) -> None:
        ...
