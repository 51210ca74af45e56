"""Prediction-history records emitted when an estimate is actualized."""

from __future__ import annotations

from ferrytrips.models._base import EpochMs, FerryBaseModel, OptionalEpochMs
from ferrytrips.models.trip import Estimate, SlotName, Trip


class PredictionRecord(FerryBaseModel):
    """Append-only record of one graded estimate."""

    trip_key: str
    slot: SlotName
    vessel_id: str
    departing_terminal: str
    arriving_terminal: str
    trip_start: OptionalEpochMs = None
    scheduled_departure: OptionalEpochMs = None
    left_dock: OptionalEpochMs = None
    trip_end: OptionalEpochMs = None
    predicted: EpochMs
    min_time: EpochMs
    max_time: EpochMs
    mae: float
    std_dev: float
    actual: EpochMs
    delta_total: float
    delta_range: float

    @classmethod
    def from_trip(cls, trip: Trip, slot: SlotName, estimate: Estimate) -> PredictionRecord | None:
        """Build a record for an actualized *estimate* held by *trip*.

        Returns ``None`` when the estimate is not graded yet or the trip
        lacks the identity a history record is keyed on.
        """
        if (
            estimate.actual is None
            or estimate.delta_total is None
            or estimate.delta_range is None
            or not trip.key
            or not trip.arriving_terminal
        ):
            return None
        return cls(
            trip_key=trip.key,
            slot=slot,
            vessel_id=trip.vessel_id,
            departing_terminal=trip.departing_terminal,
            arriving_terminal=trip.arriving_terminal,
            trip_start=trip.trip_start,
            scheduled_departure=trip.scheduled_departure,
            left_dock=trip.left_dock,
            trip_end=trip.trip_end,
            predicted=estimate.predicted,
            min_time=estimate.min_time,
            max_time=estimate.max_time,
            mae=estimate.mae,
            std_dev=estimate.std_dev,
            actual=estimate.actual,
            delta_total=estimate.delta_total,
            delta_range=estimate.delta_range,
        )
