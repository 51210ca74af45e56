"""Grading estimates against observed outcomes."""

from __future__ import annotations

import dataclasses
import logging

from ferrytrips._constants import MS_PER_MINUTE
from ferrytrips._time import floor_to_second, round_half_up
from ferrytrips.estimates.slots import specs_graded_on
from ferrytrips.lifecycle.events import LifecycleEvent
from ferrytrips.models.prediction import PredictionRecord
from ferrytrips.models.trip import Estimate, SlotName, Trip

_logger = logging.getLogger(__name__)


def delta_range_minutes(actual: int, min_time: int, max_time: int) -> float:
    """Signed minutes from the band to *actual*; ``0`` inside ``[min_time, max_time]``."""
    if actual < min_time:
        return round_half_up((actual - min_time) / MS_PER_MINUTE)
    if actual > max_time:
        return round_half_up((actual - max_time) / MS_PER_MINUTE)
    return 0.0


def actualize_estimate(estimate: Estimate, observed: int) -> Estimate:
    """Fill *estimate*'s actual and deltas; an already graded estimate is returned unchanged."""
    if estimate.is_actualized:
        return estimate
    actual = floor_to_second(observed)
    return estimate.model_copy(
        update={
            "actual": actual,
            "delta_total": round_half_up((actual - estimate.predicted) / MS_PER_MINUTE),
            "delta_range": delta_range_minutes(actual, estimate.min_time, estimate.max_time),
        }
    )


@dataclasses.dataclass(frozen=True)
class Actualization:
    trip: Trip
    graded: tuple[SlotName, ...] = ()
    records: tuple[PredictionRecord, ...] = ()

    @property
    def changed(self) -> bool:
        return bool(self.graded)


def actualize_trip(trip: Trip, event: LifecycleEvent, observed: int | None) -> Actualization:
    """Grade every populated, ungraded slot of *trip* that *event* settles.

    Each graded slot yields one :class:`PredictionRecord` when the trip
    has the identity a history record needs.
    """
    if observed is None:
        return Actualization(trip=trip)

    graded: dict[SlotName, Estimate] = {}
    for spec in specs_graded_on(event):
        estimate = trip.estimate(spec.slot)
        if estimate is None or estimate.is_actualized:
            continue
        graded[spec.slot] = actualize_estimate(estimate, observed)
    if not graded:
        return Actualization(trip=trip)

    updated = trip.with_actualized(graded)
    records: list[PredictionRecord] = []
    for slot, estimate in graded.items():
        record = PredictionRecord.from_trip(updated, slot, estimate)
        if record is None:
            _logger.debug("No history record for %s on %s: trip identity incomplete", slot, trip.vessel_id)
        else:
            records.append(record)
    return Actualization(trip=updated, graded=tuple(graded), records=tuple(records))
