"""Descriptor table for the five estimate slots.

Every slot-specific decision (which event computes it, which model
evaluates it, what absolute time the model's minutes are added to, and
which observation grades it) lives in :data:`SLOT_SPECS`.  The engine
and the actualizer iterate the table instead of special-casing slots.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Callable

from ferrytrips.lifecycle.events import LifecycleEvent
from ferrytrips.models.model_params import ModelType
from ferrytrips.models.trip import SlotName, Trip

TimeFn = Callable[[Trip], int | None]


def _scheduled_departure(trip: Trip) -> int | None:
    return trip.scheduled_departure


def _left_dock(trip: Trip) -> int | None:
    return trip.left_dock


def _next_departing_time(trip: Trip) -> int | None:
    if trip.scheduled_trip is None:
        return None
    return trip.scheduled_trip.next_departing_time


@dataclasses.dataclass(frozen=True)
class SlotSpec:
    slot: SlotName
    model_type: ModelType
    trigger: LifecycleEvent
    """Event that computes the estimate."""
    anchor: TimeFn
    """Absolute time the model's minutes are added to."""
    reference: TimeFn
    """Lower bound for the estimate before the minimum gap is added."""
    graded_on: LifecycleEvent
    """Event whose observed time grades the estimate."""
    predicts_arrival: bool = False
    requires_left_dock: bool = False

    @property
    def is_arrival_class(self) -> bool:
        """Computed when the vessel arrives at dock."""
        return self.trigger == LifecycleEvent.ARRIVE_DOCK


SLOT_SPECS: tuple[SlotSpec, ...] = (
    SlotSpec(
        slot=SlotName.AT_DOCK_DEPART_CURR,
        model_type=ModelType.AT_DOCK_DEPART_CURR,
        trigger=LifecycleEvent.ARRIVE_DOCK,
        anchor=_scheduled_departure,
        reference=_scheduled_departure,
        graded_on=LifecycleEvent.LEAVE_DOCK,
    ),
    SlotSpec(
        slot=SlotName.AT_DOCK_ARRIVE_NEXT,
        model_type=ModelType.AT_DOCK_ARRIVE_NEXT,
        trigger=LifecycleEvent.ARRIVE_DOCK,
        anchor=_scheduled_departure,
        reference=_scheduled_departure,
        graded_on=LifecycleEvent.TRIP_END,
        predicts_arrival=True,
    ),
    SlotSpec(
        slot=SlotName.AT_DOCK_DEPART_NEXT,
        model_type=ModelType.AT_DOCK_DEPART_NEXT,
        trigger=LifecycleEvent.ARRIVE_DOCK,
        anchor=_next_departing_time,
        reference=_next_departing_time,
        graded_on=LifecycleEvent.NEXT_LEAVE_DOCK,
    ),
    SlotSpec(
        slot=SlotName.AT_SEA_ARRIVE_NEXT,
        model_type=ModelType.AT_SEA_ARRIVE_NEXT,
        trigger=LifecycleEvent.LEAVE_DOCK,
        anchor=_left_dock,
        reference=_left_dock,
        graded_on=LifecycleEvent.TRIP_END,
        predicts_arrival=True,
        requires_left_dock=True,
    ),
    SlotSpec(
        slot=SlotName.AT_SEA_DEPART_NEXT,
        model_type=ModelType.AT_SEA_DEPART_NEXT,
        trigger=LifecycleEvent.LEAVE_DOCK,
        anchor=_next_departing_time,
        reference=_next_departing_time,
        graded_on=LifecycleEvent.NEXT_LEAVE_DOCK,
        requires_left_dock=True,
    ),
)

SLOT_SPECS_BY_NAME: dict[SlotName, SlotSpec] = {spec.slot: spec for spec in SLOT_SPECS}


def specs_graded_on(event: LifecycleEvent) -> tuple[SlotSpec, ...]:
    """Slots whose estimates the observation of *event* settles."""
    return tuple(spec for spec in SLOT_SPECS if spec.graded_on == event)
