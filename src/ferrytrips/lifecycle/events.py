"""Lifecycle event detection.

Classifies one telemetry sample against the vessel's active trip.  The
detector is pure: it reads both values and returns flags, nothing else.
"""

from __future__ import annotations

from datetime import tzinfo
from enum import StrEnum

from pydantic import BaseModel, ConfigDict

from ferrytrips.keys import generate_trip_key
from ferrytrips.models.telemetry import TelemetrySample
from ferrytrips.models.trip import Trip


class LifecycleEvent(StrEnum):
    """Events that trigger estimate computation or grading."""

    ARRIVE_DOCK = "arrive-dock"
    LEAVE_DOCK = "leave-dock"
    TRIP_END = "trip-end"
    NEXT_LEAVE_DOCK = "next-leave-dock"


class TripEvents(BaseModel):
    """Flags describing what one sample means for the active trip."""

    model_config = ConfigDict(frozen=True)

    is_first_trip: bool = False
    is_boundary: bool = False
    did_arrive_at_dock: bool = False
    did_leave_dock: bool = False
    did_key_change: bool = False
    did_acquire_key: bool = False
    """The active trip had no key and the sample makes one derivable."""
    sample_key: str | None = None

    @property
    def is_regular_update(self) -> bool:
        return not self.is_first_trip and not self.is_boundary

    @property
    def starts_new_trip(self) -> bool:
        return self.is_first_trip or self.is_boundary

    @property
    def needs_schedule(self) -> bool:
        """Events on which schedule lookups are allowed."""
        return (
            self.starts_new_trip
            or self.did_arrive_at_dock
            or self.did_key_change
            or self.did_acquire_key
        )

    def fired(self, sample: TelemetrySample) -> frozenset[LifecycleEvent]:
        """Lifecycle events seen by the trip produced from *sample*.

        A boundary reported while docked is the new trip's arrival even
        when the old trip already showed the vessel at dock.  A boundary
        reported after the new leg departed is also its departure.
        """
        events: set[LifecycleEvent] = set()
        if self.did_arrive_at_dock or (self.is_boundary and sample.at_dock):
            events.add(LifecycleEvent.ARRIVE_DOCK)
        if self.did_leave_dock:
            events.add(LifecycleEvent.LEAVE_DOCK)
        if self.is_boundary:
            events.add(LifecycleEvent.TRIP_END)
        return frozenset(events)


def sample_trip_key(
    sample: TelemetrySample,
    existing: Trip | None = None,
    tz: tzinfo | None = None,
) -> str | None:
    """Key the sample describes, filling gaps from a trip on the same leg."""
    same_leg = existing is not None and existing.departing_terminal == sample.departing_terminal
    arriving = sample.arriving_terminal
    scheduled = sample.scheduled_departure
    if same_leg and existing is not None:
        arriving = arriving or existing.arriving_terminal
        scheduled = scheduled if scheduled is not None else existing.scheduled_departure
    return generate_trip_key(sample.vessel_id, sample.departing_terminal, arriving, scheduled, tz)


def detect_trip_events(
    sample: TelemetrySample,
    existing: Trip | None,
    tz: tzinfo | None = None,
) -> TripEvents:
    """Classify *sample* against the vessel's active trip."""
    key = sample_trip_key(sample, existing, tz)
    if existing is None:
        return TripEvents(is_first_trip=True, sample_key=key)

    is_boundary = existing.departing_terminal != sample.departing_terminal
    did_arrive = not existing.at_dock and sample.at_dock
    if is_boundary:
        # The new leg was first seen after it had already departed.
        did_leave = sample.left_dock is not None
    else:
        # Some feed variants flip AtDock well before they report LeftDock.
        did_leave = existing.left_dock is None and (
            sample.left_dock is not None or (existing.at_dock and not sample.at_dock)
        )
    did_key_change = bool(existing.key) and key != existing.key
    did_acquire_key = not existing.key and key is not None and not is_boundary

    return TripEvents(
        is_boundary=is_boundary,
        did_arrive_at_dock=did_arrive,
        did_leave_dock=did_leave,
        did_key_change=did_key_change,
        did_acquire_key=did_acquire_key,
        sample_key=key,
    )
