"""Trip and estimate records.

A :class:`Trip` is one vessel leg, from arrival at the departing terminal
to arrival at the next terminal.  Trips are immutable values: the
lifecycle builder produces a complete new value every tick and the
change detector compares whole values.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum
from typing import Any

from ferrytrips.models._base import EpochMs, FerryBaseModel, OptionalEpochMs
from ferrytrips.models.schedule import ScheduleSnapshot


class SlotName(StrEnum):
    """The five estimate slots carried on every trip."""

    AT_DOCK_DEPART_CURR = "at_dock_depart_curr"
    AT_DOCK_ARRIVE_NEXT = "at_dock_arrive_next"
    AT_DOCK_DEPART_NEXT = "at_dock_depart_next"
    AT_SEA_ARRIVE_NEXT = "at_sea_arrive_next"
    AT_SEA_DEPART_NEXT = "at_sea_depart_next"


class Estimate(FerryBaseModel):
    """A computed arrival/departure time estimate.

    Created once by the estimate engine; the actualizer fills ``actual``
    and the deltas at most once.
    """

    predicted: EpochMs
    min_time: EpochMs
    max_time: EpochMs
    mae: float
    """Mean absolute error of the model on its test set (minutes)."""
    std_dev: float
    """Spread used for the ``[min_time, max_time]`` band (minutes)."""
    actual: OptionalEpochMs = None
    delta_total: float | None = None
    """Signed minutes from predicted to actual."""
    delta_range: float | None = None
    """Signed minutes to the nearer band edge; ``0`` when inside the band."""

    @property
    def is_actualized(self) -> bool:
        return self.actual is not None


class Trip(FerryBaseModel):
    """One vessel leg."""

    vessel_id: str
    departing_terminal: str
    arriving_terminal: str | None = None
    key: str | None = None
    """``vessel--date--HH:MM--dep-arr``; absent until scheduled departure is known."""
    sailing_day: str = ""
    route_id: int | None = None
    route_abbrev: str | None = None
    in_service: bool = True
    at_dock: bool = False

    trip_start: OptionalEpochMs = None
    """Arrival at the departing terminal (set at the boundary that opened the trip)."""
    scheduled_departure: OptionalEpochMs = None
    left_dock: OptionalEpochMs = None
    eta: OptionalEpochMs = None
    trip_end: OptionalEpochMs = None

    at_dock_duration: float | None = None
    at_sea_duration: float | None = None
    total_duration: float | None = None
    trip_delay: float | None = None

    prev_terminal: str | None = None
    prev_scheduled_departure: OptionalEpochMs = None
    prev_left_dock: OptionalEpochMs = None

    at_dock_depart_curr: Estimate | None = None
    at_dock_arrive_next: Estimate | None = None
    at_dock_depart_next: Estimate | None = None
    at_sea_arrive_next: Estimate | None = None
    at_sea_depart_next: Estimate | None = None

    scheduled_trip: ScheduleSnapshot | None = None
    timestamp: EpochMs
    """Last observed telemetry timestamp; not semantically significant."""

    def estimate(self, slot: SlotName) -> Estimate | None:
        value: Estimate | None = getattr(self, slot.value)
        return value

    def estimates(self) -> dict[SlotName, Estimate]:
        """Return the populated estimate slots."""
        return {slot: est for slot in SlotName if (est := self.estimate(slot)) is not None}

    def with_updates(self, **changes: Any) -> Trip:
        return self.model_copy(update=changes)

    def with_estimates(self, estimates: Mapping[SlotName, Estimate]) -> Trip:
        """Merge *estimates* into slots that are still empty.

        A populated slot is never replaced; it only changes through
        :meth:`with_actualized`.
        """
        updates = {
            slot.value: est for slot, est in estimates.items() if self.estimate(slot) is None
        }
        return self.model_copy(update=updates) if updates else self

    def with_actualized(self, estimates: Mapping[SlotName, Estimate]) -> Trip:
        """Replace slots with their actualized counterparts."""
        if not estimates:
            return self
        return self.model_copy(update={slot.value: est for slot, est in estimates.items()})

    def with_schedule(self, snapshot: ScheduleSnapshot) -> Trip:
        """Attach a schedule snapshot and adopt its route and sailing day."""
        updates: dict[str, Any] = {"scheduled_trip": snapshot}
        if snapshot.route_id is not None:
            updates["route_id"] = snapshot.route_id
        if snapshot.route_abbrev:
            updates["route_abbrev"] = snapshot.route_abbrev
        if snapshot.sailing_day:
            updates["sailing_day"] = snapshot.sailing_day
        return self.model_copy(update=updates)
