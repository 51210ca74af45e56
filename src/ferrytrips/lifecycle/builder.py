"""Trip state builder.

:func:`build_next` turns one telemetry sample plus the vessel's current
state into the complete next :class:`~ferrytrips.models.trip.Trip`.  It
never returns a partial patch, so the change detector can compare whole
values, and it performs no I/O: schedule inference is passed in.
"""

from __future__ import annotations

import logging
from datetime import tzinfo
from typing import Any

from ferrytrips._constants import SAILING_DAY_CUTOVER_HOUR
from ferrytrips._time import calculate_duration, calculate_time_delta, sailing_day
from ferrytrips.exceptions import InvariantViolationError
from ferrytrips.keys import generate_trip_key
from ferrytrips.models.telemetry import TelemetrySample
from ferrytrips.models.trip import SlotName, Trip

_logger = logging.getLogger(__name__)


def _first_present(*values: Any) -> Any:
    for value in values:
        if value is not None:
            return value
    return None


def _resolve_left_dock(sample: TelemetrySample, carried: Trip | None) -> int | None:
    if sample.left_dock is not None:
        return sample.left_dock
    if carried is None:
        return None
    if carried.left_dock is not None:
        return carried.left_dock
    if carried.at_dock and not sample.at_dock:
        # Docked flag dropped before the feed reported LeftDock.
        return sample.timestamp
    return None


def build_next(
    sample: TelemetrySample,
    existing: Trip | None = None,
    completed: Trip | None = None,
    *,
    inferred_arriving_terminal: str | None = None,
    tz: tzinfo | None = None,
    cutover_hour: int = SAILING_DAY_CUTOVER_HOUR,
) -> Trip:
    """Build the vessel's next active trip.

    Parameters
    ----------
    sample : TelemetrySample
        The vessel's telemetry for this tick.  Must carry a departing terminal.
    existing : Trip or None
        The vessel's active trip before this tick.
    completed : Trip or None
        The trip just archived when *sample* crosses a boundary.  Supplies
        the new trip's previous-leg context; *existing* is used when omitted.
    inferred_arriving_terminal : str or None
        Arriving terminal inferred from the schedule, used only when the
        sample does not report one.
    tz : tzinfo or None
        Zone for the trip key and sailing day.
    cutover_hour : int
        Sailing-day cutover hour.

    Returns
    -------
    Trip
        Fully populated next state.  Identical inputs always give an
        identical result.
    """
    if not sample.departing_terminal:
        raise ValueError(f"Sample for {sample.vessel_id} has no departing terminal")

    is_boundary = existing is not None and existing.departing_terminal != sample.departing_terminal
    # Only a continuing leg may inherit state; a boundary starts from the sample.
    carried = existing if existing is not None and not is_boundary else None

    scheduled_departure = _first_present(
        sample.scheduled_departure, carried.scheduled_departure if carried else None
    )
    eta = _first_present(sample.eta, carried.eta if carried else None)
    left_dock = _resolve_left_dock(sample, carried)

    if is_boundary:
        trip_start = sample.timestamp
    else:
        trip_start = carried.trip_start if carried else None

    arriving_terminal = _first_present(
        sample.arriving_terminal,
        inferred_arriving_terminal,
        carried.arriving_terminal if carried else None,
    )

    key = generate_trip_key(
        sample.vessel_id,
        sample.departing_terminal,
        arriving_terminal,
        scheduled_departure,
        tz,
    )

    trip_delay = calculate_time_delta(scheduled_departure, left_dock)
    at_dock_duration = calculate_duration(trip_start, left_dock)

    if is_boundary and existing is not None:
        previous = completed if completed is not None else existing
        prev_terminal = previous.departing_terminal
        prev_scheduled_departure = previous.scheduled_departure
        prev_left_dock = previous.left_dock
    elif carried is not None:
        prev_terminal = carried.prev_terminal
        prev_scheduled_departure = carried.prev_scheduled_departure
        prev_left_dock = carried.prev_left_dock
    else:
        prev_terminal = prev_scheduled_departure = prev_left_dock = None

    fields: dict[str, Any] = {
        "vessel_id": sample.vessel_id,
        "departing_terminal": sample.departing_terminal,
        "arriving_terminal": arriving_terminal,
        "key": key,
        "sailing_day": sailing_day(
            _first_present(scheduled_departure, trip_start, sample.timestamp),
            tz,
            cutover_hour=cutover_hour,
        ),
        "in_service": sample.in_service,
        "at_dock": sample.at_dock,
        "trip_start": trip_start,
        "scheduled_departure": scheduled_departure,
        "left_dock": left_dock,
        "eta": eta,
        "trip_end": None,
        "at_dock_duration": _first_present(at_dock_duration, carried.at_dock_duration if carried else None),
        "at_sea_duration": carried.at_sea_duration if carried else None,
        "total_duration": carried.total_duration if carried else None,
        "trip_delay": _first_present(trip_delay, carried.trip_delay if carried else None),
        "prev_terminal": prev_terminal,
        "prev_scheduled_departure": prev_scheduled_departure,
        "prev_left_dock": prev_left_dock,
        "timestamp": sample.timestamp,
    }

    key_changed = carried is not None and bool(carried.key) and carried.key != key
    if carried is not None and not key_changed:
        for slot in SlotName:
            fields[slot.value] = carried.estimate(slot)
        snapshot = carried.scheduled_trip
        if snapshot is not None and (snapshot.key is None or snapshot.key == key):
            fields["scheduled_trip"] = snapshot
            fields["route_id"] = carried.route_id
            fields["route_abbrev"] = carried.route_abbrev
            if snapshot.sailing_day:
                fields["sailing_day"] = snapshot.sailing_day
    elif key_changed:
        _logger.debug(
            "Key changed for %s (%s -> %s); clearing schedule and estimates",
            sample.vessel_id,
            carried.key if carried else None,
            key,
        )

    return Trip(**fields)


def complete_trip(trip: Trip, trip_end: int | None) -> Trip:
    """Close *trip* at *trip_end* and derive its at-sea and total durations.

    Raises
    ------
    InvariantViolationError
        *trip_end* is missing, or precedes the trip's start.
    """
    if trip_end is None:
        raise InvariantViolationError(
            f"Cannot archive trip {trip.key or trip.vessel_id} without an end timestamp",
            vessel_id=trip.vessel_id,
        )
    if trip.trip_start is not None and trip_end < trip.trip_start:
        raise InvariantViolationError(
            f"Trip {trip.key or trip.vessel_id} would end before it started",
            vessel_id=trip.vessel_id,
        )
    return trip.with_updates(
        trip_end=trip_end,
        at_sea_duration=calculate_duration(trip.left_dock, trip_end),
        total_duration=calculate_time_delta(trip.trip_start, trip_end),
    )
