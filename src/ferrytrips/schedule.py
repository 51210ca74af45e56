"""Schedule enrichment.

Thin adapter over a :class:`~ferrytrips.stores.ScheduleStore`.  The feed
ticks far more often than trips change, so lookups run only on lifecycle
events (new trip, arrival at dock, key change or first derivable key).
An absent result, a timeout and a collaborator error all mean "no
enrichment this time".
"""

from __future__ import annotations

import logging

from ferrytrips._io import bounded_call
from ferrytrips.config import FerryTripsConfig
from ferrytrips.lifecycle.events import TripEvents
from ferrytrips.models.schedule import ArrivalLookup, ScheduleSnapshot
from ferrytrips.models.telemetry import TelemetrySample
from ferrytrips.models.trip import Trip
from ferrytrips.stores import ScheduleStore

_logger = logging.getLogger(__name__)


def is_attachable(snapshot: ScheduleSnapshot | None, key: str | None) -> bool:
    """Direct sailings whose key (when known) matches the trip's key."""
    if snapshot is None or not snapshot.direct:
        return False
    return snapshot.key is None or snapshot.key == key


class ScheduleEnricher:
    """Event-gated arrival inference and schedule snapshot lookup."""

    def __init__(self, schedule_store: ScheduleStore, *, config: FerryTripsConfig | None = None) -> None:
        self._schedule = schedule_store
        self._config = config or FerryTripsConfig()

    @staticmethod
    def arrival_lookup_args(
        sample: TelemetrySample,
        existing: Trip | None,
        events: TripEvents,
    ) -> tuple[str, str, int] | None:
        """Arguments for an arrival lookup, or ``None`` when none is warranted.

        Only a docked vessel with an unknown destination on a qualifying
        event is looked up, and only once its scheduled departure is known.
        """
        if not events.needs_schedule or not sample.at_dock or not sample.departing_terminal:
            return None
        if sample.arriving_terminal:
            return None
        carried = existing if events.is_regular_update else None
        if carried is not None and carried.arriving_terminal:
            return None
        scheduled = sample.scheduled_departure
        if scheduled is None and carried is not None:
            scheduled = carried.scheduled_departure
        if scheduled is None:
            return None
        return (sample.vessel_id, sample.departing_terminal, scheduled)

    async def lookup_arrival(
        self,
        sample: TelemetrySample,
        existing: Trip | None,
        events: TripEvents,
    ) -> ArrivalLookup | None:
        args = self.arrival_lookup_args(sample, existing, events)
        if args is None:
            return None
        result = await bounded_call(
            self._schedule.lookup_arrival_terminal(*args),
            timeout=self._config.io_timeout,
            operation="Arrival terminal lookup",
            subject=sample.vessel_id,
        )
        if result is None:
            _logger.debug("No scheduled arrival for %s from %s", sample.vessel_id, sample.departing_terminal)
        return result

    async def attach_schedule(
        self,
        trip: Trip,
        events: TripEvents,
        *,
        arrival: ArrivalLookup | None = None,
    ) -> Trip:
        """Attach the schedule snapshot for *trip*'s key when an event warrants it."""
        if arrival is not None and arrival.snapshot is not None and is_attachable(arrival.snapshot, trip.key):
            return trip.with_schedule(arrival.snapshot)
        if not events.needs_schedule or not trip.key:
            return trip
        if trip.scheduled_trip is not None and trip.scheduled_trip.key == trip.key:
            return trip

        snapshot = await bounded_call(
            self._schedule.lookup_schedule_by_key(trip.key),
            timeout=self._config.io_timeout,
            operation="Schedule lookup",
            subject=trip.key,
        )
        if snapshot is None:
            return trip
        if not is_attachable(snapshot, trip.key):
            _logger.debug("Ignoring schedule for %s: indirect or mismatched sailing", trip.key)
            return trip
        return trip.with_schedule(snapshot)
