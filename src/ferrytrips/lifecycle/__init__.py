"""Trip lifecycle: event detection, next-state building and change detection."""

from ferrytrips.lifecycle.builder import build_next, complete_trip
from ferrytrips.lifecycle.diff import needs_write, trips_equal
from ferrytrips.lifecycle.events import LifecycleEvent, TripEvents, detect_trip_events

__all__ = [
    "LifecycleEvent",
    "TripEvents",
    "build_next",
    "complete_trip",
    "detect_trip_events",
    "needs_write",
    "trips_equal",
]
