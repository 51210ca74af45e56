"""ferrytrips - Trip lifecycle reconciliation and time estimates for ferry vessel telemetry."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("ferrytrips")
except PackageNotFoundError:
    __version__ = "0+local"
from ferrytrips.config import FerryTripsConfig
from ferrytrips.estimates import EstimateEngine, EstimateSkipped
from ferrytrips.exceptions import (
    CollaboratorError,
    ConfigError,
    FeatureExtractionError,
    FeedError,
    FerryTripsError,
    InvariantViolationError,
    TransientIOError,
)
from ferrytrips.lifecycle import (
    LifecycleEvent,
    TripEvents,
    build_next,
    complete_trip,
    detect_trip_events,
    needs_write,
)
from ferrytrips.models import (
    ArrivalLookup,
    Estimate,
    ModelParameters,
    ModelType,
    PredictionRecord,
    ScheduleSnapshot,
    SlotName,
    TelemetrySample,
    TrainingMetrics,
    Trip,
)
from ferrytrips.orchestrator import TickEvent, TickResult, TripOrchestrator, VesselTickPlan
from ferrytrips.schedule import ScheduleEnricher

__all__ = [
    "__version__",
    "ArrivalLookup",
    "CollaboratorError",
    "ConfigError",
    "Estimate",
    "EstimateEngine",
    "EstimateSkipped",
    "FeatureExtractionError",
    "FeedError",
    "FerryTripsConfig",
    "FerryTripsError",
    "InvariantViolationError",
    "LifecycleEvent",
    "ModelParameters",
    "ModelType",
    "PredictionRecord",
    "ScheduleEnricher",
    "ScheduleSnapshot",
    "SlotName",
    "TelemetrySample",
    "TickEvent",
    "TickResult",
    "TrainingMetrics",
    "TransientIOError",
    "Trip",
    "TripEvents",
    "TripOrchestrator",
    "VesselTickPlan",
    "build_next",
    "complete_trip",
    "detect_trip_events",
    "needs_write",
]
