"""Typed records for telemetry, trips, schedules and models."""

from ferrytrips.models.model_params import ModelParameters, ModelType, TrainingMetrics
from ferrytrips.models.prediction import PredictionRecord
from ferrytrips.models.schedule import ArrivalLookup, ScheduleSnapshot
from ferrytrips.models.telemetry import TelemetrySample
from ferrytrips.models.trip import Estimate, SlotName, Trip

__all__ = [
    "ArrivalLookup",
    "Estimate",
    "ModelParameters",
    "ModelType",
    "PredictionRecord",
    "ScheduleSnapshot",
    "SlotName",
    "TelemetrySample",
    "Trip",
    "TrainingMetrics",
]
