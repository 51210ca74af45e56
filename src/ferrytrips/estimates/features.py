"""Feature extraction for the linear estimate models.

Feature order is part of a model's contract: the canonical key tuples
below are the order used in training unless a model records its own
``feature_keys``.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from datetime import tzinfo

from ferrytrips._constants import (
    MS_PER_MINUTE,
    RBF_EPSILON,
    TIME_CENTER_HOURS,
    TIME_CENTER_SIGMA_HOURS,
)
from ferrytrips._time import calculate_duration, calculate_time_delta, local_datetime
from ferrytrips.exceptions import FeatureExtractionError
from ferrytrips.models.model_params import ModelType
from ferrytrips.models.trip import Trip

TIME_FEATURE_KEYS: tuple[str, ...] = tuple(f"time_center_{i}" for i in range(len(TIME_CENTER_HOURS)))

AT_DOCK_FEATURE_KEYS: tuple[str, ...] = (
    *TIME_FEATURE_KEYS,
    "is_weekend",
    "prev_trip_delay_minutes",
    "prev_at_sea_duration_minutes",
    "slack_before_departure_minutes",
)

AT_SEA_FEATURE_KEYS: tuple[str, ...] = (
    *AT_DOCK_FEATURE_KEYS,
    "at_dock_duration_minutes",
    "trip_delay_minutes",
)


def canonical_feature_keys(model_type: ModelType) -> tuple[str, ...]:
    return AT_SEA_FEATURE_KEYS if model_type.is_departure_class else AT_DOCK_FEATURE_KEYS


def _circular_hour_distance(hour: float, center: float) -> float:
    distance = abs(hour - center)
    return min(distance, 24.0 - distance)


def time_of_day_features(epoch_ms: int, tz: tzinfo | None = None) -> dict[str, float]:
    """Encode local time of day as Gaussian radial-basis activations.

    Distances wrap around midnight, so 23:30 is close to the 02:00 center.
    Activations below ``1e-6`` are flushed to zero.
    """
    local = local_datetime(epoch_ms, tz)
    hour = local.hour + local.minute / 60.0
    features: dict[str, float] = {}
    for key, center in zip(TIME_FEATURE_KEYS, TIME_CENTER_HOURS, strict=True):
        distance = _circular_hour_distance(hour, center)
        weight = math.exp(-(distance * distance) / (2 * TIME_CENTER_SIGMA_HOURS * TIME_CENTER_SIGMA_HOURS))
        features[key] = 0.0 if weight < RBF_EPSILON else weight
    return features


def is_weekend(epoch_ms: int, tz: tzinfo | None = None) -> float:
    return 1.0 if local_datetime(epoch_ms, tz).weekday() >= 5 else 0.0


def _require(value: int | str | None, name: str) -> None:
    if value is None or value == "":
        raise FeatureExtractionError(f"missing {name}")


def extract_features(trip: Trip, model_type: ModelType, tz: tzinfo | None = None) -> dict[str, float]:
    """Build the named feature map a *model_type* model is evaluated on.

    Raises
    ------
    FeatureExtractionError
        The trip lacks previous-leg context or timing the features need.
    """
    if not trip.in_service:
        raise FeatureExtractionError("vessel not in service")
    trip_start = trip.trip_start
    scheduled = trip.scheduled_departure
    if trip_start is None:
        raise FeatureExtractionError("missing trip start")
    _require(trip.arriving_terminal, "arriving terminal")
    _require(trip.prev_terminal, "previous terminal")
    if scheduled is None:
        raise FeatureExtractionError("missing scheduled departure")
    _require(trip.prev_scheduled_departure, "previous scheduled departure")
    _require(trip.prev_left_dock, "previous left dock")

    features = time_of_day_features(scheduled, tz)
    features["is_weekend"] = is_weekend(scheduled, tz)
    prev_delay = calculate_time_delta(trip.prev_scheduled_departure, trip.prev_left_dock)
    features["prev_trip_delay_minutes"] = prev_delay or 0.0
    features["prev_at_sea_duration_minutes"] = calculate_duration(trip.prev_left_dock, trip_start) or 0.0
    features["slack_before_departure_minutes"] = (scheduled - trip_start) / MS_PER_MINUTE

    if model_type.is_departure_class:
        _require(trip.left_dock, "left dock")
        at_dock = trip.at_dock_duration
        if at_dock is None:
            at_dock = calculate_duration(trip.trip_start, trip.left_dock)
        delay = trip.trip_delay
        if delay is None:
            delay = calculate_time_delta(trip.scheduled_departure, trip.left_dock)
        features["at_dock_duration_minutes"] = at_dock or 0.0
        features["trip_delay_minutes"] = delay or 0.0

    return features


def feature_vector(features: Mapping[str, float], keys: Sequence[str]) -> list[float]:
    """Order *features* by *keys*; every key must be present."""
    missing = [key for key in keys if key not in features]
    if missing:
        raise FeatureExtractionError(f"missing features: {', '.join(missing)}")
    return [float(features[key]) for key in keys]
