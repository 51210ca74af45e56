from __future__ import annotations

import math
from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from ferrytrips.estimates.features import (
    AT_DOCK_FEATURE_KEYS,
    AT_SEA_FEATURE_KEYS,
    canonical_feature_keys,
    extract_features,
    feature_vector,
    is_weekend,
    time_of_day_features,
)
from ferrytrips.estimates.linear import apply_linear_model
from ferrytrips.exceptions import FeatureExtractionError
from ferrytrips.models.model_params import ModelType
from ferrytrips.models.trip import Trip

PACIFIC = ZoneInfo("America/Los_Angeles")


def _ms(hour: int, minute: int = 0, day: int = 13) -> int:
    return int(datetime(2026, 10, day, hour, minute, tzinfo=PACIFIC).timestamp() * 1000)


def _trip(**overrides: object) -> Trip:
    values: dict[str, object] = {
        "vessel_id": "TAC",
        "departing_terminal": "P52",
        "arriving_terminal": "BBI",
        "at_dock": True,
        "trip_start": _ms(10),
        "scheduled_departure": _ms(10, 30),
        "prev_terminal": "BBI",
        "prev_scheduled_departure": _ms(9, 25),
        "prev_left_dock": _ms(9, 28),
        "timestamp": _ms(10),
    }
    values.update(overrides)
    return Trip.model_validate(values)


class TestLinearModel:
    def test_weighted_sum_plus_intercept(self) -> None:
        assert apply_linear_model([1, 0, 5, 30], [0.5, 0.3, 0, 0.2], 10) == pytest.approx(16.5)

    def test_length_mismatch_rejected(self) -> None:
        with pytest.raises(ValueError):
            apply_linear_model([1, 2], [0.5], 0.0)


class TestTimeFeatures:
    def test_peak_at_matching_center(self) -> None:
        features = time_of_day_features(_ms(14))
        assert features["time_center_4"] == pytest.approx(1.0)
        assert features["time_center_3"] == pytest.approx(math.exp(-9 / (2 * 1.5 * 1.5)))
        assert features["time_center_5"] == pytest.approx(features["time_center_3"])

    def test_distance_wraps_around_midnight(self) -> None:
        features = time_of_day_features(_ms(0, 30, day=14))
        # 00:30 is 1.5h from the 23:00 center and 1.5h from the 02:00 center.
        assert features["time_center_7"] == pytest.approx(features["time_center_0"])
        assert features["time_center_7"] > 0.5

    def test_far_centers_flushed_to_zero(self) -> None:
        features = time_of_day_features(_ms(14))
        assert features["time_center_0"] == 0.0
        assert len(features) == 8

    def test_weekend_uses_local_day(self) -> None:
        assert is_weekend(_ms(10, day=17)) == 1.0
        assert is_weekend(_ms(10, day=13)) == 0.0
        # Friday 23:30 Pacific is already Saturday in UTC.
        assert is_weekend(_ms(23, 30, day=16)) == 0.0


class TestExtractFeatures:
    def test_at_dock_features(self) -> None:
        features = extract_features(_trip(), ModelType.AT_DOCK_DEPART_CURR)
        assert set(features) == set(AT_DOCK_FEATURE_KEYS)
        assert features["prev_trip_delay_minutes"] == 3.0
        assert features["prev_at_sea_duration_minutes"] == 32.0
        assert features["slack_before_departure_minutes"] == 30.0
        assert features["is_weekend"] == 0.0

    def test_at_sea_features_add_departure_timing(self) -> None:
        trip = _trip(left_dock=_ms(10, 34), at_dock_duration=34.0, trip_delay=4.0)
        features = extract_features(trip, ModelType.AT_SEA_ARRIVE_NEXT)
        assert set(features) == set(AT_SEA_FEATURE_KEYS)
        assert features["at_dock_duration_minutes"] == 34.0
        assert features["trip_delay_minutes"] == 4.0

    def test_at_sea_features_require_left_dock(self) -> None:
        with pytest.raises(FeatureExtractionError, match="left dock"):
            extract_features(_trip(), ModelType.AT_SEA_DEPART_NEXT)

    @pytest.mark.parametrize(
        ("field", "message"),
        [
            ("trip_start", "trip start"),
            ("arriving_terminal", "arriving terminal"),
            ("prev_terminal", "previous terminal"),
            ("scheduled_departure", "scheduled departure"),
            ("prev_scheduled_departure", "previous scheduled departure"),
            ("prev_left_dock", "previous left dock"),
        ],
    )
    def test_missing_context_rejected(self, field: str, message: str) -> None:
        with pytest.raises(FeatureExtractionError, match=message):
            extract_features(_trip(**{field: None}), ModelType.AT_DOCK_DEPART_CURR)

    def test_out_of_service_rejected(self) -> None:
        with pytest.raises(FeatureExtractionError):
            extract_features(_trip(in_service=False), ModelType.AT_DOCK_DEPART_CURR)


class TestFeatureVector:
    def test_canonical_order(self) -> None:
        assert canonical_feature_keys(ModelType.AT_DOCK_ARRIVE_NEXT) == AT_DOCK_FEATURE_KEYS
        assert canonical_feature_keys(ModelType.AT_SEA_DEPART_NEXT) == AT_SEA_FEATURE_KEYS
        assert AT_DOCK_FEATURE_KEYS[:8] == tuple(f"time_center_{i}" for i in range(8))

    def test_vector_follows_requested_keys(self) -> None:
        assert feature_vector({"a": 1.0, "b": 2.0}, ["b", "a"]) == [2.0, 1.0]

    def test_unknown_key_rejected(self) -> None:
        with pytest.raises(FeatureExtractionError, match="missing features: c"):
            feature_vector({"a": 1.0}, ["a", "c"])
