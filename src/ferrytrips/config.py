"""Engine configuration for ferrytrips."""

from __future__ import annotations

import dataclasses
import os
from datetime import tzinfo
from typing import Any

from ferrytrips._constants import (
    ARRIVAL_MIN_GAP_MINUTES,
    DEFAULT_FEED_BASE_URL,
    DEFAULT_TIME_ZONE,
    DEPARTURE_MIN_GAP_MINUTES,
    SAILING_DAY_CUTOVER_HOUR,
)
from ferrytrips._time import get_zone
from ferrytrips.exceptions import ConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_number(env_key: str, value: str, cast: type[int] | type[float]) -> int | float:
    try:
        return cast(value)
    except ValueError as exc:
        raise ConfigError(f"{env_key} must be a number, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class FerryTripsConfig:
    """Engine configuration.

    Parameters
    ----------
    feed_base_url : str
        WSF vessels REST base URL used by :class:`~ferrytrips.ingestion.wsf.WsfVesselFeed`.
    api_access_code : str or None
        WSF API access code appended to feed requests.
    feed_timeout : float
        Total seconds allowed for one feed request.
    io_timeout : float
        Seconds allowed for each collaborator call (schedule lookup, model
        batch load, completed-trip read).  A timeout is treated as a miss.
    max_concurrency : int
        Vessel pipelines allowed in flight at once within a tick.
    time_zone : str
        IANA zone for sailing days, trip keys and time-of-day features.
    sailing_day_cutover_hour : int
        Local hour before which a departure belongs to the previous sailing day.
    arrival_min_gap_minutes : float
        Arrival estimates are clamped to at least this many minutes after
        their reference time.
    departure_min_gap_minutes : float
        Same clamp for departure estimates.
    log_skipped_estimates : bool
        Log each skipped estimate at debug level with its reason.
    """

    feed_base_url: str = DEFAULT_FEED_BASE_URL
    api_access_code: str | None = None
    feed_timeout: float = 10.0
    io_timeout: float = 5.0
    max_concurrency: int = 8
    time_zone: str = DEFAULT_TIME_ZONE
    sailing_day_cutover_hour: int = SAILING_DAY_CUTOVER_HOUR
    arrival_min_gap_minutes: float = ARRIVAL_MIN_GAP_MINUTES
    departure_min_gap_minutes: float = DEPARTURE_MIN_GAP_MINUTES
    log_skipped_estimates: bool = True

    def __post_init__(self) -> None:
        if self.max_concurrency < 1:
            raise ConfigError("max_concurrency must be at least 1")
        if self.io_timeout <= 0 or self.feed_timeout <= 0:
            raise ConfigError("timeouts must be positive")
        if not 0 <= self.sailing_day_cutover_hour < 24:
            raise ConfigError("sailing_day_cutover_hour must be within 0-23")
        # Fail at construction rather than on the first tick.
        get_zone(self.time_zone)

    @property
    def zone(self) -> tzinfo:
        return get_zone(self.time_zone)

    @classmethod
    def from_env(cls, **overrides: Any) -> FerryTripsConfig:
        """Create configuration from environment variables.

        Reads optional ``FERRYTRIPS_*`` variables.  Explicit keyword
        arguments override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        FerryTripsConfig
            Populated configuration.

        Raises
        ------
        ConfigError
            A numeric variable could not be parsed.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "FERRYTRIPS_FEED_BASE_URL": "feed_base_url",
            "FERRYTRIPS_API_ACCESS_CODE": "api_access_code",
            "FERRYTRIPS_TIME_ZONE": "time_zone",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        _ENV_NUMERIC_MAP: dict[str, tuple[str, type[int] | type[float]]] = {
            "FERRYTRIPS_FEED_TIMEOUT": ("feed_timeout", float),
            "FERRYTRIPS_IO_TIMEOUT": ("io_timeout", float),
            "FERRYTRIPS_MAX_CONCURRENCY": ("max_concurrency", int),
            "FERRYTRIPS_SAILING_DAY_CUTOVER_HOUR": ("sailing_day_cutover_hour", int),
            "FERRYTRIPS_ARRIVAL_MIN_GAP_MINUTES": ("arrival_min_gap_minutes", float),
            "FERRYTRIPS_DEPARTURE_MIN_GAP_MINUTES": ("departure_min_gap_minutes", float),
        }
        for env_key, (field_name, cast) in _ENV_NUMERIC_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = _env_number(env_key, val, cast)

        if "log_skipped_estimates" not in overrides:
            config_kwargs["log_skipped_estimates"] = _env_bool(
                env.get("FERRYTRIPS_LOG_SKIPPED_ESTIMATES"),
                True,
            )

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
