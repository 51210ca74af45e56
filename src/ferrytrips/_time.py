"""Epoch-millisecond arithmetic and local-time helpers.

Every timestamp handled by the lifecycle engine is an ``int`` of epoch
milliseconds.  Local calendar values (sailing day, trip key, time-of-day
features) are derived in the service time zone, Pacific by default.
"""

from __future__ import annotations

import functools
import math
from datetime import UTC, datetime, timedelta, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ferrytrips._constants import (
    DEFAULT_TIME_ZONE,
    MS_PER_MINUTE,
    MS_PER_SECOND,
    SAILING_DAY_CUTOVER_HOUR,
)
from ferrytrips.exceptions import ConfigError


@functools.lru_cache(maxsize=8)
def get_zone(name: str = DEFAULT_TIME_ZONE) -> ZoneInfo:
    """Resolve an IANA zone name, raising :class:`ConfigError` when unknown."""
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ConfigError(f"Unknown time zone: {name!r}") from exc


def to_epoch_ms(value: datetime) -> int:
    """Convert an aware (or UTC-naive) datetime to epoch milliseconds."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return int(round(value.timestamp() * MS_PER_SECOND))


def local_datetime(epoch_ms: int, tz: tzinfo | None = None) -> datetime:
    """Return *epoch_ms* as an aware datetime in *tz* (service zone by default)."""
    return datetime.fromtimestamp(epoch_ms / MS_PER_SECOND, tz=tz or get_zone())


def round_half_up(value: float, digits: int = 1) -> float:
    """Round halves towards positive infinity (``2.25 -> 2.3``, ``-2.25 -> -2.2``)."""
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


def calculate_time_delta(start: int | None, end: int | None) -> float | None:
    """Minutes from *start* to *end*, one decimal; ``None`` unless both are known."""
    if start is None or end is None:
        return None
    return round_half_up((end - start) / MS_PER_MINUTE)


def calculate_duration(start: int | None, end: int | None) -> float | None:
    """Like :func:`calculate_time_delta`, but ``None`` when *end* precedes *start*.

    Durations spanning a gap in telemetry can have their endpoints observed
    out of order; such a duration is unknown rather than negative.
    """
    delta = calculate_time_delta(start, end)
    if delta is None or delta < 0:
        return None
    return delta


def floor_to_second(epoch_ms: float) -> int:
    return int(math.floor(epoch_ms / MS_PER_SECOND)) * MS_PER_SECOND


def round_to_second(epoch_ms: float) -> int:
    return int(math.floor(epoch_ms / MS_PER_SECOND + 0.5)) * MS_PER_SECOND


def minutes_to_ms(minutes: float) -> float:
    return minutes * MS_PER_MINUTE


def sailing_day(
    epoch_ms: int | None,
    tz: tzinfo | None = None,
    *,
    cutover_hour: int = SAILING_DAY_CUTOVER_HOUR,
) -> str:
    """Return the ``YYYY-MM-DD`` sailing day containing *epoch_ms*.

    Ferry service days run past midnight: anything before *cutover_hour*
    local time belongs to the previous calendar day.  Unknown input maps
    to an empty string.
    """
    if epoch_ms is None:
        return ""
    local = local_datetime(epoch_ms, tz)
    if local.hour < cutover_hour:
        local -= timedelta(days=1)
    return local.strftime("%Y-%m-%d")
