"""Constants shared across the ferrytrips package."""

from __future__ import annotations

DEFAULT_FEED_BASE_URL = "https://www.wsdot.wa.gov/ferries/api/vessels/rest"
"""WSF vessels REST API base URL."""

DEFAULT_TIME_ZONE = "America/Los_Angeles"
"""Zone used for sailing days, trip keys and time-of-day features."""

SAILING_DAY_CUTOVER_HOUR = 3
"""Local hour before which a departure belongs to the previous sailing day."""

USER_AGENT = "ferrytrips/0.1 (+aiohttp)"

MS_PER_SECOND = 1000
MS_PER_MINUTE = 60_000

# Radial-basis encoding of time of day: one center every three hours.
TIME_CENTER_HOURS: tuple[float, ...] = (2.0, 5.0, 8.0, 11.0, 14.0, 17.0, 20.0, 23.0)
TIME_CENTER_SPACING_HOURS = 24.0 / len(TIME_CENTER_HOURS)
TIME_CENTER_SIGMA_HOURS = TIME_CENTER_SPACING_HOURS / 2.0
RBF_EPSILON = 1e-6

ARRIVAL_MIN_GAP_MINUTES = 2.0
"""Shortest plausible crossing; arrival estimates never land closer than this to their reference."""

DEPARTURE_MIN_GAP_MINUTES = 0.0
