"""WSF vessel-locations feed client."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping
from typing import Any

import aiohttp
from pydantic import ValidationError

from ferrytrips._constants import USER_AGENT
from ferrytrips.config import FerryTripsConfig
from ferrytrips.exceptions import FeedError
from ferrytrips.ingestion.normalize import prune_row, safe_str
from ferrytrips.models.telemetry import TelemetrySample, latest_per_vessel

_logger = logging.getLogger(__name__)

VESSEL_LOCATIONS_ENDPOINT = "/vessellocations"


def parse_vessel_location(
    row: Mapping[str, Any],
    abbreviations: Mapping[str, str] | None = None,
) -> TelemetrySample | None:
    """Convert one feed row to a sample; malformed rows yield ``None``.

    The feed identifies vessels by name.  *abbreviations* maps names to the
    short vessel ids used in trip keys; unmapped names are used as-is.
    """
    cleaned = prune_row(dict(row))
    name = safe_str(cleaned.get("VesselName"))
    vessel_id = safe_str(cleaned.get("VesselAbbrev"))
    if name is not None and abbreviations:
        vessel_id = abbreviations.get(name, vessel_id)
    if vessel_id is not None:
        cleaned["vessel_id"] = vessel_id
    try:
        return TelemetrySample.model_validate(cleaned)
    except ValidationError:
        _logger.debug("Skipping malformed vessel location row for %s", name, exc_info=True)
        return None


def parse_vessel_locations(
    rows: Iterable[Mapping[str, Any]],
    abbreviations: Mapping[str, str] | None = None,
) -> list[TelemetrySample]:
    """Parse a feed batch, keeping the newest valid sample per vessel."""
    samples = [
        sample
        for row in rows
        if isinstance(row, Mapping) and (sample := parse_vessel_location(row, abbreviations)) is not None
    ]
    return latest_per_vessel(samples)


class WsfVesselFeed:
    """Fetches the fleet's current positions as :class:`TelemetrySample` values."""

    def __init__(
        self,
        config: FerryTripsConfig,
        http_session: aiohttp.ClientSession,
        *,
        abbreviations: Mapping[str, str] | None = None,
    ) -> None:
        self._config = config
        self._http = http_session
        self._abbreviations = dict(abbreviations or {})

    async def _get_json(self, endpoint: str) -> Any:
        url = f"{self._config.feed_base_url.rstrip('/')}{endpoint}"
        params = {"apiaccesscode": self._config.api_access_code} if self._config.api_access_code else None
        headers = {"accept": "application/json", "user-agent": USER_AGENT}

        _logger.debug("GET %s", url)

        try:
            async with self._http.get(
                url,
                params=params,
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=self._config.feed_timeout),
            ) as resp:
                text = await resp.text()
                if resp.status != 200:
                    raise FeedError(
                        f"HTTP {resp.status} from {endpoint}: {text[:200]}",
                        status_code=resp.status,
                        endpoint=endpoint,
                    )
        except FeedError:
            raise
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise FeedError(
                f"Request to {endpoint} failed: {exc}",
                endpoint=endpoint,
            ) from exc

        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise FeedError(
                f"Invalid JSON from {endpoint}: {text[:200]}",
                endpoint=endpoint,
            ) from exc

    async def fetch_locations(self) -> list[TelemetrySample]:
        """Fetch and parse the vessel-locations batch.

        Raises
        ------
        FeedError
            Network failure, non-200 status, or a body that is not a JSON list.
        """
        body = await self._get_json(VESSEL_LOCATIONS_ENDPOINT)
        if not isinstance(body, list):
            raise FeedError(
                f"Expected a list from {VESSEL_LOCATIONS_ENDPOINT}, got {type(body).__name__}",
                endpoint=VESSEL_LOCATIONS_ENDPOINT,
            )
        samples = parse_vessel_locations(body, self._abbreviations)
        _logger.debug("Parsed %d of %d vessel location rows", len(samples), len(body))
        return samples
