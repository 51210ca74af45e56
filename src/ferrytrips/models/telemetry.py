"""Per-tick vessel telemetry sample."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from pydantic import AliasChoices, Field, field_validator

from ferrytrips.ingestion.normalize import safe_bool
from ferrytrips.models._base import EpochMs, FerryBaseModel, OptionalEpochMs


class TelemetrySample(FerryBaseModel):
    """One vessel position report.

    Accepts both snake_case field names and the WSF ``vessellocations``
    PascalCase keys.  Every field except the vessel id and the sample
    timestamp may be missing, even when a previous sample carried it.
    """

    vessel_id: str = Field(
        validation_alias=AliasChoices("vessel_id", "vesselId", "VesselAbbrev", "VesselName"),
    )
    departing_terminal: str | None = Field(
        default=None,
        validation_alias=AliasChoices("departing_terminal", "departingTerminal", "DepartingTerminalAbbrev"),
    )
    arriving_terminal: str | None = Field(
        default=None,
        validation_alias=AliasChoices("arriving_terminal", "arrivingTerminal", "ArrivingTerminalAbbrev"),
    )
    latitude: float | None = Field(default=None, validation_alias=AliasChoices("latitude", "Latitude"))
    longitude: float | None = Field(default=None, validation_alias=AliasChoices("longitude", "Longitude"))
    at_dock: bool = Field(default=False, validation_alias=AliasChoices("at_dock", "atDock", "AtDock"))
    in_service: bool = Field(default=True, validation_alias=AliasChoices("in_service", "inService", "InService"))
    scheduled_departure: OptionalEpochMs = Field(
        default=None,
        validation_alias=AliasChoices("scheduled_departure", "scheduledDeparture", "ScheduledDeparture"),
    )
    eta: OptionalEpochMs = Field(default=None, validation_alias=AliasChoices("eta", "Eta"))
    left_dock: OptionalEpochMs = Field(
        default=None,
        validation_alias=AliasChoices("left_dock", "leftDock", "LeftDock"),
    )
    timestamp: EpochMs = Field(validation_alias=AliasChoices("timestamp", "TimeStamp"))
    """When the feed observed this position (epoch ms)."""

    @field_validator("vessel_id")
    @classmethod
    def _normalize_vessel_id(cls, value: str) -> str:
        vessel_id = value.strip()
        if not vessel_id:
            raise ValueError("vessel_id must be non-empty")
        return vessel_id

    @field_validator("at_dock", "in_service", mode="before")
    @classmethod
    def _coerce_flag(cls, value: Any) -> Any:
        # Some feed mirrors send "true"/"false" or 0/1.
        flag = safe_bool(value)
        return value if flag is None else flag

    @field_validator("departing_terminal", "arriving_terminal")
    @classmethod
    def _normalize_terminal(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip().upper() or None


def latest_per_vessel(samples: Iterable[TelemetrySample]) -> list[TelemetrySample]:
    """Keep the newest sample per vessel; on equal timestamps the later one wins."""
    latest: dict[str, TelemetrySample] = {}
    for sample in samples:
        current = latest.get(sample.vessel_id)
        if current is None or sample.timestamp >= current.timestamp:
            latest[sample.vessel_id] = sample
    return list(latest.values())
