"""Schedule snapshots returned by the schedule lookup collaborator."""

from __future__ import annotations

from ferrytrips.models._base import FerryBaseModel, OptionalEpochMs


class ScheduleSnapshot(FerryBaseModel):
    """Identity and timing of one scheduled sailing, as attached to a trip."""

    key: str | None = None
    """Composite trip key of the scheduled sailing."""
    departing_terminal: str | None = None
    arriving_terminal: str | None = None
    route_id: int | None = None
    route_abbrev: str | None = None
    sailing_day: str | None = None
    departing_time: OptionalEpochMs = None
    next_departing_time: OptionalEpochMs = None
    """Scheduled departure of the vessel's following sailing (anchor for depart-next estimates)."""
    direct: bool = True
    """Indirect (multi-stop) sailings are never attached to a trip."""


class ArrivalLookup(FerryBaseModel):
    """Result of inferring the arriving terminal from the schedule."""

    arriving_terminal: str
    snapshot: ScheduleSnapshot | None = None
