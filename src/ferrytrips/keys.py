"""Composite trip keys."""

from __future__ import annotations

from datetime import tzinfo

from ferrytrips._time import local_datetime


def generate_trip_key(
    vessel_id: str | None,
    departing_terminal: str | None,
    arriving_terminal: str | None,
    scheduled_departure: int | None,
    tz: tzinfo | None = None,
) -> str | None:
    """Build the ``vessel--date--HH:MM--dep-arr`` key for one scheduled leg.

    Date and time are the local wall clock of the scheduled departure.
    The key is undefined (``None``) without a vessel, a departing terminal
    or a scheduled departure; an unknown arriving terminal renders empty so
    the key can be derived before the destination is known.
    """
    if not vessel_id or not departing_terminal or scheduled_departure is None:
        return None
    local = local_datetime(scheduled_departure, tz)
    return (
        f"{vessel_id}--{local.strftime('%Y-%m-%d')}--{local.strftime('%H:%M')}"
        f"--{departing_terminal}-{arriving_terminal or ''}"
    )
