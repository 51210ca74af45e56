"""Normalization helpers.

Centralizes defensive parsing and placeholder handling for feed payloads.
"""

from __future__ import annotations

import math
import re
from datetime import datetime
from typing import Any

from ferrytrips._time import to_epoch_ms

# WSF serializes instants as "/Date(1700000000000-0800)/"; the offset is informational.
_WSF_DATE_RE = re.compile(r"^/Date\((-?\d+)(?:[+-]\d{4})?\)/$")


def safe_float(value: Any) -> float | None:
    if value is None or value == "" or value == "--":
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result):
        return None
    return result


def safe_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text if text else None


def safe_bool(value: Any, default: bool | None = None) -> bool | None:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    text = safe_str(value)
    if text is None:
        return default
    lowered = text.lower()
    if lowered in {"1", "true", "yes", "y"}:
        return True
    if lowered in {"0", "false", "no", "n"}:
        return False
    return default


def normalize_epoch_ms(value: Any) -> int | None:
    """Normalize feed timestamps to epoch milliseconds.

    - Empty/missing -> None
    - ``/Date(ms-0800)/`` strings -> the embedded milliseconds
    - ISO-8601 strings and datetimes -> converted (naive means UTC)
    - Numbers are taken as milliseconds already
    - <= 0 -> None
    """

    if value is None or value == "" or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return to_epoch_ms(value)
    if isinstance(value, str):
        text = value.strip()
        match = _WSF_DATE_RE.match(text)
        if match:
            value = int(match.group(1))
        else:
            try:
                return to_epoch_ms(datetime.fromisoformat(text))
            except ValueError:
                pass
    ts = safe_float(value)
    if ts is None or ts <= 0:
        return None
    return int(ts)


def is_meaningful(value: Any) -> bool:
    """Return True if a feed value carries information.

    Feed rows use empty strings and ``"--"`` for unknown values; those are
    treated exactly like an absent key so model defaults apply.
    """

    if value is None:
        return False
    if isinstance(value, str) and value.strip() in {"", "--"}:
        return False
    if value == {}:
        return False
    return bool(value != [])


def prune_row(data: dict[str, Any]) -> dict[str, Any]:
    """Drop non-meaningful top-level values from a feed row."""

    return {key: value for key, value in data.items() if is_meaningful(value)}
