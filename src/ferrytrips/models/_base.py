"""Base model and annotated types for ferrytrips records.

Every record inherits from :class:`FerryBaseModel` which provides:

* ``frozen=True`` so lifecycle values can only change through
  ``model_copy(update=...)`` and compare by value.
* ``alias_generator=to_camel`` so camelCase store documents map
  automatically to snake_case fields.
* A ``model_validator(mode="before")`` that drops feed placeholders
  (``""``, ``"--"``) so the field default is used.
"""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, model_validator
from pydantic.alias_generators import to_camel

from ferrytrips.ingestion.normalize import normalize_epoch_ms, prune_row

EpochMs = Annotated[int, BeforeValidator(normalize_epoch_ms)]
"""Epoch milliseconds; accepts millisecond numbers, datetimes, ISO and ``/Date(..)/`` strings."""

OptionalEpochMs = Annotated[int | None, BeforeValidator(normalize_epoch_ms)]


class FerryBaseModel(BaseModel):
    """Base for telemetry, trip and model-store records."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    @model_validator(mode="before")
    @classmethod
    def _drop_placeholders(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        return prune_row(values)
