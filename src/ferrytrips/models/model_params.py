"""Trained linear-model parameters as served by the model store."""

from __future__ import annotations

from enum import StrEnum

from pydantic import AliasChoices, Field, field_validator

from ferrytrips.models._base import FerryBaseModel


class ModelType(StrEnum):
    """Model identifiers at the model-store boundary, one per estimate slot."""

    AT_DOCK_DEPART_CURR = "at-dock-depart-curr"
    AT_DOCK_ARRIVE_NEXT = "at-dock-arrive-next"
    AT_DOCK_DEPART_NEXT = "at-dock-depart-next"
    AT_SEA_ARRIVE_NEXT = "at-sea-arrive-next"
    AT_SEA_DEPART_NEXT = "at-sea-depart-next"

    @property
    def is_departure_class(self) -> bool:
        """Models evaluated after the vessel has left dock."""
        return self.value.startswith("at-sea-")


class TrainingMetrics(FerryBaseModel):
    """Test-set metrics recorded when the model was trained (minutes)."""

    mae: float
    rmse: float | None = None
    r2: float | None = None
    std_dev: float | None = Field(default=None, validation_alias=AliasChoices("std_dev", "stdDev"))

    @property
    def spread(self) -> float:
        """Band half-width: the residual std-dev, else RMSE, else MAE."""
        if self.std_dev is not None:
            return self.std_dev
        if self.rmse is not None:
            return self.rmse
        return self.mae


class ModelParameters(FerryBaseModel):
    """Coefficients for one (departing, arriving, model type) bucket."""

    departing_terminal: str
    arriving_terminal: str
    model_type: ModelType
    coefficients: tuple[float, ...]
    intercept: float
    training_metrics: TrainingMetrics = Field(
        validation_alias=AliasChoices("training_metrics", "trainingMetrics", "testMetrics"),
    )
    feature_keys: tuple[str, ...] | None = None
    """Feature order used in training; the canonical order applies when absent."""

    @field_validator("coefficients")
    @classmethod
    def _require_coefficients(cls, value: tuple[float, ...]) -> tuple[float, ...]:
        if not value:
            raise ValueError("coefficients must be non-empty")
        return value

    @property
    def lookup_key(self) -> tuple[str, str, ModelType]:
        return (self.departing_terminal, self.arriving_terminal, self.model_type)
