"""Estimate computation and grading."""

from ferrytrips.estimates.actualize import Actualization, actualize_estimate, actualize_trip
from ferrytrips.estimates.engine import EstimateEngine, EstimateOutcome, EstimateSkipped, build_estimate
from ferrytrips.estimates.linear import apply_linear_model
from ferrytrips.estimates.slots import SLOT_SPECS, SlotSpec

__all__ = [
    "SLOT_SPECS",
    "Actualization",
    "EstimateEngine",
    "EstimateOutcome",
    "EstimateSkipped",
    "SlotSpec",
    "actualize_estimate",
    "actualize_trip",
    "apply_linear_model",
    "build_estimate",
]
