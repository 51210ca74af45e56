"""Estimate engine.

Computes the estimate slots a lifecycle event makes due.  Computation is
event-driven and idempotent: a slot is attempted only on its trigger
event and only while it is empty, so a failed attempt simply leaves the
slot empty until its next trigger.  Nothing here raises; problems come
back as :class:`EstimateSkipped` values.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Collection, Mapping, Sequence
from datetime import tzinfo

from ferrytrips._io import bounded_call
from ferrytrips._time import minutes_to_ms, round_half_up, round_to_second
from ferrytrips.config import FerryTripsConfig
from ferrytrips.estimates.features import canonical_feature_keys, extract_features, feature_vector
from ferrytrips.estimates.linear import apply_linear_model
from ferrytrips.estimates.slots import SLOT_SPECS, SlotSpec
from ferrytrips.exceptions import FeatureExtractionError
from ferrytrips.lifecycle.events import LifecycleEvent
from ferrytrips.models.model_params import ModelParameters, ModelType
from ferrytrips.models.trip import Estimate, SlotName, Trip
from ferrytrips.stores import ModelStore

_logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class EstimateSkipped:
    """A due slot that could not be computed this time."""

    slot: SlotName
    reason: str
    skipped: bool = True


EstimateOutcome = Estimate | EstimateSkipped


def accepted_estimates(outcomes: Mapping[SlotName, EstimateOutcome]) -> dict[SlotName, Estimate]:
    return {slot: outcome for slot, outcome in outcomes.items() if isinstance(outcome, Estimate)}


def build_estimate(
    spec: SlotSpec,
    trip: Trip,
    params: ModelParameters,
    *,
    min_gap_minutes: float = 0.0,
    tz: tzinfo | None = None,
) -> Estimate:
    """Evaluate *params* for *trip* and convert the result to an absolute estimate.

    The model predicts minutes after the slot's anchor time.  The result is
    clamped to at least *min_gap_minutes* after the slot's reference time,
    rounded to the second, and banded by the model's spread.

    Raises
    ------
    FeatureExtractionError
        The anchor time or a model feature is unavailable.
    ValueError
        The model's coefficients do not match its feature layout.
    """
    anchor = spec.anchor(trip)
    if anchor is None:
        raise FeatureExtractionError(f"missing anchor time for {spec.slot}")

    features = extract_features(trip, params.model_type, tz)
    keys = params.feature_keys or canonical_feature_keys(params.model_type)
    minutes = round_half_up(
        apply_linear_model(feature_vector(features, keys), params.coefficients, params.intercept)
    )

    predicted = anchor + minutes_to_ms(minutes)
    reference = spec.reference(trip)
    if reference is not None:
        predicted = max(predicted, reference + minutes_to_ms(min_gap_minutes))

    std_dev = round_half_up(params.training_metrics.spread)
    return Estimate(
        predicted=round_to_second(predicted),
        min_time=round_to_second(predicted - minutes_to_ms(std_dev)),
        max_time=round_to_second(predicted + minutes_to_ms(std_dev)),
        mae=round_half_up(params.training_metrics.mae),
        std_dev=std_dev,
    )


class EstimateEngine:
    """Computes due estimate slots from models in a :class:`ModelStore`."""

    def __init__(self, model_store: ModelStore, *, config: FerryTripsConfig | None = None) -> None:
        self._models = model_store
        self._config = config or FerryTripsConfig()

    def due_specs(self, trip: Trip, fired: Collection[LifecycleEvent]) -> tuple[SlotSpec, ...]:
        """Slots whose trigger fired and which are still empty."""
        due: list[SlotSpec] = []
        for spec in SLOT_SPECS:
            if spec.trigger not in fired or trip.estimate(spec.slot) is not None:
                continue
            # Docking seen only after departure: the at-dock leg is already over.
            if spec.is_arrival_class and trip.left_dock is not None:
                continue
            due.append(spec)
        return tuple(due)

    def _min_gap(self, spec: SlotSpec) -> float:
        if spec.predicts_arrival:
            return self._config.arrival_min_gap_minutes
        return self._config.departure_min_gap_minutes

    def _context_problem(self, spec: SlotSpec, trip: Trip) -> str | None:
        if spec.requires_left_dock and trip.left_dock is None:
            return "vessel has not left dock"
        if spec.anchor(trip) is None:
            return f"missing anchor time for {spec.slot}"
        try:
            extract_features(trip, spec.model_type, self._config.zone)
        except FeatureExtractionError as exc:
            return str(exc)
        return None

    def _skip(self, trip: Trip, slot: SlotName, reason: str) -> EstimateSkipped:
        if self._config.log_skipped_estimates:
            _logger.debug("Skipped %s for %s: %s", slot, trip.key or trip.vessel_id, reason)
        return EstimateSkipped(slot=slot, reason=reason)

    async def _load_models(
        self,
        departing_terminal: str,
        arriving_terminal: str,
        model_types: Sequence[ModelType],
    ) -> dict[ModelType, ModelParameters] | None:
        """Fetch every model needed for one route in one call; ``None`` on failure."""
        loaded = await bounded_call(
            self._models.load_models(departing_terminal, arriving_terminal, model_types),
            timeout=self._config.io_timeout,
            operation="Model load",
            subject=f"{departing_terminal}-{arriving_terminal}",
        )
        return None if loaded is None else dict(loaded)

    async def compute(
        self,
        trip: Trip,
        fired: Collection[LifecycleEvent],
    ) -> dict[SlotName, EstimateOutcome]:
        """Compute every slot *fired* makes due on *trip*.

        Returns an outcome per attempted slot: an :class:`Estimate`, or an
        :class:`EstimateSkipped` with the reason.  Slots that were not due
        are absent.
        """
        outcomes: dict[SlotName, EstimateOutcome] = {}
        ready: list[SlotSpec] = []
        for spec in self.due_specs(trip, fired):
            problem = self._context_problem(spec, trip)
            if problem is not None:
                outcomes[spec.slot] = self._skip(trip, spec.slot, problem)
            else:
                ready.append(spec)
        # Every ready slot has passed the arriving-terminal check.
        if not ready or trip.arriving_terminal is None:
            return outcomes

        models = await self._load_models(
            trip.departing_terminal,
            trip.arriving_terminal,
            [spec.model_type for spec in ready],
        )
        for spec in ready:
            if models is None:
                outcomes[spec.slot] = self._skip(trip, spec.slot, "model load failed")
                continue
            params = models.get(spec.model_type)
            if params is None:
                outcomes[spec.slot] = self._skip(
                    trip,
                    spec.slot,
                    f"no {spec.model_type} model for {trip.departing_terminal}-{trip.arriving_terminal}",
                )
                continue
            try:
                outcomes[spec.slot] = build_estimate(
                    spec,
                    trip,
                    params,
                    min_gap_minutes=self._min_gap(spec),
                    tz=self._config.zone,
                )
            except (FeatureExtractionError, ValueError) as exc:
                outcomes[spec.slot] = self._skip(trip, spec.slot, str(exc))
        return outcomes
