"""Per-tick orchestration.

One :meth:`TripOrchestrator.run_tick` call reconciles a telemetry batch
against the active trips:

1. read every active trip once (the tick's snapshot);
2. run each vessel's pipeline concurrently: detect events, look up the
   schedule when an event warrants it, build the next trip, grade and
   compute estimates, then decide the write;
3. flush all vessels' writes in one call per kind.

Vessel pipelines share nothing but the snapshot, and a failing vessel
is logged and reported without affecting the others.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from collections.abc import Awaitable, Iterable
from enum import StrEnum

from ferrytrips._io import bounded_call
from ferrytrips.config import FerryTripsConfig
from ferrytrips.estimates.actualize import Actualization, actualize_trip
from ferrytrips.estimates.engine import EstimateEngine, EstimateSkipped, accepted_estimates
from ferrytrips.exceptions import InvariantViolationError
from ferrytrips.lifecycle.builder import build_next, complete_trip
from ferrytrips.lifecycle.diff import needs_write
from ferrytrips.lifecycle.events import LifecycleEvent, TripEvents, detect_trip_events
from ferrytrips.models.prediction import PredictionRecord
from ferrytrips.models.telemetry import TelemetrySample, latest_per_vessel
from ferrytrips.models.trip import Trip
from ferrytrips.schedule import ScheduleEnricher
from ferrytrips.stores import ModelStore, PredictionSink, ScheduleStore, TripStore, TripTransition

_logger = logging.getLogger(__name__)


class TickEvent(StrEnum):
    FIRST_TRIP = "first-trip"
    TRIP_BOUNDARY = "trip-boundary"
    TRIP_UPDATE = "trip-update"


@dataclasses.dataclass(frozen=True)
class VesselTickPlan:
    """Everything one vessel wants written this tick."""

    vessel_id: str
    event: TickEvent
    active_upsert: Trip | None = None
    transition: TripTransition | None = None
    completed_patch: Trip | None = None
    """Archived predecessor with newly graded depart-next estimates."""
    prediction_records: tuple[PredictionRecord, ...] = ()
    skipped_estimates: tuple[EstimateSkipped, ...] = ()

    @property
    def is_noop(self) -> bool:
        return (
            self.active_upsert is None
            and self.transition is None
            and self.completed_patch is None
            and not self.prediction_records
        )


@dataclasses.dataclass
class TickResult:
    plans: dict[str, VesselTickPlan] = dataclasses.field(default_factory=dict)
    failures: dict[str, str] = dataclasses.field(default_factory=dict)
    """Vessel id (or write kind) to error description."""
    ignored: list[str] = dataclasses.field(default_factory=list)
    """Vessels whose sample had no departing terminal."""

    @property
    def upserts(self) -> int:
        return sum(1 for plan in self.plans.values() if plan.active_upsert is not None)

    @property
    def transitions(self) -> int:
        return sum(1 for plan in self.plans.values() if plan.transition is not None)

    @property
    def patches(self) -> int:
        return sum(1 for plan in self.plans.values() if plan.completed_patch is not None)

    @property
    def prediction_records(self) -> int:
        return sum(len(plan.prediction_records) for plan in self.plans.values())


class TripOrchestrator:
    """Drives the lifecycle pipeline for every vessel in a telemetry batch.

    Only one :meth:`run_tick` may be in flight at a time; the caller's
    scheduler is responsible for that.
    """

    def __init__(
        self,
        trip_store: TripStore,
        model_store: ModelStore,
        schedule_store: ScheduleStore,
        prediction_sink: PredictionSink,
        *,
        config: FerryTripsConfig | None = None,
    ) -> None:
        self._config = config or FerryTripsConfig()
        self._trips = trip_store
        self._sink = prediction_sink
        self._engine = EstimateEngine(model_store, config=self._config)
        self._enricher = ScheduleEnricher(schedule_store, config=self._config)

    async def run_tick(self, samples: Iterable[TelemetrySample]) -> TickResult:
        """Reconcile one telemetry batch and write the results."""
        result = TickResult()
        active = {trip.vessel_id: trip for trip in await self._trips.get_all_active()}

        runnable: list[TelemetrySample] = []
        for sample in latest_per_vessel(samples):
            if not sample.departing_terminal:
                _logger.debug("Ignoring %s: no departing terminal", sample.vessel_id)
                result.ignored.append(sample.vessel_id)
            else:
                runnable.append(sample)

        semaphore = asyncio.Semaphore(self._config.max_concurrency)

        async def _guarded(sample: TelemetrySample) -> None:
            async with semaphore:
                try:
                    plan = await self.process_vessel(sample, active.get(sample.vessel_id))
                except InvariantViolationError as exc:
                    _logger.error("Invariant violated for %s: %s", sample.vessel_id, exc)
                    result.failures[sample.vessel_id] = str(exc)
                except Exception as exc:
                    _logger.exception("Pipeline failed for %s", sample.vessel_id)
                    result.failures[sample.vessel_id] = repr(exc)
                else:
                    result.plans[sample.vessel_id] = plan

        await asyncio.gather(*(_guarded(sample) for sample in runnable))
        await self._flush(result)

        _logger.info(
            "Tick: %d vessels, %d upserts, %d completions, %d backfills, %d prediction records, %d failures",
            len(runnable),
            result.upserts,
            result.transitions,
            result.patches,
            result.prediction_records,
            len(result.failures),
        )
        return result

    async def process_vessel(self, sample: TelemetrySample, existing: Trip | None) -> VesselTickPlan:
        """Plan one vessel's writes without performing them."""
        events = detect_trip_events(sample, existing, self._config.zone)
        _logger.debug("Events for %s: %s", sample.vessel_id, events)
        if events.is_boundary and existing is not None:
            return await self._start_next_trip(sample, existing, events)
        return await self._update_trip(sample, existing, events)

    def _build(
        self,
        sample: TelemetrySample,
        existing: Trip | None,
        completed: Trip | None,
        inferred_arriving_terminal: str | None,
    ) -> Trip:
        return build_next(
            sample,
            existing,
            completed,
            inferred_arriving_terminal=inferred_arriving_terminal,
            tz=self._config.zone,
            cutover_hour=self._config.sailing_day_cutover_hour,
        )

    async def _start_next_trip(
        self,
        sample: TelemetrySample,
        existing: Trip,
        events: TripEvents,
    ) -> VesselTickPlan:
        if existing.vessel_id != sample.vessel_id:
            raise InvariantViolationError(
                f"Active trip for {existing.vessel_id} matched sample for {sample.vessel_id}",
                vessel_id=sample.vessel_id,
            )
        graded = actualize_trip(
            complete_trip(existing, sample.timestamp),
            LifecycleEvent.TRIP_END,
            sample.timestamp,
        )
        completed = graded.trip
        records = list(graded.records)

        arrival = await self._enricher.lookup_arrival(sample, existing, events)
        trip = self._build(sample, existing, completed, arrival.arriving_terminal if arrival else None)
        trip = await self._enricher.attach_schedule(trip, events, arrival=arrival)

        fired = events.fired(sample)
        if LifecycleEvent.LEAVE_DOCK in fired:
            # The new leg had already departed, so the trip being archived
            # has its depart-next slots settled now rather than by a later patch.
            backfilled = self._grade_predecessor(trip, completed)
            if backfilled is not None:
                completed = backfilled.trip
                records.extend(backfilled.records)

        outcomes = await self._engine.compute(trip, fired)
        trip = trip.with_estimates(accepted_estimates(outcomes))

        _logger.debug("Completed %s; started %s", completed.key or completed.vessel_id, trip.key or trip.vessel_id)
        return VesselTickPlan(
            vessel_id=sample.vessel_id,
            event=TickEvent.TRIP_BOUNDARY,
            transition=TripTransition(completed=completed, started=trip),
            prediction_records=tuple(records),
            skipped_estimates=tuple(o for o in outcomes.values() if isinstance(o, EstimateSkipped)),
        )

    async def _update_trip(
        self,
        sample: TelemetrySample,
        existing: Trip | None,
        events: TripEvents,
    ) -> VesselTickPlan:
        arrival = await self._enricher.lookup_arrival(sample, existing, events)
        trip = self._build(sample, existing, None, arrival.arriving_terminal if arrival else None)
        trip = await self._enricher.attach_schedule(trip, events, arrival=arrival)

        fired = events.fired(sample)
        records: list[PredictionRecord] = []
        completed_patch: Trip | None = None
        if LifecycleEvent.LEAVE_DOCK in fired:
            graded = actualize_trip(trip, LifecycleEvent.LEAVE_DOCK, trip.left_dock)
            trip = graded.trip
            records.extend(graded.records)
            completed_patch, backfilled = await self._backfill_predecessor(trip)
            records.extend(backfilled)

        outcomes = await self._engine.compute(trip, fired)
        trip = trip.with_estimates(accepted_estimates(outcomes))

        upsert = trip if needs_write(existing, trip) else None
        if upsert is None:
            _logger.debug("No change for %s", sample.vessel_id)
        return VesselTickPlan(
            vessel_id=sample.vessel_id,
            event=TickEvent.FIRST_TRIP if events.is_first_trip else TickEvent.TRIP_UPDATE,
            active_upsert=upsert,
            completed_patch=completed_patch,
            prediction_records=tuple(records),
            skipped_estimates=tuple(o for o in outcomes.values() if isinstance(o, EstimateSkipped)),
        )

    async def _backfill_predecessor(self, trip: Trip) -> tuple[Trip | None, tuple[PredictionRecord, ...]]:
        """Grade the archived predecessor's depart-next estimates with *trip*'s departure."""
        predecessor = await bounded_call(
            self._trips.get_latest_completed(trip.vessel_id),
            timeout=self._config.io_timeout,
            operation="Completed trip lookup",
            subject=trip.vessel_id,
        )
        if predecessor is None:
            return None, ()
        graded = self._grade_predecessor(trip, predecessor)
        if graded is None:
            return None, ()
        return graded.trip, graded.records

    @staticmethod
    def _grade_predecessor(trip: Trip, predecessor: Trip) -> Actualization | None:
        """Grade *predecessor*'s depart-next slots with *trip*'s departure.

        Only the leg that *trip* directly follows qualifies.  A trip with no
        known previous terminal (a vessel's first trip) follows nothing.
        """
        if trip.prev_terminal is None or predecessor.departing_terminal != trip.prev_terminal:
            _logger.debug(
                "Completed trip for %s departed %s, expected %s; not backfilling",
                trip.vessel_id,
                predecessor.departing_terminal,
                trip.prev_terminal,
            )
            return None
        graded = actualize_trip(predecessor, LifecycleEvent.NEXT_LEAVE_DOCK, trip.left_dock)
        return graded if graded.changed else None

    async def _flush(self, result: TickResult) -> None:
        plans = list(result.plans.values())
        transitions = [plan.transition for plan in plans if plan.transition is not None]
        upserts = [plan.active_upsert for plan in plans if plan.active_upsert is not None]
        patches = [plan.completed_patch for plan in plans if plan.completed_patch is not None]
        records = [record for plan in plans for record in plan.prediction_records]

        if transitions:
            await self._write(result, "archive_and_start", self._trips.archive_and_start(transitions))
        if upserts:
            await self._write(result, "upsert_active", self._trips.upsert_active(upserts))
        if patches:
            await self._write(result, "patch_completed", self._trips.patch_completed(patches))
        if records:
            await self._write(result, "insert_predictions", self._sink.insert_many(records))

    @staticmethod
    async def _write(result: TickResult, kind: str, call: Awaitable[None]) -> None:
        try:
            await call
        except Exception as exc:
            _logger.exception("Batch write %s failed", kind)
            result.failures[kind] = repr(exc)
