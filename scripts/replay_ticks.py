#!/usr/bin/env python3
"""Replay telemetry ticks through the trip orchestrator.

Runs the full lifecycle pipeline against in-memory stores and prints what
each tick would write.  Useful for checking a recorded feed capture
against a set of trained models before deploying them.

Usage
-----
Replay a capture (a JSON list of ticks, each a list of feed rows)::

    python scripts/replay_ticks.py capture.json --models models.json --schedule schedule.json

Poll the live WSF feed instead::

    export FERRYTRIPS_API_ACCESS_CODE="your-code"
    python scripts/replay_ticks.py --live --polls 10 --interval 5

Options::

    --models FILE        JSON list of model documents
    --schedule FILE      JSON list of schedule snapshots
    --vessels FILE       JSON object mapping vessel names to abbreviations
    --json               Output machine-readable JSON
    --verbose, -v        Enable debug logging
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

import aiohttp  # noqa: E402

from ferrytrips import FerryTripsConfig, TickResult, TripOrchestrator  # noqa: E402
from ferrytrips.ingestion.wsf import WsfVesselFeed, parse_vessel_locations  # noqa: E402
from ferrytrips.memory import (  # noqa: E402
    InMemoryModelStore,
    InMemoryPredictionSink,
    InMemoryScheduleStore,
    InMemoryTripStore,
)


def _load_json(path: str | None, default: Any) -> Any:
    if path is None:
        return default
    return json.loads(Path(path).read_text(encoding="utf-8"))


def _summarize(index: int, result: TickResult) -> dict[str, Any]:
    vessels: dict[str, Any] = {}
    for vessel_id, plan in sorted(result.plans.items()):
        entry: dict[str, Any] = {"event": str(plan.event)}
        if plan.active_upsert is not None:
            entry["upsert"] = plan.active_upsert.model_dump(mode="json", exclude_none=True)
        if plan.transition is not None:
            entry["completed"] = plan.transition.completed.model_dump(mode="json", exclude_none=True)
            entry["started"] = plan.transition.started.model_dump(mode="json", exclude_none=True)
        if plan.completed_patch is not None:
            entry["backfilled"] = plan.completed_patch.key
        if plan.prediction_records:
            entry["records"] = [r.model_dump(mode="json") for r in plan.prediction_records]
        if plan.skipped_estimates:
            entry["skipped"] = {str(s.slot): s.reason for s in plan.skipped_estimates}
        vessels[vessel_id] = entry
    return {"tick": index, "vessels": vessels, "failures": result.failures, "ignored": result.ignored}


def _print_summary(summary: dict[str, Any]) -> None:
    print(f"── tick {summary['tick']} " + "─" * 40)
    for vessel_id, entry in summary["vessels"].items():
        if len(entry) == 1:
            continue
        print(f"  {vessel_id:<6} {entry['event']}")
        for name in ("upsert", "started"):
            trip = entry.get(name)
            if trip:
                print(f"         {name:<9}: {trip.get('key') or trip.get('departing_terminal', '')}")
        if "backfilled" in entry:
            print(f"         backfill : {entry['backfilled']}")
        for record in entry.get("records", []):
            print(f"         graded   : {record['slot']} delta={record['delta_total']} range={record['delta_range']}")
        for slot, reason in entry.get("skipped", {}).items():
            print(f"         skipped  : {slot} ({reason})")
    for vessel_id, error in summary["failures"].items():
        print(f"  {vessel_id:<6} FAILED {error}")


async def main() -> None:
    parser = argparse.ArgumentParser(
        description="Replay telemetry ticks through the ferrytrips orchestrator.",
    )
    parser.add_argument("capture", nargs="?", help="JSON list of ticks (each a list of feed rows)")
    parser.add_argument("--models", help="JSON list of model documents")
    parser.add_argument("--schedule", help="JSON list of schedule snapshots")
    parser.add_argument("--vessels", help="JSON object mapping vessel names to abbreviations")
    parser.add_argument("--live", action="store_true", help="Poll the live WSF feed instead of a capture")
    parser.add_argument("--polls", type=int, default=5, help="Live polls to run (default: 5)")
    parser.add_argument("--interval", type=float, default=5.0, help="Seconds between live polls")
    parser.add_argument("--json", action="store_true", dest="json_mode", help="Output machine-readable JSON")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    if not args.live and not args.capture:
        parser.error("either a capture file or --live is required")

    config = FerryTripsConfig.from_env()
    abbreviations: dict[str, str] = _load_json(args.vessels, {})
    trips = InMemoryTripStore()
    sink = InMemoryPredictionSink()
    orchestrator = TripOrchestrator(
        trips,
        InMemoryModelStore.from_documents(_load_json(args.models, [])),
        InMemoryScheduleStore.from_documents(_load_json(args.schedule, [])),
        sink,
        config=config,
    )

    summaries: list[dict[str, Any]] = []

    async def _run(index: int, samples: list[Any]) -> None:
        summary = _summarize(index, await orchestrator.run_tick(samples))
        summaries.append(summary)
        if not args.json_mode:
            _print_summary(summary)

    if args.live:
        async with aiohttp.ClientSession() as session:
            feed = WsfVesselFeed(config, session, abbreviations=abbreviations)
            for index in range(args.polls):
                if index:
                    await asyncio.sleep(args.interval)
                await _run(index, await feed.fetch_locations())
    else:
        for index, rows in enumerate(_load_json(args.capture, [])):
            await _run(index, parse_vessel_locations(rows, abbreviations))

    if args.json_mode:
        payload = {
            "ticks": summaries,
            "active": {k: v.model_dump(mode="json", exclude_none=True) for k, v in trips.active.items()},
            "completed": len(trips.completed),
            "prediction_records": len(sink.records),
        }
        print(json.dumps(payload, indent=2, ensure_ascii=False))
    else:
        print(f"\n{len(trips.active)} active trips, {len(trips.completed)} completed, {len(sink.records)} graded estimates")


if __name__ == "__main__":
    asyncio.run(main())
