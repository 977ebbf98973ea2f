"""CLI for running a lift scenario file and printing the tick-by-tick trace."""
from __future__ import annotations

import argparse
import json
import logging
import sys
from collections import Counter
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from scenario import parse_file
from simulation import ControllerStrategy, IdleParkingMode, InvalidArgument, ParseError, RequestState, Unsupported
from simulation.engine import FinalReport, SimulationEngine, TickSnapshot

ROW_FORMAT = "{:<6} {:<6} {:<6} {:<15} {:<30} {:<30}"
_STATE_LABELS = (
    (RequestState.QUEUED, "Q"),
    (RequestState.ASSIGNED, "A"),
    (RequestState.SERVING, "S"),
)


def format_pending(engine: SimulationEngine) -> str:
    pending = engine.pending_requests()
    if not pending:
        return "-"
    counts = Counter(request.state for request in pending)
    parts = [f"{label}:{counts[state]}" for state, label in _STATE_LABELS if counts[state]]
    floors = sorted({request.target_floor for request in pending})
    parts.append("Floors:" + ",".join(str(floor) for floor in floors))
    return " ".join(parts)


def format_events(engine: SimulationEngine, snapshot: TickSnapshot) -> str:
    notes: List[str] = []
    by_id = {request.request_id: request for request in engine.history}
    for request_id in snapshot.delivered:
        request = by_id[request_id]
        notes.append(f"{request.alias or request_id} call {request.origin_floor} {request.direction.value}")
    for request_id in snapshot.completed:
        notes.append(f"{by_id[request_id].alias or request_id} done")
    return " | ".join(notes) or "-"


def print_header(engine: SimulationEngine) -> None:
    scenario = engine.scenario
    print("=== Scenario Runner ===")
    print(f"Scenario: {scenario.name}")
    print(f"Total ticks: {scenario.total_ticks}")
    print(f"Controller Strategy: {engine.strategy_name.value}")
    print(f"Idle Parking Mode: {engine.idle_parking_mode.value}")
    print(f"Lifts: {len(engine.lifts)}")
    print()
    print(ROW_FORMAT.format("Tick", "Lift", "Floor", "State", "Pending Requests", "Events"))
    print("-" * 98)


def print_summary(report: FinalReport) -> None:
    print()
    print(f"Scenario {report.status.value.lower()} after {report.ticks_executed} ticks.")
    for state in (RequestState.COMPLETED, RequestState.CANCELLED):
        print(f"  {state.value.lower()}: {len(report.requests_in(state))}")


def save_results(output_path: Optional[Path], data: Dict) -> None:
    if not output_path:
        return
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps(data, indent=2))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("scenario", type=Path, help="Path to a .scenario file")
    parser.add_argument(
        "-c",
        "--controller",
        choices=[strategy.value for strategy in ControllerStrategy],
        help="Controller strategy (overrides the scenario file)",
    )
    parser.add_argument(
        "-p",
        "--idle-parking",
        choices=[mode.value for mode in IdleParkingMode],
        help="Idle parking mode (overrides the scenario file)",
    )
    parser.add_argument("--lifts", type=int, default=1, help="Number of lifts to simulate")
    parser.add_argument("--output", type=Path, help="Optional file path to write the final report as JSON")
    parser.add_argument("--quiet", action="store_true", help="Skip the per-tick table")
    parser.add_argument("--verbose", action="store_true", help="Log every tick at DEBUG level")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        definition = parse_file(args.scenario)
        engine = SimulationEngine(
            definition,
            lift_count=args.lifts,
            controller_strategy=args.controller,
            idle_parking_mode=args.idle_parking,
        )
    except OSError as exc:
        print(f"Cannot read scenario: {exc}", file=sys.stderr)
        return 2
    except (ParseError, InvalidArgument, Unsupported) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    if not args.quiet:
        print_header(engine)

        def print_row(snapshot: TickSnapshot) -> None:
            pending = format_pending(engine)
            events = format_events(engine, snapshot)
            for lift in snapshot.lifts:
                print(
                    ROW_FORMAT.format(
                        snapshot.tick, lift.lift_id, lift.floor, lift.status.value, pending, events
                    )
                )

        engine.on_event("tick", print_row)

    report = engine.run()
    save_results(args.output, report.to_dict())

    print_summary(report)
    if args.output:
        print(f"Saved report to {args.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
