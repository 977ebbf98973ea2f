"""CLI for turning a lift configuration and passenger flows into a scenario file."""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from scenario import LiftConfig, PassengerFlowScenario, generate, generate_batch_input_file
from simulation import InvalidArgument


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("config", type=Path, help="Lift configuration JSON file")
    parser.add_argument("flows", type=Path, help="Passenger flow scenario JSON file")
    parser.add_argument("--name", required=True, help="Scenario name written to the header")
    parser.add_argument("--output", type=Path, help="Write the scenario here instead of stdout")
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    try:
        config_json = args.config.read_text(encoding="utf-8")
        flows = PassengerFlowScenario.from_dict(json.loads(args.flows.read_text(encoding="utf-8")))
        if args.output:
            path = generate_batch_input_file(config_json, flows, args.name, args.output)
            print(f"Wrote scenario to {path}")
        else:
            sys.stdout.write(generate(LiftConfig.from_json(config_json), flows, args.name))
    except (OSError, json.JSONDecodeError) as exc:
        print(f"Cannot read input: {exc}", file=sys.stderr)
        return 2
    except InvalidArgument as exc:
        field = f" [{exc.field}]" if exc.field else ""
        print(f"Error{field}: {exc}", file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
