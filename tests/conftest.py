from __future__ import annotations

from typing import Iterable, Tuple

import pytest

from scenario import ScenarioDefinition, ScenarioEvent

HEADER_DEFAULTS = {
    "name": "Test scenario",
    "ticks": 20,
    "min_floor": 0,
    "max_floor": 9,
    "initial_floor": 0,
    "travel_ticks_per_floor": 1,
    "door_transition_ticks": 1,
    "door_dwell_ticks": 2,
    "door_reopen_window_ticks": 0,
    "home_floor": 0,
    "idle_timeout_ticks": 5,
    "controller_strategy": "NEAREST_REQUEST_ROUTING",
    "idle_parking_mode": "STAY_AT_CURRENT_FLOOR",
}


def scenario_text(events: Iterable[str] = (), **overrides) -> str:
    """Header lines (13 of them), a blank line, then one event per line."""
    header = dict(HEADER_DEFAULTS, **overrides)
    lines = [f"{key}: {value}" for key, value in header.items()]
    lines.append("")
    lines.extend(events)
    return "\n".join(lines) + "\n"


def make_definition(events: Iterable[Tuple[int, str, int, str]] = (), **overrides) -> ScenarioDefinition:
    header = dict(HEADER_DEFAULTS, **overrides)
    return ScenarioDefinition(
        name=header["name"],
        total_ticks=header["ticks"],
        min_floor=header["min_floor"],
        max_floor=header["max_floor"],
        initial_floor=header["initial_floor"],
        travel_ticks_per_floor=header["travel_ticks_per_floor"],
        door_transition_ticks=header["door_transition_ticks"],
        door_dwell_ticks=header["door_dwell_ticks"],
        door_reopen_window_ticks=header["door_reopen_window_ticks"],
        home_floor=header["home_floor"],
        idle_timeout_ticks=header["idle_timeout_ticks"],
        controller_strategy=header["controller_strategy"],
        idle_parking_mode=header["idle_parking_mode"],
        events=tuple(
            ScenarioEvent(tick=tick, kind="hall_call", alias=alias, floor=floor, direction=direction)
            for tick, alias, floor, direction in events
        ),
    )


GOLDEN_SCENARIO = (
    "name: Golden Test Scenario\n"
    "ticks: 30\n"
    "min_floor: 0\n"
    "max_floor: 10\n"
    "initial_floor: 0\n"
    "travel_ticks_per_floor: 1\n"
    "door_transition_ticks: 2\n"
    "door_dwell_ticks: 3\n"
    "door_reopen_window_ticks: 2\n"
    "home_floor: 0\n"
    "idle_timeout_ticks: 5\n"
    "controller_strategy: NEAREST_REQUEST_ROUTING\n"
    "idle_parking_mode: PARK_TO_HOME_FLOOR\n"
    "\n"
    "0, hall_call, p1, 0, UP\n"
    "5, hall_call, p2, 8, DOWN\n"
    "5, hall_call, p3, 8, DOWN\n"
)

GOLDEN_CONFIG = {
    "minFloor": 0,
    "maxFloor": 10,
    "lifts": 1,
    "travelTicksPerFloor": 1,
    "doorTransitionTicks": 2,
    "doorDwellTicks": 3,
    "doorReopenWindowTicks": 2,
    "homeFloor": 0,
    "idleTimeoutTicks": 5,
    "controllerStrategy": "NEAREST_REQUEST_ROUTING",
    "idleParkingMode": "PARK_TO_HOME_FLOOR",
}

GOLDEN_FLOWS = {
    "durationTicks": 30,
    "passengerFlows": [
        {"startTick": 0, "originFloor": 0, "destinationFloor": 3, "passengers": 1},
        {"startTick": 5, "originFloor": 8, "destinationFloor": 2, "passengers": 2},
    ],
}


@pytest.fixture
def single_call_scenario() -> ScenarioDefinition:
    return make_definition(events=[(0, "p1", 5, "UP")])
