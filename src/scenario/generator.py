"""Turns a lift configuration plus passenger flows into scenario text.

This is the inverse of :mod:`scenario.parser`: each passenger in a flow
becomes one hall call, so ``parse(generate(config, flows, name))`` gives back
the same header and one event per passenger.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from simulation.domain import ControllerStrategy, Direction, IdleParkingMode, coerce_enum
from simulation.errors import InvalidArgument

from .definition import HALL_CALL, ScenarioEvent, check_scenario_name, format_event, sort_events

logger = logging.getLogger(__name__)

_CONFIG_INT_FIELDS = (
    "min_floor",
    "max_floor",
    "lifts",
    "travel_ticks_per_floor",
    "door_transition_ticks",
    "door_dwell_ticks",
    "door_reopen_window_ticks",
    "home_floor",
    "idle_timeout_ticks",
)
_FLOW_INT_FIELDS = ("start_tick", "origin_floor", "destination_floor", "passengers")


@dataclass(frozen=True)
class LiftConfig:
    """Lift system configuration as stored for a building version."""

    min_floor: int
    max_floor: int
    lifts: int = 1
    travel_ticks_per_floor: int = 1
    door_transition_ticks: int = 2
    door_dwell_ticks: int = 3
    door_reopen_window_ticks: int = 2
    home_floor: int = 0
    idle_timeout_ticks: int = 5
    controller_strategy: ControllerStrategy = ControllerStrategy.NEAREST_REQUEST_ROUTING
    idle_parking_mode: IdleParkingMode = IdleParkingMode.PARK_TO_HOME_FLOOR

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "controller_strategy",
            coerce_enum(ControllerStrategy, self.controller_strategy, "controller_strategy"),
        )
        object.__setattr__(
            self,
            "idle_parking_mode",
            coerce_enum(IdleParkingMode, self.idle_parking_mode, "idle_parking_mode"),
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "LiftConfig":
        """Build from either snake_case keys or the camelCase JSON the UI stores."""
        kwargs: Dict[str, Any] = {}
        for name in cls.__dataclass_fields__:
            camel = _camel(name)
            if name in data:
                kwargs[name] = data[name]
            elif camel in data:
                kwargs[name] = data[camel]
        missing = [name for name in ("min_floor", "max_floor") if name not in kwargs]
        if missing:
            raise InvalidArgument(f"Lift configuration is missing {missing[0]}", field=missing[0])
        return cls(**kwargs)

    @classmethod
    def from_json(cls, text: str) -> "LiftConfig":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise InvalidArgument(
                f"Failed to parse lift configuration JSON: {exc}", field="lift_config"
            ) from exc
        if not isinstance(data, dict):
            raise InvalidArgument("Lift configuration JSON must be an object", field="lift_config")
        return cls.from_dict(data)


@dataclass(frozen=True)
class PassengerFlow:
    start_tick: int
    origin_floor: int
    destination_floor: int
    passengers: int = 1

    @property
    def direction(self) -> Direction:
        return Direction.UP if self.destination_floor > self.origin_floor else Direction.DOWN

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PassengerFlow":
        kwargs = {}
        for name in cls.__dataclass_fields__:
            for key in (name, _camel(name)):
                if key in data:
                    kwargs[name] = data[key]
                    break
        try:
            return cls(**kwargs)
        except TypeError as exc:
            raise InvalidArgument(f"Invalid passenger flow {dict(data)!r}: {exc}") from exc


@dataclass(frozen=True)
class PassengerFlowScenario:
    """Passenger demand authored in the UI, before expansion into events."""

    duration_ticks: int
    passenger_flows: Sequence[PassengerFlow] = field(default_factory=tuple)
    seed: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PassengerFlowScenario":
        duration = data.get("duration_ticks", data.get("durationTicks"))
        if duration is None:
            raise InvalidArgument("duration_ticks is required", field="duration_ticks")
        flows = data.get("passenger_flows", data.get("passengerFlows")) or []
        return cls(
            duration_ticks=duration,
            passenger_flows=tuple(PassengerFlow.from_dict(flow) for flow in flows),
            seed=data.get("seed"),
        )


def generate(
    lift_config: LiftConfig,
    scenario: PassengerFlowScenario,
    scenario_name: str,
) -> str:
    """Render scenario text for ``lift_config`` and the passenger flows."""
    validate(lift_config, scenario, scenario_name)

    lines = [
        f"name: {scenario_name}",
        f"ticks: {scenario.duration_ticks}",
        f"min_floor: {lift_config.min_floor}",
        f"max_floor: {lift_config.max_floor}",
        f"initial_floor: {lift_config.home_floor}",
        f"travel_ticks_per_floor: {lift_config.travel_ticks_per_floor}",
        f"door_transition_ticks: {lift_config.door_transition_ticks}",
        f"door_dwell_ticks: {lift_config.door_dwell_ticks}",
        f"door_reopen_window_ticks: {lift_config.door_reopen_window_ticks}",
        f"home_floor: {lift_config.home_floor}",
        f"idle_timeout_ticks: {lift_config.idle_timeout_ticks}",
        f"controller_strategy: {lift_config.controller_strategy.value}",
        f"idle_parking_mode: {lift_config.idle_parking_mode.value}",
        "",
    ]
    lines.extend(format_event(event) for event in expand_flows(scenario.passenger_flows))
    return "\n".join(lines) + "\n"


def expand_flows(flows: Sequence[PassengerFlow]) -> List[ScenarioEvent]:
    """One hall call per passenger, aliased p1, p2, ... in flow order."""
    events: List[ScenarioEvent] = []
    counter = 1
    for flow in flows:
        for _ in range(flow.passengers):
            events.append(
                ScenarioEvent(
                    tick=flow.start_tick,
                    kind=HALL_CALL,
                    alias=f"p{counter}",
                    floor=flow.origin_floor,
                    direction=flow.direction,
                )
            )
            counter += 1
    return list(sort_events(events))


def validate(lift_config: LiftConfig, scenario: PassengerFlowScenario, scenario_name: str) -> None:
    check_scenario_name(scenario_name)
    for name in _CONFIG_INT_FIELDS:
        _require_int(getattr(lift_config, name), name)
    _require_int(scenario.duration_ticks, "duration_ticks")
    if scenario.seed is not None:
        _require_int(scenario.seed, "seed")
    for index, flow in enumerate(scenario.passenger_flows):
        for name in _FLOW_INT_FIELDS:
            _require_int(getattr(flow, name), f"passenger_flows[{index}].{name}")

    if lift_config.min_floor >= lift_config.max_floor:
        raise InvalidArgument(
            f"min_floor {lift_config.min_floor} must be below max_floor {lift_config.max_floor}",
            field="min_floor",
        )
    if lift_config.lifts < 1:
        raise InvalidArgument("lifts must be at least 1", field="lifts")
    if not lift_config.min_floor <= lift_config.home_floor <= lift_config.max_floor:
        raise InvalidArgument(
            f"Home floor {lift_config.home_floor} is outside configured floor range "
            f"[{lift_config.min_floor}, {lift_config.max_floor}]",
            field="home_floor",
        )
    for name in ("travel_ticks_per_floor", "door_transition_ticks", "door_dwell_ticks"):
        if getattr(lift_config, name) < 1:
            raise InvalidArgument(f"{name} must be at least 1", field=name)
    if not 0 <= lift_config.door_reopen_window_ticks <= lift_config.door_transition_ticks:
        raise InvalidArgument(
            f"door_reopen_window_ticks ({lift_config.door_reopen_window_ticks}) must be between 0 "
            f"and door_transition_ticks ({lift_config.door_transition_ticks})",
            field="door_reopen_window_ticks",
        )
    if lift_config.idle_timeout_ticks < 0:
        raise InvalidArgument("idle_timeout_ticks must be >= 0", field="idle_timeout_ticks")
    if scenario.duration_ticks < 1:
        raise InvalidArgument("duration_ticks must be at least 1", field="duration_ticks")

    low, high = lift_config.min_floor, lift_config.max_floor
    for index, flow in enumerate(scenario.passenger_flows):
        prefix = f"passenger_flows[{index}]"
        if not low <= flow.origin_floor <= high:
            raise InvalidArgument(
                f"Origin floor {flow.origin_floor} is outside configured floor range [{low}, {high}]",
                field=f"{prefix}.origin_floor",
            )
        if not low <= flow.destination_floor <= high:
            raise InvalidArgument(
                f"Destination floor {flow.destination_floor} is outside configured floor range "
                f"[{low}, {high}]",
                field=f"{prefix}.destination_floor",
            )
        if flow.origin_floor == flow.destination_floor:
            raise InvalidArgument(
                f"Origin and destination floor are both {flow.origin_floor}",
                field=f"{prefix}.destination_floor",
            )
        if flow.start_tick < 0:
            raise InvalidArgument(
                f"Passenger flow start tick {flow.start_tick} must be 0 or greater",
                field=f"{prefix}.start_tick",
            )
        if flow.start_tick >= scenario.duration_ticks:
            raise InvalidArgument(
                f"Passenger flow start tick {flow.start_tick} must be less than duration "
                f"{scenario.duration_ticks}",
                field=f"{prefix}.start_tick",
            )
        if flow.passengers < 1:
            raise InvalidArgument("passengers must be at least 1", field=f"{prefix}.passengers")


def generate_batch_input_file(
    lift_config_json: str,
    scenario: PassengerFlowScenario,
    scenario_name: str,
    output_path: Union[str, Path],
) -> Path:
    """Write a ``.scenario`` file; nothing is written if validation fails."""
    lift_config = LiftConfig.from_json(lift_config_json)
    content = generate(lift_config, scenario, scenario_name)

    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    logger.info("Wrote scenario '%s' to %s", scenario_name, path)
    return path


def _require_int(value: object, field: str) -> None:
    # bool is a subclass of int
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgument(f"{field} must be an integer, got {value!r}", field=field)


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)
