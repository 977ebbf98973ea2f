from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Tuple

from simulation.config import LiftTimings
from simulation.domain import ControllerStrategy, Direction, IdleParkingMode, coerce_enum
from simulation.errors import InvalidArgument

HALL_CALL = "hall_call"

# Header keys in the order they must appear in scenario text.
HEADER_KEYS: Tuple[str, ...] = (
    "name",
    "ticks",
    "min_floor",
    "max_floor",
    "initial_floor",
    "travel_ticks_per_floor",
    "door_transition_ticks",
    "door_dwell_ticks",
    "door_reopen_window_ticks",
    "home_floor",
    "idle_timeout_ticks",
    "controller_strategy",
    "idle_parking_mode",
)


@dataclass(frozen=True)
class ScenarioEvent:
    tick: int
    kind: str
    alias: str
    floor: int
    direction: Direction

    def __post_init__(self) -> None:
        object.__setattr__(self, "direction", coerce_enum(Direction, self.direction, "direction"))

    @property
    def sort_key(self) -> Tuple[int, str]:
        return (self.tick, self.alias)


@dataclass(frozen=True)
class ScenarioDefinition:
    """Configuration header plus the ordered event timeline of one run."""

    name: str
    total_ticks: int
    min_floor: int
    max_floor: int
    initial_floor: int
    travel_ticks_per_floor: int
    door_transition_ticks: int
    door_dwell_ticks: int
    door_reopen_window_ticks: int
    home_floor: int
    idle_timeout_ticks: int
    controller_strategy: ControllerStrategy
    idle_parking_mode: IdleParkingMode
    events: Tuple[ScenarioEvent, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        check_scenario_name(self.name)
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
        if self.total_ticks < 1:
            raise InvalidArgument("ticks must be at least 1", field="ticks")
        # raises for floor range and door/travel timing problems
        self.timings()
        for name in ("initial_floor", "home_floor"):
            value = getattr(self, name)
            if not self.min_floor <= value <= self.max_floor:
                raise InvalidArgument(
                    f"{name} {value} is outside floor range [{self.min_floor}, {self.max_floor}]",
                    field=name,
                )
        if self.idle_timeout_ticks < 0:
            raise InvalidArgument("idle_timeout_ticks must be >= 0", field="idle_timeout_ticks")

        seen = set()
        for event in self.events:
            if event.kind != HALL_CALL:
                raise InvalidArgument(f"Unsupported event kind '{event.kind}'", field="kind")
            if event.alias in seen:
                raise InvalidArgument(f"Duplicate alias '{event.alias}'", field="alias")
            seen.add(event.alias)
            if not self.min_floor <= event.floor <= self.max_floor:
                raise InvalidArgument(
                    f"Event {event.alias} floor {event.floor} is outside floor range "
                    f"[{self.min_floor}, {self.max_floor}]",
                    field="floor",
                )
            if not 0 <= event.tick < self.total_ticks:
                raise InvalidArgument(
                    f"Event {event.alias} tick {event.tick} is outside [0, {self.total_ticks})",
                    field="tick",
                )
            if event.direction not in (Direction.UP, Direction.DOWN):
                raise InvalidArgument(
                    f"Event {event.alias} direction must be UP or DOWN", field="direction"
                )
        object.__setattr__(self, "events", sort_events(self.events))

    def timings(self) -> LiftTimings:
        return LiftTimings(
            min_floor=self.min_floor,
            max_floor=self.max_floor,
            travel_ticks_per_floor=self.travel_ticks_per_floor,
            door_transition_ticks=self.door_transition_ticks,
            door_dwell_ticks=self.door_dwell_ticks,
            door_reopen_window_ticks=self.door_reopen_window_ticks,
        )

    def header(self) -> dict:
        return {
            "name": self.name,
            "ticks": self.total_ticks,
            "min_floor": self.min_floor,
            "max_floor": self.max_floor,
            "initial_floor": self.initial_floor,
            "travel_ticks_per_floor": self.travel_ticks_per_floor,
            "door_transition_ticks": self.door_transition_ticks,
            "door_dwell_ticks": self.door_dwell_ticks,
            "door_reopen_window_ticks": self.door_reopen_window_ticks,
            "home_floor": self.home_floor,
            "idle_timeout_ticks": self.idle_timeout_ticks,
            "controller_strategy": self.controller_strategy.value,
            "idle_parking_mode": self.idle_parking_mode.value,
        }


def check_scenario_name(name: object) -> None:
    """Names must survive a write and re-read of the header line unchanged."""
    if (
        not isinstance(name, str)
        or not name.strip()
        or name != name.strip()
        or len(name.splitlines()) != 1
    ):
        raise InvalidArgument(
            f"Scenario name must be a non-empty single line without surrounding whitespace, "
            f"got {name!r}",
            field="name",
        )


def sort_events(events: Iterable[ScenarioEvent]) -> Tuple[ScenarioEvent, ...]:
    return tuple(sorted(events, key=lambda event: event.sort_key))


def format_scenario(definition: ScenarioDefinition) -> str:
    """Render a definition as scenario text, byte for byte as generated."""
    lines = [f"{key}: {value}" for key, value in definition.header().items()]
    lines.append("")
    lines.extend(format_event(event) for event in definition.events)
    return "\n".join(lines) + "\n"


def format_event(event: ScenarioEvent) -> str:
    return f"{event.tick}, {event.kind}, {event.alias}, {event.floor}, {event.direction.value}"
