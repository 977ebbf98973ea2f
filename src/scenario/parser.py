"""Reader for the line-based ``.scenario`` text format.

The format is a fixed header of ``key: value`` lines followed by hall call
events, one per line::

    name: Morning rush
    ticks: 120
    ...
    idle_parking_mode: PARK_TO_HOME_FLOOR

    0, hall_call, p1, 0, UP

Blank lines and ``#`` comments are ignored. Every problem is reported as a
:class:`ParseError` carrying the line number and the offending field.
"""
from __future__ import annotations

import re
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Type, TypeVar, Union

from simulation.domain import ControllerStrategy, Direction, IdleParkingMode
from simulation.errors import InvalidArgument, ParseError

from .definition import HALL_CALL, HEADER_KEYS, ScenarioDefinition, ScenarioEvent

E = TypeVar("E", ControllerStrategy, IdleParkingMode, Direction)

_INT_RE = re.compile(r"^-?\d+$")
_EVENT_FIELDS = ("tick", "kind", "alias", "floor", "direction")

# Lower bounds for the non-floor integer header fields.
_MINIMUMS: Dict[str, int] = {
    "ticks": 1,
    "travel_ticks_per_floor": 1,
    "door_transition_ticks": 1,
    "door_dwell_ticks": 1,
    "door_reopen_window_ticks": 0,
    "idle_timeout_ticks": 0,
}


def parse(text: str) -> ScenarioDefinition:
    """Parse scenario text into a :class:`ScenarioDefinition`."""
    header: Dict[str, Tuple[int, object]] = {}
    raw_events: List[Tuple[int, ScenarioEvent]] = []

    for line_number, line in enumerate(text.splitlines(), start=1):
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue

        if len(header) < len(HEADER_KEYS):
            key, value = _split_header(stripped, line_number, expected=HEADER_KEYS[len(header)])
            header[key] = (line_number, _header_value(key, value, line_number))
            continue

        raw_events.append((line_number, _parse_event(stripped, line_number)))

    if len(header) < len(HEADER_KEYS):
        raise ParseError(None, HEADER_KEYS[len(header)], "missing required header field")

    values = {key: value for key, (_, value) in header.items()}
    _check_header(header, values)
    _check_events(raw_events, values)

    try:
        return ScenarioDefinition(
            name=values["name"],
            total_ticks=values["ticks"],
            min_floor=values["min_floor"],
            max_floor=values["max_floor"],
            initial_floor=values["initial_floor"],
            travel_ticks_per_floor=values["travel_ticks_per_floor"],
            door_transition_ticks=values["door_transition_ticks"],
            door_dwell_ticks=values["door_dwell_ticks"],
            door_reopen_window_ticks=values["door_reopen_window_ticks"],
            home_floor=values["home_floor"],
            idle_timeout_ticks=values["idle_timeout_ticks"],
            controller_strategy=values["controller_strategy"],
            idle_parking_mode=values["idle_parking_mode"],
            events=tuple(event for _, event in raw_events),
        )
    except InvalidArgument as exc:
        # every rule is checked above with line context; this is a backstop
        raise ParseError(None, exc.field, str(exc)) from exc


def parse_file(path: Union[str, Path]) -> ScenarioDefinition:
    return parse(Path(path).read_text(encoding="utf-8"))


def _split_header(line: str, line_number: int, expected: str) -> Tuple[str, str]:
    key, sep, value = line.partition(":")
    key = key.strip()
    if not sep or not re.match(r"^[a-z_]+$", key):
        raise ParseError(line_number, expected, "missing required header field")
    if key != expected:
        if key in HEADER_KEYS:
            reason = f"header field '{key}' out of order, expected '{expected}'"
        else:
            reason = f"unknown header field '{key}'"
        raise ParseError(line_number, key, reason)
    return key, value.strip()


def _header_value(key: str, value: str, line_number: int) -> object:
    if key == "name":
        if not value:
            raise ParseError(line_number, key, "scenario name must not be empty")
        return value
    if key == "controller_strategy":
        return _parse_enum(ControllerStrategy, value, key, line_number)
    if key == "idle_parking_mode":
        return _parse_enum(IdleParkingMode, value, key, line_number)

    number = _parse_int(value, key, line_number)
    minimum = _MINIMUMS.get(key)
    if minimum is not None and number < minimum:
        raise ParseError(line_number, key, f"value {number} must be at least {minimum}")
    return number


def _check_header(header: Dict[str, Tuple[int, object]], values: Dict[str, object]) -> None:
    min_floor = values["min_floor"]
    max_floor = values["max_floor"]
    if min_floor >= max_floor:  # type: ignore[operator]
        raise ParseError(
            header["max_floor"][0],
            "max_floor",
            f"max_floor {max_floor} must be greater than min_floor {min_floor}",
        )
    for key in ("initial_floor", "home_floor"):
        floor = values[key]
        if not min_floor <= floor <= max_floor:  # type: ignore[operator]
            raise ParseError(
                header[key][0],
                key,
                f"floor {floor} is outside [{min_floor}, {max_floor}]",
            )
    window = values["door_reopen_window_ticks"]
    transition = values["door_transition_ticks"]
    if window > transition:  # type: ignore[operator]
        raise ParseError(
            header["door_reopen_window_ticks"][0],
            "door_reopen_window_ticks",
            f"value {window} must not exceed door_transition_ticks ({transition})",
        )


def _parse_event(line: str, line_number: int) -> ScenarioEvent:
    tokens = [token.strip() for token in line.split(",")]
    if len(tokens) != len(_EVENT_FIELDS):
        if ":" in line and len(tokens) == 1:
            key = line.partition(":")[0].strip()
            raise ParseError(line_number, key, f"unexpected header field '{key}'")
        raise ParseError(
            line_number,
            None,
            f"malformed event line, expected 'tick, hall_call, alias, floor, UP|DOWN': {line!r}",
        )
    tick_text, kind, alias, floor_text, direction_text = tokens
    if kind != HALL_CALL:
        raise ParseError(line_number, "kind", f"unsupported event kind '{kind}'")
    if not alias:
        raise ParseError(line_number, "alias", "alias must not be empty")
    tick = _parse_int(tick_text, "tick", line_number)
    floor = _parse_int(floor_text, "floor", line_number)
    direction = _parse_enum(Direction, direction_text, "direction", line_number)
    if direction is Direction.IDLE:
        raise ParseError(line_number, "direction", "hall call direction must be UP or DOWN")
    return ScenarioEvent(tick=tick, kind=kind, alias=alias, floor=floor, direction=direction)


def _check_events(
    raw_events: List[Tuple[int, ScenarioEvent]], values: Dict[str, object]
) -> None:
    min_floor = values["min_floor"]
    max_floor = values["max_floor"]
    total_ticks = values["ticks"]
    aliases: Dict[str, int] = {}
    for line_number, event in raw_events:
        if not min_floor <= event.floor <= max_floor:  # type: ignore[operator]
            raise ParseError(
                line_number,
                "floor",
                f"floor {event.floor} is outside [{min_floor}, {max_floor}]",
            )
        if not 0 <= event.tick < total_ticks:  # type: ignore[operator]
            raise ParseError(
                line_number, "tick", f"tick {event.tick} is outside [0, {total_ticks})"
            )
        first: Optional[int] = aliases.get(event.alias)
        if first is not None:
            raise ParseError(
                line_number, "alias", f"alias '{event.alias}' already used on line {first}"
            )
        aliases[event.alias] = line_number


def _parse_int(value: str, field: str, line_number: int) -> int:
    if not _INT_RE.match(value):
        raise ParseError(line_number, field, f"expected an integer, got {value!r}")
    return int(value)


def _parse_enum(enum_cls: Type[E], value: str, field: str, line_number: int) -> E:
    try:
        return enum_cls(value)
    except ValueError:
        allowed = " | ".join(member.value for member in enum_cls)
        raise ParseError(
            line_number, field, f"unknown value {value!r}, expected one of {allowed}"
        ) from None
