from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, NamedTuple, Optional, Tuple

from .config import LiftTimings
from .domain import Action, Direction, LiftStatus
from .errors import InvalidTransition

logger = logging.getLogger(__name__)


# status -> (direction, door_open); the only place these values come from
STATUS_TABLE: Dict[LiftStatus, Tuple[Direction, bool]] = {
    LiftStatus.IDLE: (Direction.IDLE, False),
    LiftStatus.MOVING_UP: (Direction.UP, False),
    LiftStatus.MOVING_DOWN: (Direction.DOWN, False),
    LiftStatus.DOORS_OPENING: (Direction.IDLE, False),
    LiftStatus.DOORS_OPEN: (Direction.IDLE, True),
    LiftStatus.DOORS_CLOSING: (Direction.IDLE, False),
    LiftStatus.OUT_OF_SERVICE: (Direction.IDLE, False),
}

VALID_TRANSITIONS: Dict[LiftStatus, FrozenSet[LiftStatus]] = {
    LiftStatus.IDLE: frozenset(
        {
            LiftStatus.IDLE,
            LiftStatus.MOVING_UP,
            LiftStatus.MOVING_DOWN,
            LiftStatus.DOORS_OPENING,
            LiftStatus.OUT_OF_SERVICE,
        }
    ),
    LiftStatus.MOVING_UP: frozenset(
        {LiftStatus.MOVING_UP, LiftStatus.IDLE, LiftStatus.OUT_OF_SERVICE}
    ),
    LiftStatus.MOVING_DOWN: frozenset(
        {LiftStatus.MOVING_DOWN, LiftStatus.IDLE, LiftStatus.OUT_OF_SERVICE}
    ),
    LiftStatus.DOORS_OPENING: frozenset(
        {LiftStatus.DOORS_OPENING, LiftStatus.DOORS_OPEN, LiftStatus.OUT_OF_SERVICE}
    ),
    LiftStatus.DOORS_OPEN: frozenset(
        {LiftStatus.DOORS_OPEN, LiftStatus.DOORS_CLOSING, LiftStatus.OUT_OF_SERVICE}
    ),
    LiftStatus.DOORS_CLOSING: frozenset(
        {
            LiftStatus.DOORS_CLOSING,
            LiftStatus.DOORS_OPENING,
            LiftStatus.IDLE,
            LiftStatus.OUT_OF_SERVICE,
        }
    ),
    LiftStatus.OUT_OF_SERVICE: frozenset({LiftStatus.OUT_OF_SERVICE, LiftStatus.IDLE}),
}


@dataclass(frozen=True)
class LiftState:
    """Floor and status of one lift; everything else is derived."""

    floor: int
    status: LiftStatus = LiftStatus.IDLE

    @property
    def direction(self) -> Direction:
        return STATUS_TABLE[self.status][0]

    @property
    def door_open(self) -> bool:
        return STATUS_TABLE[self.status][1]

    @property
    def moving(self) -> bool:
        return self.status in (LiftStatus.MOVING_UP, LiftStatus.MOVING_DOWN)


class StepResult(NamedTuple):
    state: LiftState
    elapsed: int
    accepted: bool


def check_transition(from_status: LiftStatus, to_status: LiftStatus) -> None:
    if to_status not in VALID_TRANSITIONS[from_status]:
        raise InvalidTransition(
            f"Invalid lift transition {from_status.value} -> {to_status.value}",
            from_state=from_status,
            to_state=to_status,
        )


def apply_action(
    state: LiftState, elapsed: int, action: Action, timings: LiftTimings
) -> StepResult:
    """Advance one lift by one tick.

    ``elapsed`` counts ticks spent in the current status: travel progress
    while moving, the door timer while the doors cycle. Actions that make no
    sense in the current status are rejected and the lift does whatever it
    would have done on ``STAY_IDLE``.
    """
    status = state.status

    if status is LiftStatus.OUT_OF_SERVICE:
        return StepResult(state, 0, action is Action.STAY_IDLE)

    if status is LiftStatus.IDLE:
        if action is Action.MOVE_UP and state.floor < timings.max_floor:
            return _travel(state.floor, LiftStatus.MOVING_UP, 0, timings)
        if action is Action.MOVE_DOWN and state.floor > timings.min_floor:
            return _travel(state.floor, LiftStatus.MOVING_DOWN, 0, timings)
        if action is Action.OPEN_DOORS:
            return StepResult(LiftState(state.floor, LiftStatus.DOORS_OPENING), 0, True)
        return StepResult(state, 0, action is Action.STAY_IDLE)

    if status in (LiftStatus.MOVING_UP, LiftStatus.MOVING_DOWN):
        if elapsed > 0:
            # between floors: travel finishes whatever was asked
            result = _travel(state.floor, status, elapsed, timings)
            return result._replace(accepted=_continues(status, action))
        if _continues(status, action) and _can_leave(state.floor, status, timings):
            return _travel(state.floor, status, 0, timings)
        return StepResult(LiftState(state.floor, LiftStatus.IDLE), 0, action is Action.STAY_IDLE)

    if status is LiftStatus.DOORS_OPENING:
        return _door_timer(
            state, elapsed, timings.door_transition_ticks, LiftStatus.DOORS_OPEN, action
        )

    if status is LiftStatus.DOORS_OPEN:
        if action is Action.CLOSE_DOORS:
            return StepResult(LiftState(state.floor, LiftStatus.DOORS_CLOSING), 0, True)
        return _door_timer(
            state, elapsed, timings.door_dwell_ticks, LiftStatus.DOORS_CLOSING, action
        )

    # DOORS_CLOSING
    if action is Action.OPEN_DOORS:
        if elapsed < timings.door_reopen_window_ticks:
            return StepResult(LiftState(state.floor, LiftStatus.DOORS_OPENING), 0, True)
        logger.debug(
            "Reopen refused at floor %s: closing for %s ticks, window is %s",
            state.floor,
            elapsed,
            timings.door_reopen_window_ticks,
        )
        result = _door_timer(
            state, elapsed, timings.door_transition_ticks, LiftStatus.IDLE, Action.STAY_IDLE
        )
        return result._replace(accepted=False)
    return _door_timer(state, elapsed, timings.door_transition_ticks, LiftStatus.IDLE, action)


def _continues(status: LiftStatus, action: Action) -> bool:
    return (status is LiftStatus.MOVING_UP and action is Action.MOVE_UP) or (
        status is LiftStatus.MOVING_DOWN and action is Action.MOVE_DOWN
    )


def _can_leave(floor: int, status: LiftStatus, timings: LiftTimings) -> bool:
    if status is LiftStatus.MOVING_UP:
        return floor < timings.max_floor
    return floor > timings.min_floor


def _travel(floor: int, status: LiftStatus, elapsed: int, timings: LiftTimings) -> StepResult:
    progress = elapsed + 1
    if progress >= timings.travel_ticks_per_floor:
        floor += 1 if status is LiftStatus.MOVING_UP else -1
        progress = 0
    return StepResult(LiftState(floor, status), progress, True)


def _door_timer(
    state: LiftState, elapsed: int, duration: int, next_status: LiftStatus, action: Action
) -> StepResult:
    accepted = action is Action.STAY_IDLE
    elapsed += 1
    if elapsed >= duration:
        return StepResult(LiftState(state.floor, next_status), 0, accepted)
    return StepResult(state, elapsed, accepted)


@dataclass
class Lift:
    """One lift car: current state plus the timer for that state."""

    lift_id: int
    initial_floor: int
    state: LiftState = field(init=False)
    elapsed: int = field(default=0, init=False)

    def __post_init__(self) -> None:
        self.state = LiftState(self.initial_floor, LiftStatus.IDLE)

    @property
    def in_service(self) -> bool:
        return self.state.status is not LiftStatus.OUT_OF_SERVICE

    def apply(self, action: Action, timings: LiftTimings, tick: Optional[int] = None) -> StepResult:
        result = apply_action(self.state, self.elapsed, action, timings)
        self._commit(result.state, tick)
        self.elapsed = result.elapsed
        if not result.accepted:
            logger.debug(
                "Lift %s ignored %s while %s at floor %s",
                self.lift_id,
                action.value,
                result.state.status.value,
                self.state.floor,
            )
        return result

    def take_out_of_service(self, tick: Optional[int] = None) -> None:
        self._commit(LiftState(self.state.floor, LiftStatus.OUT_OF_SERVICE), tick)
        self.elapsed = 0

    def return_to_service(self, tick: Optional[int] = None) -> None:
        self._commit(LiftState(self.state.floor, LiftStatus.IDLE), tick)
        self.elapsed = 0

    def reset(self) -> None:
        self.state = LiftState(self.initial_floor, LiftStatus.IDLE)
        self.elapsed = 0

    def _commit(self, new_state: LiftState, tick: Optional[int]) -> None:
        try:
            check_transition(self.state.status, new_state.status)
        except InvalidTransition as exc:
            exc.tick = tick
            exc.lift_id = self.lift_id
            raise
        self.state = new_state
