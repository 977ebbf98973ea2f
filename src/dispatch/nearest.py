from __future__ import annotations

from typing import Sequence

from simulation.domain import Action, IdleParkingMode, LiftStatus
from simulation.errors import InvalidArgument
from simulation.lift import LiftState
from simulation.request import LiftRequest

from .interface import Decision
from .utils import move_toward, nearest_request


class NearestRequestRouting:
    """Sends the lift to whichever pending request is closest.

    Ties go to the request created first. With nothing to do, the lift
    counts idle ticks and, once ``idle_timeout_ticks`` have passed, applies
    the configured parking mode.
    """

    implemented = True

    def __init__(
        self,
        home_floor: int = 0,
        idle_timeout_ticks: int = 5,
        idle_parking_mode: IdleParkingMode = IdleParkingMode.PARK_TO_HOME_FLOOR,
    ) -> None:
        if idle_timeout_ticks < 0:
            raise InvalidArgument("idle_timeout_ticks must be >= 0", field="idle_timeout_ticks")
        self.home_floor = home_floor
        self.idle_timeout_ticks = idle_timeout_ticks
        self.idle_parking_mode = idle_parking_mode
        self.idle_ticks = 0
        self.parking = False

    def reset(self) -> None:
        self.idle_ticks = 0
        self.parking = False

    def decide(
        self,
        lift_state: LiftState,
        pending_requests: Sequence[LiftRequest],
        tick: int,
    ) -> Decision:
        status = lift_state.status
        floor = lift_state.floor

        if status is LiftStatus.OUT_OF_SERVICE:
            self.reset()
            return Decision(Action.STAY_IDLE)

        target = nearest_request(pending_requests, floor)
        if target is None:
            return Decision(self._idle_action(lift_state))
        self.reset()

        if status in (LiftStatus.DOORS_OPENING, LiftStatus.DOORS_OPEN):
            return Decision(Action.STAY_IDLE)

        if status is LiftStatus.DOORS_CLOSING:
            here = nearest_request(
                (req for req in pending_requests if req.target_floor == floor), floor
            )
            if here is not None:
                return Decision(Action.OPEN_DOORS, here.request_id)
            return Decision(Action.STAY_IDLE)

        target_floor = target.target_floor

        if target_floor == floor:
            if lift_state.moving:
                return Decision(Action.STAY_IDLE, target.request_id)
            return Decision(Action.OPEN_DOORS, target.request_id)

        # stop before reversing
        if status is LiftStatus.MOVING_UP and target_floor < floor:
            return Decision(Action.STAY_IDLE, target.request_id)
        if status is LiftStatus.MOVING_DOWN and target_floor > floor:
            return Decision(Action.STAY_IDLE, target.request_id)

        return Decision(move_toward(floor, target_floor), target.request_id)

    def _idle_action(self, lift_state: LiftState) -> Action:
        floor = lift_state.floor

        if self.parking:
            if floor == self.home_floor:
                self.parking = False
                self.idle_ticks = 0
                return Action.STAY_IDLE
            return move_toward(floor, self.home_floor)

        if lift_state.status is not LiftStatus.IDLE:
            self.idle_ticks = 0
            return Action.STAY_IDLE

        if (
            self.idle_ticks >= self.idle_timeout_ticks
            and self.idle_parking_mode is IdleParkingMode.PARK_TO_HOME_FLOOR
            and floor != self.home_floor
        ):
            self.parking = True
            return move_toward(floor, self.home_floor)

        self.idle_ticks += 1
        return Action.STAY_IDLE
