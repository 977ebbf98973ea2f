from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

from dispatch import DispatchStrategy, get_strategy
from scenario.definition import ScenarioDefinition, ScenarioEvent

from .domain import (
    ControllerStrategy,
    Direction,
    IdleParkingMode,
    LiftStatus,
    RequestState,
    RunStatus,
    coerce_enum,
)
from .errors import InvalidArgument
from .lift import Lift, LiftState
from .request import LiftRequest, RequestFactory

logger = logging.getLogger(__name__)

CancellationCheck = Callable[[int], bool]


@dataclass(frozen=True)
class LiftSnapshot:
    lift_id: int
    floor: int
    status: LiftStatus
    direction: Direction
    door_open: bool

    @classmethod
    def of(cls, lift: Lift) -> "LiftSnapshot":
        state = lift.state
        return cls(
            lift_id=lift.lift_id,
            floor=state.floor,
            status=state.status,
            direction=state.direction,
            door_open=state.door_open,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.lift_id,
            "floor": self.floor,
            "status": self.status.value,
            "direction": self.direction.value,
            "door_open": self.door_open,
        }


@dataclass(frozen=True)
class TickSnapshot:
    """State of every lift after one tick, plus what happened to requests."""

    tick: int
    lifts: Tuple[LiftSnapshot, ...]
    delivered: Tuple[int, ...] = ()
    completed: Tuple[int, ...] = ()
    cancelled: Tuple[int, ...] = ()

    def to_dict(self) -> dict:
        return {
            "tick": self.tick,
            "lifts": [lift.to_dict() for lift in self.lifts],
            "delivered": list(self.delivered),
            "completed": list(self.completed),
            "cancelled": list(self.cancelled),
        }


@dataclass(frozen=True)
class FinalReport:
    """Everything a results aggregator needs from one run."""

    scenario_name: str
    strategy: ControllerStrategy
    total_ticks: int
    ticks_executed: int
    status: RunStatus
    lifts: Tuple[LiftSnapshot, ...]
    requests: Tuple[LiftRequest, ...]

    def requests_in(self, state: RequestState) -> List[LiftRequest]:
        return [request for request in self.requests if request.state is state]

    def to_dict(self) -> dict:
        return {
            "scenario": self.scenario_name,
            "strategy": self.strategy.value,
            "total_ticks": self.total_ticks,
            "ticks_executed": self.ticks_executed,
            "status": self.status.value,
            "lifts": [lift.to_dict() for lift in self.lifts],
            "requests": [request.to_dict() for request in self.requests],
        }


@dataclass
class _StepLog:
    delivered: List[int] = field(default_factory=list)
    completed: List[int] = field(default_factory=list)
    cancelled: List[int] = field(default_factory=list)


class SimulationEngine:
    """Fixed-tick lift simulation driven by a scenario definition.

    Each tick delivers the events that fall due, then asks every lift's
    strategy for an action in lift-index order, applies it and advances
    request lifecycles. Nothing here is shared between instances.
    """

    def __init__(
        self,
        scenario: ScenarioDefinition,
        lift_count: int = 1,
        initial_floors: Optional[Sequence[int]] = None,
        controller_strategy: Union[ControllerStrategy, str, None] = None,
        idle_parking_mode: Union[IdleParkingMode, str, None] = None,
        cancellation_check: Optional[CancellationCheck] = None,
    ) -> None:
        if lift_count < 1:
            raise InvalidArgument("lift_count must be at least 1", field="lift_count")
        if initial_floors is None:
            initial_floors = [scenario.initial_floor] * lift_count
        if len(initial_floors) != lift_count:
            raise InvalidArgument(
                f"Expected {lift_count} initial floors, got {len(initial_floors)}",
                field="initial_floors",
            )

        self.scenario = scenario
        self.timings = scenario.timings()
        for floor in initial_floors:
            if not self.timings.contains(floor):
                raise InvalidArgument(
                    f"Initial floor {floor} is outside [{self.timings.min_floor}, "
                    f"{self.timings.max_floor}]",
                    field="initial_floors",
                )

        self.strategy_name = coerce_enum(
            ControllerStrategy,
            controller_strategy or scenario.controller_strategy,
            "controller_strategy",
        )
        self.idle_parking_mode = coerce_enum(
            IdleParkingMode,
            idle_parking_mode or scenario.idle_parking_mode,
            "idle_parking_mode",
        )
        self.lifts: List[Lift] = [Lift(i, floor) for i, floor in enumerate(initial_floors)]
        self.strategies: List[DispatchStrategy] = [
            get_strategy(
                self.strategy_name,
                scenario.home_floor,
                scenario.idle_timeout_ticks,
                self.idle_parking_mode,
            )
            for _ in self.lifts
        ]
        self.cancellation_check = cancellation_check
        self.event_hooks: Dict[str, List[Callable[[object], None]]] = {}

        self.current_tick: int = 0
        self.requests = RequestFactory()
        self.history: List[LiftRequest] = []
        self._active: Dict[int, LiftRequest] = {}
        self._aliases: Dict[str, int] = {}
        self._timeline = self._group_events()
        self._log = _StepLog()

    # -- running -------------------------------------------------------

    def step(self) -> TickSnapshot:
        tick = self.current_tick
        self._log = _StepLog()

        for event in self._timeline.get(tick, ()):
            self.submit(self.requests.hall_call(event.floor, event.direction, alias=event.alias))

        for lift, strategy in zip(self.lifts, self.strategies):
            self._step_lift(lift, strategy, tick)

        self.current_tick += 1
        snapshot = TickSnapshot(
            tick=self.current_tick,
            lifts=tuple(LiftSnapshot.of(lift) for lift in self.lifts),
            delivered=tuple(self._log.delivered),
            completed=tuple(self._log.completed),
            cancelled=tuple(self._log.cancelled),
        )
        self._emit("tick", snapshot)
        return snapshot

    def run(self) -> FinalReport:
        logger.info(
            "Running scenario '%s' for %s ticks with %s lift(s), strategy %s",
            self.scenario.name,
            self.scenario.total_ticks,
            len(self.lifts),
            self.strategy_name.value,
        )
        status = RunStatus.COMPLETED
        while self.current_tick < self.scenario.total_ticks:
            if self.cancellation_check is not None and self.cancellation_check(self.current_tick):
                logger.info("Run cancelled at tick %s", self.current_tick)
                status = RunStatus.CANCELLED
                break
            self.step()

        for request in list(self._active.values()):
            self._cancel(request)

        report = FinalReport(
            scenario_name=self.scenario.name,
            strategy=self.strategy_name,
            total_ticks=self.scenario.total_ticks,
            ticks_executed=self.current_tick,
            status=status,
            lifts=tuple(LiftSnapshot.of(lift) for lift in self.lifts),
            requests=tuple(sorted(self.history, key=lambda request: request.request_id)),
        )
        logger.info(
            "Scenario '%s' finished at tick %s: %s completed, %s cancelled",
            self.scenario.name,
            self.current_tick,
            len(report.requests_in(RequestState.COMPLETED)),
            len(report.requests_in(RequestState.CANCELLED)),
        )
        return report

    def reset(self) -> None:
        """Return to tick zero with fresh lifts, strategies and request ids."""
        for lift in self.lifts:
            lift.reset()
        for strategy in self.strategies:
            strategy.reset()
        self.current_tick = 0
        self.requests.reset()
        self.history = []
        self._active = {}
        self._aliases = {}
        self._log = _StepLog()

    # -- requests ------------------------------------------------------

    def submit(self, request: LiftRequest) -> LiftRequest:
        if request.state is not RequestState.CREATED:
            raise InvalidArgument(
                f"Request {request.request_id} was already submitted", field="request"
            )
        if not self.timings.contains(request.target_floor) or not self.timings.contains(
            request.origin_floor
        ):
            raise InvalidArgument(
                f"Request {request.request_id} targets a floor outside "
                f"[{self.timings.min_floor}, {self.timings.max_floor}]",
                field="floor",
            )
        if request.alias is not None and request.alias in self._aliases:
            raise InvalidArgument(f"Alias '{request.alias}' is already in use", field="alias")
        request.transition_to(RequestState.QUEUED, self.current_tick)
        self._active[request.request_id] = request
        if request.alias is not None:
            self._aliases[request.alias] = request.request_id
        self.history.append(request)
        self._log.delivered.append(request.request_id)
        return request

    def add_hall_call(self, floor: int, direction: Direction, alias: Optional[str] = None) -> LiftRequest:
        return self.submit(self.requests.hall_call(floor, direction, alias=alias))

    def add_car_call(self, origin: int, destination: int, alias: Optional[str] = None) -> LiftRequest:
        return self.submit(self.requests.car_call(origin, destination, alias=alias))

    def cancel_request(self, request_id: int) -> bool:
        request = self._active.get(request_id)
        if request is None:
            return False
        self._cancel(request)
        return True

    def cancel_alias(self, alias: str) -> bool:
        request_id = self._aliases.get(alias)
        if request_id is None:
            raise InvalidArgument(f"Unknown request alias: {alias}", field="alias")
        return self.cancel_request(request_id)

    def resolve_alias(self, alias: str) -> Optional[int]:
        return self._aliases.get(alias)

    def pending_requests(self, lift_id: Optional[int] = None) -> List[LiftRequest]:
        """Non-terminal requests, optionally limited to what one lift may serve."""
        requests = sorted(self._active.values(), key=lambda request: request.request_id)
        if lift_id is None:
            return requests
        return [
            request
            for request in requests
            if request.state is RequestState.QUEUED or request.assigned_lift == lift_id
        ]

    # -- service directives ---------------------------------------------

    def take_out_of_service(self, lift_id: int) -> None:
        lift = self._get_lift(lift_id)
        for request in self.pending_requests(lift_id):
            if request.assigned_lift != lift_id:
                continue
            if request.state is RequestState.ASSIGNED:
                self._release(request)
            else:
                self._cancel(request)
        lift.take_out_of_service(self.current_tick)
        self.strategies[lift_id].reset()
        logger.info("Lift %s out of service at tick %s", lift_id, self.current_tick)
        self._emit("out_of_service", {"lift_id": lift_id, "tick": self.current_tick})

    def return_to_service(self, lift_id: int) -> None:
        lift = self._get_lift(lift_id)
        if lift.in_service:
            raise InvalidArgument(f"Lift {lift_id} is not out of service", field="lift_id")
        lift.return_to_service(self.current_tick)
        self.strategies[lift_id].reset()
        logger.info("Lift %s back in service at tick %s", lift_id, self.current_tick)
        self._emit("return_to_service", {"lift_id": lift_id, "tick": self.current_tick})

    # -- hooks ---------------------------------------------------------

    def on_event(self, event: str, callback: Callable[[object], None]) -> None:
        self.event_hooks.setdefault(event, []).append(callback)

    def _emit(self, event: str, payload: object) -> None:
        for callback in self.event_hooks.get(event, []):
            callback(payload)

    # -- internals -----------------------------------------------------

    def _step_lift(self, lift: Lift, strategy: DispatchStrategy, tick: int) -> None:
        before = lift.state
        decision = strategy.decide(before, self.pending_requests(lift.lift_id), tick)
        if decision.target_id is not None:
            self._assign(lift.lift_id, decision.target_id, tick)

        result = lift.apply(decision.action, self.timings, tick)
        after = result.state
        logger.debug(
            "tick=%s lift=%s %s -> %s floor=%s action=%s",
            tick,
            lift.lift_id,
            before.status.value,
            after.status.value,
            after.floor,
            decision.action.value,
        )

        if after.status is LiftStatus.DOORS_OPENING and before.status is not LiftStatus.DOORS_OPENING:
            self._board(lift.lift_id, after, tick, RequestState.SERVING)
        elif after.status is LiftStatus.DOORS_OPEN:
            self._board(lift.lift_id, after, tick, RequestState.COMPLETED)

    def _assign(self, lift_id: int, target_id: int, tick: int) -> None:
        target = self._active.get(target_id)
        if target is None:
            raise InvalidArgument(
                f"Strategy for lift {lift_id} chose unknown request {target_id}", field="target_id"
            )
        for request in self._active.values():
            if (
                request is not target
                and request.assigned_lift == lift_id
                and request.state is RequestState.ASSIGNED
            ):
                self._release(request, tick)
        if target.state is RequestState.QUEUED:
            target.assigned_lift = lift_id
            target.transition_to(RequestState.ASSIGNED, tick)

    def _board(self, lift_id: int, state: LiftState, tick: int, until: RequestState) -> None:
        """Walk every request at the lift's floor forward to ``until``."""
        for request in self.pending_requests(lift_id):
            if request.target_floor != state.floor:
                continue
            if request.state is RequestState.QUEUED:
                request.assigned_lift = lift_id
                request.transition_to(RequestState.ASSIGNED, tick)
            if request.state is RequestState.ASSIGNED:
                request.transition_to(RequestState.SERVING, tick)
            if until is RequestState.COMPLETED:
                request.transition_to(RequestState.COMPLETED, tick)
                self._archive(request)
                self._log.completed.append(request.request_id)
                self._emit("request_completed", request)

    def _release(self, request: LiftRequest, tick: Optional[int] = None) -> None:
        request.transition_to(RequestState.QUEUED, self.current_tick if tick is None else tick)
        request.assigned_lift = None

    def _cancel(self, request: LiftRequest) -> None:
        request.transition_to(RequestState.CANCELLED, self.current_tick)
        self._archive(request)
        self._log.cancelled.append(request.request_id)
        logger.debug(
            "Request %s (%s) cancelled at tick %s",
            request.request_id,
            request.alias or request.type.value,
            self.current_tick,
        )
        self._emit("request_cancelled", request)

    def _archive(self, request: LiftRequest) -> None:
        self._active.pop(request.request_id, None)

    def _group_events(self) -> Dict[int, List[ScenarioEvent]]:
        timeline: Dict[int, List[ScenarioEvent]] = {}
        for event in self.scenario.events:
            timeline.setdefault(event.tick, []).append(event)
        return timeline

    def _get_lift(self, lift_id: int) -> Lift:
        for lift in self.lifts:
            if lift.lift_id == lift_id:
                return lift
        raise InvalidArgument(f"Unknown lift {lift_id}", field="lift_id")

