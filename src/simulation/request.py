from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional, Tuple

from .domain import Direction, RequestState, RequestType
from .errors import InvalidArgument, InvalidTransition

ALLOWED_TRANSITIONS: Dict[RequestState, FrozenSet[RequestState]] = {
    RequestState.CREATED: frozenset({RequestState.QUEUED, RequestState.CANCELLED}),
    RequestState.QUEUED: frozenset({RequestState.ASSIGNED, RequestState.CANCELLED}),
    RequestState.ASSIGNED: frozenset(
        {RequestState.SERVING, RequestState.QUEUED, RequestState.CANCELLED}
    ),
    RequestState.SERVING: frozenset({RequestState.COMPLETED, RequestState.CANCELLED}),
    RequestState.COMPLETED: frozenset(),
    RequestState.CANCELLED: frozenset(),
}


@dataclass
class LiftRequest:
    """A hall call or car call tracked from creation to a terminal state."""

    request_id: int
    type: RequestType
    origin_floor: int
    destination_floor: Optional[int] = None
    direction: Optional[Direction] = None
    alias: Optional[str] = None
    state: RequestState = RequestState.CREATED
    assigned_lift: Optional[int] = None
    history: List[Tuple[int, RequestState]] = field(default_factory=list)

    @property
    def target_floor(self) -> int:
        """Origin for hall calls, destination for car calls."""
        if self.type is RequestType.CAR_CALL:
            return self.destination_floor  # type: ignore[return-value]
        return self.origin_floor

    @property
    def terminal(self) -> bool:
        return self.state.terminal

    def can_transition_to(self, new_state: RequestState) -> bool:
        return new_state in ALLOWED_TRANSITIONS[self.state]

    def transition_to(self, new_state: RequestState, tick: Optional[int] = None) -> "LiftRequest":
        if not self.can_transition_to(new_state):
            raise InvalidTransition(
                f"Invalid state transition for request {self.request_id}: "
                f"{self.state.value} -> {new_state.value}",
                from_state=self.state,
                to_state=new_state,
                tick=tick,
                lift_id=self.assigned_lift,
            )
        self.state = new_state
        if tick is not None:
            self.history.append((tick, new_state))
        return self

    def to_dict(self) -> dict:
        return {
            "id": self.request_id,
            "type": self.type.value,
            "alias": self.alias,
            "origin_floor": self.origin_floor,
            "destination_floor": self.destination_floor,
            "direction": self.direction.value if self.direction else None,
            "state": self.state.value,
            "assigned_lift": self.assigned_lift,
            "history": [[tick, state.value] for tick, state in self.history],
        }


class RequestFactory:
    """Hands out requests with ids unique to one simulation run."""

    def __init__(self, start: int = 1) -> None:
        self._start = start
        self._ids = itertools.count(start)

    def reset(self) -> None:
        self._ids = itertools.count(self._start)

    def hall_call(
        self, floor: int, direction: Optional[Direction], alias: Optional[str] = None
    ) -> LiftRequest:
        if direction not in (Direction.UP, Direction.DOWN):
            raise InvalidArgument("Hall call direction must be UP or DOWN", field="direction")
        return LiftRequest(
            request_id=next(self._ids),
            type=RequestType.HALL_CALL,
            origin_floor=floor,
            direction=direction,
            alias=alias,
        )

    def car_call(self, origin: int, destination: int, alias: Optional[str] = None) -> LiftRequest:
        if origin == destination:
            raise InvalidArgument(
                f"Car call destination {destination} equals its origin", field="destination_floor"
            )
        return LiftRequest(
            request_id=next(self._ids),
            type=RequestType.CAR_CALL,
            origin_floor=origin,
            destination_floor=destination,
            direction=Direction.UP if destination > origin else Direction.DOWN,
            alias=alias,
        )
