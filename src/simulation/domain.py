from __future__ import annotations

from enum import Enum
from typing import Type, TypeVar, Union

from .errors import InvalidArgument

E = TypeVar("E", bound=Enum)


class Direction(str, Enum):
    UP = "UP"
    DOWN = "DOWN"
    IDLE = "IDLE"


class Action(str, Enum):
    """What a lift is asked to do during one tick."""

    MOVE_UP = "MOVE_UP"
    MOVE_DOWN = "MOVE_DOWN"
    OPEN_DOORS = "OPEN_DOORS"
    CLOSE_DOORS = "CLOSE_DOORS"
    STAY_IDLE = "STAY_IDLE"


class LiftStatus(str, Enum):
    IDLE = "IDLE"
    MOVING_UP = "MOVING_UP"
    MOVING_DOWN = "MOVING_DOWN"
    DOORS_OPENING = "DOORS_OPENING"
    DOORS_OPEN = "DOORS_OPEN"
    DOORS_CLOSING = "DOORS_CLOSING"
    OUT_OF_SERVICE = "OUT_OF_SERVICE"


class RequestType(str, Enum):
    HALL_CALL = "HALL_CALL"
    CAR_CALL = "CAR_CALL"


class RequestState(str, Enum):
    CREATED = "CREATED"
    QUEUED = "QUEUED"
    ASSIGNED = "ASSIGNED"
    SERVING = "SERVING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

    @property
    def terminal(self) -> bool:
        return self in (RequestState.COMPLETED, RequestState.CANCELLED)


class ControllerStrategy(str, Enum):
    NEAREST_REQUEST_ROUTING = "NEAREST_REQUEST_ROUTING"
    DIRECTIONAL_SCAN = "DIRECTIONAL_SCAN"


class IdleParkingMode(str, Enum):
    STAY_AT_CURRENT_FLOOR = "STAY_AT_CURRENT_FLOOR"
    PARK_TO_HOME_FLOOR = "PARK_TO_HOME_FLOOR"


class RunStatus(str, Enum):
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


def coerce_enum(enum_cls: Type[E], value: Union[E, str, None], field: str) -> E:
    """Resolve an enum member from itself or its canonical uppercase name."""
    if value is None:
        raise InvalidArgument(f"{field} is required", field=field)
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise InvalidArgument(
            f"Unknown {field} '{value}'. Available: {allowed}", field=field
        ) from None
