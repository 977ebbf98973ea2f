"""Simulation primitives for the lift simulator.

The engine lives in :mod:`simulation.engine` and is imported from there.
"""

from .config import LiftTimings
from .domain import (
    Action,
    ControllerStrategy,
    Direction,
    IdleParkingMode,
    LiftStatus,
    RequestState,
    RequestType,
    RunStatus,
)
from .errors import InvalidArgument, InvalidTransition, LiftSimulatorError, ParseError, Unsupported
from .lift import Lift, LiftState, apply_action
from .request import LiftRequest, RequestFactory

__all__ = [
    "Action",
    "ControllerStrategy",
    "Direction",
    "IdleParkingMode",
    "InvalidArgument",
    "InvalidTransition",
    "Lift",
    "LiftRequest",
    "LiftSimulatorError",
    "LiftState",
    "LiftStatus",
    "LiftTimings",
    "ParseError",
    "RequestFactory",
    "RequestState",
    "RequestType",
    "RunStatus",
    "Unsupported",
    "apply_action",
]
