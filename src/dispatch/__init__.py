from __future__ import annotations

from typing import Dict, Type, Union

from simulation.domain import ControllerStrategy, IdleParkingMode, coerce_enum
from simulation.errors import Unsupported

from .directional_scan import DirectionalScan
from .interface import Decision, DispatchStrategy
from .nearest import NearestRequestRouting

__all__ = [
    "Decision",
    "DirectionalScan",
    "DispatchStrategy",
    "NearestRequestRouting",
    "STRATEGY_REGISTRY",
    "get_strategy",
]


STRATEGY_REGISTRY: Dict[ControllerStrategy, Type] = {
    ControllerStrategy.NEAREST_REQUEST_ROUTING: NearestRequestRouting,
    ControllerStrategy.DIRECTIONAL_SCAN: DirectionalScan,
}


def get_strategy(
    strategy_name: Union[ControllerStrategy, str, None],
    home_floor: int,
    idle_timeout_ticks: int,
    idle_parking_mode: Union[IdleParkingMode, str, None],
) -> DispatchStrategy:
    """Build the dispatch strategy named by a configuration value.

    The only place strategies are constructed.
    """
    strategy = coerce_enum(ControllerStrategy, strategy_name, "controller_strategy")
    mode = coerce_enum(IdleParkingMode, idle_parking_mode, "idle_parking_mode")
    cls = STRATEGY_REGISTRY[strategy]
    if not cls.implemented:
        raise Unsupported(f"Controller strategy '{strategy.value}' is not implemented yet")
    return cls(
        home_floor=home_floor,
        idle_timeout_ticks=idle_timeout_ticks,
        idle_parking_mode=mode,
    )
