from __future__ import annotations

from typing import Sequence

from simulation.domain import IdleParkingMode
from simulation.errors import Unsupported
from simulation.lift import LiftState
from simulation.request import LiftRequest

from .interface import Decision


class DirectionalScan:
    """Keeps travelling in one direction while requests lie ahead.

    Declared so that configurations can name it. The reversal rule
    (building extreme or furthest pending request) is still undecided, so
    the class refuses to run rather than guess.
    """

    implemented = False

    def __init__(
        self,
        home_floor: int = 0,
        idle_timeout_ticks: int = 5,
        idle_parking_mode: IdleParkingMode = IdleParkingMode.PARK_TO_HOME_FLOOR,
    ) -> None:
        raise Unsupported("DIRECTIONAL_SCAN is declared but not implemented")

    def reset(self) -> None:
        raise Unsupported("DIRECTIONAL_SCAN is declared but not implemented")

    def decide(
        self,
        lift_state: LiftState,
        pending_requests: Sequence[LiftRequest],
        tick: int,
    ) -> Decision:
        raise Unsupported("DIRECTIONAL_SCAN is declared but not implemented")
