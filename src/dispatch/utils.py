from __future__ import annotations

from typing import Iterable, Optional

from simulation.domain import Action
from simulation.request import LiftRequest


def nearest_request(requests: Iterable[LiftRequest], floor: int) -> Optional[LiftRequest]:
    """Closest request to ``floor``; equal distances go to the oldest id."""

    return min(
        requests,
        key=lambda req: (abs(req.target_floor - floor), req.request_id),
        default=None,
    )


def move_toward(current_floor: int, target_floor: int) -> Action:
    if current_floor < target_floor:
        return Action.MOVE_UP
    if current_floor > target_floor:
        return Action.MOVE_DOWN
    return Action.STAY_IDLE
