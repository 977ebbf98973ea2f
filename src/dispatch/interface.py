from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol, Sequence

from simulation.domain import Action
from simulation.lift import LiftState
from simulation.request import LiftRequest


@dataclass(frozen=True)
class Decision:
    """Action for one lift in one tick, plus the request it is heading for.

    ``target_id`` of ``None`` leaves the lift's current assignment alone.
    """

    action: Action
    target_id: Optional[int] = None


class DispatchStrategy(Protocol):
    """Strategy interface for deciding what a single lift does next."""

    def decide(
        self,
        lift_state: LiftState,
        pending_requests: Sequence[LiftRequest],
        tick: int,
    ) -> Decision:
        """
        Return the action for this tick.

        ``pending_requests`` holds the non-terminal requests that are either
        queued or already held by this lift. Implementations must not
        change request states themselves; the engine applies the decision.
        """
        ...

    def reset(self) -> None:
        """Forget per-run bookkeeping such as idle tracking."""
        ...
