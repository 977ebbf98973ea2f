from __future__ import annotations

from dataclasses import dataclass

from .errors import InvalidArgument


@dataclass(frozen=True)
class LiftTimings:
    """Physical constraints shared by every lift in a run."""

    min_floor: int = 0
    max_floor: int = 9
    travel_ticks_per_floor: int = 1
    door_transition_ticks: int = 1
    door_dwell_ticks: int = 1
    door_reopen_window_ticks: int = 0

    def __post_init__(self) -> None:
        if self.min_floor >= self.max_floor:
            raise InvalidArgument(
                f"min_floor ({self.min_floor}) must be below max_floor ({self.max_floor})",
                field="min_floor",
            )
        for name in ("travel_ticks_per_floor", "door_transition_ticks", "door_dwell_ticks"):
            if getattr(self, name) < 1:
                raise InvalidArgument(f"{name} must be at least 1", field=name)
        if not 0 <= self.door_reopen_window_ticks <= self.door_transition_ticks:
            raise InvalidArgument(
                f"door_reopen_window_ticks ({self.door_reopen_window_ticks}) must be between 0 "
                f"and door_transition_ticks ({self.door_transition_ticks})",
                field="door_reopen_window_ticks",
            )

    def contains(self, floor: int) -> bool:
        return self.min_floor <= floor <= self.max_floor
