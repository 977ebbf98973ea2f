from __future__ import annotations

from typing import Optional


class LiftSimulatorError(Exception):
    """Base class for every error raised by the simulator."""


class InvalidArgument(LiftSimulatorError, ValueError):
    """A caller supplied a missing or out-of-range value."""

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field


class Unsupported(LiftSimulatorError, NotImplementedError):
    """A declared feature was requested but is not implemented."""


class InvalidTransition(LiftSimulatorError, RuntimeError):
    """A lift or request state change outside the allowed table.

    Raised from inside a run, this always indicates an engine bug; the run
    is aborted with the offending tick and lift attached.
    """

    def __init__(
        self,
        message: str,
        from_state: object = None,
        to_state: object = None,
        tick: Optional[int] = None,
        lift_id: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.from_state = from_state
        self.to_state = to_state
        self.tick = tick
        self.lift_id = lift_id

    def __str__(self) -> str:
        context = []
        if self.tick is not None:
            context.append(f"tick={self.tick}")
        if self.lift_id is not None:
            context.append(f"lift={self.lift_id}")
        base = super().__str__()
        return f"{base} ({', '.join(context)})" if context else base


class ParseError(LiftSimulatorError, ValueError):
    """Scenario text could not be turned into a scenario definition."""

    def __init__(self, line: Optional[int], field: Optional[str], reason: str) -> None:
        self.line = line
        self.field = field
        self.reason = reason
        location = f"line {line}" if line is not None else "end of input"
        subject = f" [{field}]" if field else ""
        super().__init__(f"{location}{subject}: {reason}")
