from __future__ import annotations


class ParbenchError(Exception):
    """Base class for errors raised by parbench."""


class InvalidDimensions(ParbenchError, ValueError):
    """Raised when a grid is constructed with a non-positive size."""


class InvalidTransition(ParbenchError):
    """Raised when a slot is moved along an edge the state machine forbids."""

    def __init__(self, row: int, col: int, current: str, target: str, reason: str | None = None) -> None:
        self.row = row
        self.col = col
        self.current = current
        self.target = target
        message = f"slot ({row}, {col}): cannot transition {current} -> {target}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class NotStarted(ParbenchError):
    """Raised when timing data is requested before the benchmark started."""


class DivisionUndefined(ParbenchError):
    """Raised when a rate is requested over a zero-length interval."""


class AlreadyStarted(ParbenchError):
    """Raised when the benchmark start time is recorded twice."""


class AlreadyEnded(ParbenchError):
    """Raised when the benchmark end time is recorded twice."""


class ConfigError(ParbenchError, ValueError):
    """Raised for malformed configuration other than grid dimensions."""


__all__ = [
    "ParbenchError",
    "InvalidDimensions",
    "InvalidTransition",
    "NotStarted",
    "DivisionUndefined",
    "AlreadyStarted",
    "AlreadyEnded",
    "ConfigError",
]
