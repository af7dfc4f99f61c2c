"""
modules/scheduling/errors.py - Exceptions raised by scheduling commands.

Routes translate these into HTTP errors; undo misses are not exceptions and
come back as a failed CommandResult instead.
"""

from typing import Optional


class SchedulingError(Exception):
    """Base class for scheduling failures that leave the store untouched."""


class InvalidDateError(SchedulingError, ValueError):
    """A maintenance date could not be parsed or falls outside the accepted range."""

    def __init__(self, value, reason: str):
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid maintenance date {value!r}: {reason}")


class UnknownFloorError(SchedulingError, KeyError):
    """The (tower, floor) pair is not part of the configured key space."""

    def __init__(self, tower_id: str, floor: Optional[int] = None):
        self.tower_id = tower_id
        self.floor = floor
        if floor is None:
            super().__init__(f"Unknown tower '{tower_id}'")
        else:
            super().__init__(f"Unknown floor {floor} in tower '{tower_id}'")

    def __str__(self) -> str:
        # KeyError.__str__ would repr() the message
        return self.args[0]
