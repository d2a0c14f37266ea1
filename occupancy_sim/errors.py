"""
Exception hierarchy for occupancy simulation.

All errors are fatal: the run either produces a complete histogram or stops
before producing output.
"""

from typing import Optional


class OccupancySimError(Exception):
    """Base class for all occupancy-sim errors."""


class InvalidDistribution(OccupancySimError, ValueError):
    """Tenancy distribution is empty, all-zero, or has an out-of-range row."""


class MalformedRecord(OccupancySimError, ValueError):
    """An input row could not be parsed as (integer duration, real weight)."""

    def __init__(self, message: str, line: Optional[int] = None,
                 row: Optional[list] = None):
        self.line = line
        self.row = row
        if line is not None:
            message = f"line {line}: {message}"
        super().__init__(message)


class InvariantViolation(OccupancySimError, RuntimeError):
    """Internal accounting went wrong (negative occupancy, negative level)."""
