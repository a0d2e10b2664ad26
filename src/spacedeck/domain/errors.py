"""
Error types for the spacedeck domain.

Scheduling errors are raised: a bad rating or policy is a contract
violation and the operation must not proceed. Hierarchy validation
errors are values: callers inspect a ValidationResult and decide
whether to prompt for a rename or silently block a move.
"""

from dataclasses import dataclass
from enum import Enum


class SpacedeckError(Exception):
    """Base class for all spacedeck errors."""


class InvalidRatingError(SpacedeckError, ValueError):
    """Rating outside the four admissible values (Fail, Hard, Good, Easy)."""

    def __init__(self, value: object):
        self.value = value
        super().__init__(f"Invalid rating: {value!r}. Expected one of fail, hard, good, easy.")


class InvalidPolicyError(SpacedeckError, ValueError):
    """Scheduling policy violates its invariants."""


class SessionStateError(SpacedeckError, RuntimeError):
    """ReviewSession operation called in a state where it is not allowed."""


class ValidationError(str, Enum):
    DUPLICATE_NAME = "duplicate_name"
    INVALID_TARGET = "invalid_target"
    EMPTY_NAME = "empty_name"


@dataclass(frozen=True)
class ValidationResult:
    """
    Outcome of a hierarchy validation.

    Attributes:
        ok: True if the mutation may be dispatched to storage.
        error: Error kind when ok is False.
        message: Human-readable reason, suitable for a prompt.
    """

    ok: bool
    error: ValidationError | None = None
    message: str = ""

    @classmethod
    def success(cls) -> "ValidationResult":
        return cls(ok=True)

    @classmethod
    def failure(cls, error: ValidationError, message: str) -> "ValidationResult":
        return cls(ok=False, error=error, message=message)

    def __bool__(self) -> bool:
        return self.ok


class SnapshotError(SpacedeckError):
    """A storage snapshot could not be parsed into domain records."""
