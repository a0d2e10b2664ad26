"""
Domain models for scheduling.

These are pure data structures with no I/O or external dependencies.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum

from spacedeck.domain.constants import (
    DEFAULT_EASY_BONUS_MULTIPLIER,
    DEFAULT_FIRST_STEP_MINUTES,
    DEFAULT_LAPSE_INTERVAL_MINUTES,
    DEFAULT_SECOND_STEP_MINUTES,
    DEFAULT_STARTING_EASE_FACTOR,
    MIN_EASE_FACTOR,
)
from spacedeck.domain.errors import InvalidPolicyError, InvalidRatingError


class Rating(IntEnum):
    """
    Recall quality signal.

    The value is the ordinal fed into the ease-adjustment formula.
    """

    FAIL = 0
    HARD = 3
    GOOD = 4
    EASY = 5

    @classmethod
    def parse(cls, value: "Rating | int | str") -> "Rating":
        """
        Coerce an ordinal, a name ("good", "Easy") or a Rating into a Rating.

        Raises:
            InvalidRatingError: if the value is not one of the four ratings.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, bool):
            raise InvalidRatingError(value)
        if isinstance(value, int):
            try:
                return cls(value)
            except ValueError:
                raise InvalidRatingError(value) from None
        if isinstance(value, str):
            text = value.strip()
            if text.isdigit():
                return cls.parse(int(text))
            try:
                return cls[text.upper()]
            except KeyError:
                raise InvalidRatingError(value) from None
        raise InvalidRatingError(value)

    @property
    def label(self) -> str:
        return self.name.capitalize()


@dataclass(frozen=True)
class SchedulingState:
    """
    Memory-strength state of a single learning item.

    Attributes:
        repetition_count: Consecutive successful recalls since the last lapse.
        ease_factor: Multiplicative growth rate of the interval (>= 1.3).
        interval_minutes: Time until the next due date.
        next_review_at: The item is due when this is <= now.
    """

    repetition_count: int
    ease_factor: float
    interval_minutes: int
    next_review_at: datetime

    def is_due(self, now: datetime) -> bool:
        return self.next_review_at <= now


@dataclass(frozen=True)
class SchedulingPolicy:
    """
    Per-user scheduling configuration.

    All durations are in minutes. A user without an override gets baseline().
    """

    lapse_interval_minutes: int = DEFAULT_LAPSE_INTERVAL_MINUTES
    first_step_minutes: int = DEFAULT_FIRST_STEP_MINUTES
    second_step_minutes: int = DEFAULT_SECOND_STEP_MINUTES
    easy_bonus_multiplier: float = DEFAULT_EASY_BONUS_MULTIPLIER
    starting_ease_factor: float = DEFAULT_STARTING_EASE_FACTOR

    def __post_init__(self):
        for name in ("lapse_interval_minutes", "first_step_minutes", "second_step_minutes"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise InvalidPolicyError(f"{name} must be a positive integer, got {value!r}")
        for name, minimum in (
            ("easy_bonus_multiplier", 1.0),
            ("starting_ease_factor", MIN_EASE_FACTOR),
        ):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise InvalidPolicyError(f"{name} must be a number, got {value!r}")
            # NaN fails every comparison, so check finiteness first
            if not math.isfinite(value) or value < minimum:
                raise InvalidPolicyError(f"{name} must be finite and >= {minimum}, got {value!r}")

    @classmethod
    def baseline(cls) -> "SchedulingPolicy":
        return cls()


@dataclass(frozen=True)
class ReviewItem:
    """A due item as handed to a review session."""

    item_id: str
    state: SchedulingState
    front: str = ""
    back: str = ""
    extra: dict = field(default_factory=dict, compare=False)
