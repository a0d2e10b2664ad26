"""
Interval scheduler for spaced-repetition reviews.

This is a pure computation module with no I/O.

The ease update is the SM-2 formula applied to every rating, Fail
included. Once an item has passed its two fixed learning steps the
interval grows by the ease factor the item had *before* this rating.
"""

import math
from datetime import datetime, timedelta, timezone

from spacedeck.domain.constants import (
    DAYS_PER_MONTH,
    DAYS_PER_YEAR,
    MAX_QUALITY,
    MIN_EASE_FACTOR,
    MINUTES_PER_DAY,
    MINUTES_PER_HOUR,
    MONTH_LABEL_LIMIT,
    PASSING_QUALITY,
    YEAR_LABEL_LIMIT,
)
from spacedeck.domain.scheduling.models import Rating, SchedulingPolicy, SchedulingState


def adjust_ease(ease_factor: float, quality: int) -> float:
    """
    Apply the SM-2 ease delta for a quality ordinal, floored at 1.3.

    EF' = EF + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02))
    """
    miss = MAX_QUALITY - quality
    new_ease = ease_factor + (0.1 - miss * (0.08 + miss * 0.02))
    return max(new_ease, MIN_EASE_FACTOR)


def _next_repetition_and_interval(
    state: SchedulingState,
    policy: SchedulingPolicy,
    rating: Rating,
) -> tuple[int, int]:
    quality = int(rating)

    if quality < PASSING_QUALITY:
        return 0, policy.lapse_interval_minutes

    repetition = state.repetition_count + 1
    if repetition == 1:
        interval = policy.first_step_minutes
    elif repetition == 2:
        interval = policy.second_step_minutes
    else:
        interval = math.ceil(state.interval_minutes * state.ease_factor)

    if quality == MAX_QUALITY:
        interval = math.ceil(interval * policy.easy_bonus_multiplier)

    return repetition, interval


def preview_intervals(
    state: SchedulingState,
    policy: SchedulingPolicy,
) -> dict[Rating, int]:
    """
    Compute the resulting interval for every rating without touching state.

    Returns:
        Mapping of each Rating to its interval in minutes, in Fail..Easy order.
    """
    return {
        rating: _next_repetition_and_interval(state, policy, rating)[1] for rating in Rating
    }


def preview_labels(state: SchedulingState, policy: SchedulingPolicy) -> dict[Rating, str]:
    """Same as preview_intervals, rendered for the rating buttons."""
    return {
        rating: format_interval(minutes)
        for rating, minutes in preview_intervals(state, policy).items()
    }


def commit(
    state: SchedulingState,
    policy: SchedulingPolicy,
    rating: Rating | int | str,
    now: datetime | None = None,
) -> SchedulingState:
    """
    Compute the replacement state for a rating decision.

    Args:
        state: The item's current state snapshot.
        policy: The user's active scheduling policy.
        rating: One of the four ratings (enum, ordinal or name).
        now: Reference time for next_review_at; defaults to current UTC time.

    Returns:
        A new SchedulingState. The input is never mutated.

    Raises:
        InvalidRatingError: if rating is not one of Fail, Hard, Good, Easy.
    """
    rating = Rating.parse(rating)
    if now is None:
        now = datetime.now(timezone.utc)

    repetition, interval = _next_repetition_and_interval(state, policy, rating)
    return SchedulingState(
        repetition_count=repetition,
        ease_factor=adjust_ease(state.ease_factor, int(rating)),
        interval_minutes=interval,
        next_review_at=now + timedelta(minutes=interval),
    )


def initial_state(policy: SchedulingPolicy, now: datetime | None = None) -> SchedulingState:
    """State assigned to a freshly created item: due immediately."""
    if now is None:
        now = datetime.now(timezone.utc)
    return SchedulingState(
        repetition_count=0,
        ease_factor=policy.starting_ease_factor,
        interval_minutes=0,
        next_review_at=now,
    )


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def format_interval(minutes: float) -> str:
    """
    Render an interval in minutes as a short label.

    Each tier rounds on its own, so 59.6 minutes reads "60m" rather than "1h".
    """
    if minutes < 1:
        return "<1m"
    if minutes < MINUTES_PER_HOUR:
        return f"{_round_half_up(minutes)}m"
    if minutes < MINUTES_PER_DAY:
        return f"{_round_half_up(minutes / MINUTES_PER_HOUR)}h"

    days = minutes / MINUTES_PER_DAY
    if minutes < MONTH_LABEL_LIMIT:
        return f"{_round_half_up(days)}d"
    if minutes < YEAR_LABEL_LIMIT:
        return f"{_round_half_up(days / DAYS_PER_MONTH)}mo"
    return f"{_round_half_up(days / DAYS_PER_YEAR)}a"
