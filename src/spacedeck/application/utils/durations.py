"""Helpers for entering policy durations in minutes, hours, or days."""

from typing import Literal

from spacedeck.domain.constants import MINUTES_PER_DAY, MINUTES_PER_HOUR

DurationUnit = Literal["minutes", "hours", "days"]

UNIT_MINUTES: dict[str, int] = {
    "minutes": 1,
    "hours": MINUTES_PER_HOUR,
    "days": MINUTES_PER_DAY,
}


def split_duration(minutes: int) -> tuple[int, DurationUnit]:
    """
    Express minutes in the largest unit that divides it evenly.

    Examples:
        2880 -> (2, "days"), 120 -> (2, "hours"), 90 -> (90, "minutes")
    """
    if minutes >= MINUTES_PER_DAY and minutes % MINUTES_PER_DAY == 0:
        return minutes // MINUTES_PER_DAY, "days"
    if minutes >= MINUTES_PER_HOUR and minutes % MINUTES_PER_HOUR == 0:
        return minutes // MINUTES_PER_HOUR, "hours"
    return minutes, "minutes"


def to_minutes(value: int, unit: str, minimum: int = 1) -> int:
    """
    Convert a value in the given unit to minutes, clamped at minimum.

    Raises:
        ValueError: if unit is not minutes, hours or days.
    """
    try:
        factor = UNIT_MINUTES[unit]
    except KeyError:
        raise ValueError(f"Unknown duration unit: {unit!r}") from None
    return max(minimum, value * factor)


def parse_duration(text: str, minimum: int = 1) -> int:
    """
    Parse a short duration like "10m", "6h", "4d" or a bare minute count.

    Raises:
        ValueError: if the text is not a recognised duration.
    """
    text = text.strip().lower()
    suffixes = {"m": "minutes", "h": "hours", "d": "days"}
    if text and text[-1] in suffixes:
        number, unit = text[:-1], suffixes[text[-1]]
    else:
        number, unit = text, "minutes"
    if not number.isdigit():
        raise ValueError(f"Invalid duration: {text!r}")
    return to_minutes(int(number), unit, minimum=minimum)
