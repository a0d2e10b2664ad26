import pytest

from spacedeck.application.utils.durations import parse_duration, split_duration, to_minutes


@pytest.mark.parametrize(
    "minutes,expected",
    [
        (10, (10, "minutes")),
        (90, (90, "minutes")),
        (120, (2, "hours")),
        (1440, (1, "days")),
        (8640, (6, "days")),
        (1500, (25, "hours")),
    ],
)
def test_split_duration(minutes, expected):
    assert split_duration(minutes) == expected


def test_to_minutes():
    assert to_minutes(6, "days") == 8640
    assert to_minutes(3, "hours") == 180
    assert to_minutes(0, "minutes") == 1
    assert to_minutes(0, "minutes", minimum=0) == 0


def test_to_minutes_unknown_unit():
    with pytest.raises(ValueError, match="weeks"):
        to_minutes(1, "weeks")


@pytest.mark.parametrize("text,minutes", [("10m", 10), ("6h", 360), ("4D", 5760), (" 15 ", 15)])
def test_parse_duration(text, minutes):
    assert parse_duration(text) == minutes


@pytest.mark.parametrize("text", ["", "m", "1.5h", "-3d", "ten"])
def test_parse_duration_invalid(text):
    with pytest.raises(ValueError):
        parse_duration(text)
