from datetime import datetime, timezone

import pytest

from spacedeck.domain.hierarchy.models import ContainerRecord, LeafRecord
from spacedeck.domain.scheduling.models import SchedulingPolicy, SchedulingState

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def policy():
    return SchedulingPolicy.baseline()


@pytest.fixture
def fresh_state():
    """A never-reviewed item with the baseline starting ease."""
    return SchedulingState(
        repetition_count=0, ease_factor=2.5, interval_minutes=0, next_review_at=NOW
    )


@pytest.fixture
def records():
    """
    Flat snapshot, deliberately listing children before their parents:

    Math (f1)
      Algebra (f2)
        Linear (f3)
        Matrices (leaf d2)
      Calculus (leaf d1)
    Languages (f4)
      Dutch (leaf d3)
    Loose (leaf d4)
    """
    containers = [
        ContainerRecord("f3", "Linear", "f2"),
        ContainerRecord("f2", "Algebra", "f1"),
        ContainerRecord("f1", "Math", None),
        ContainerRecord("f4", "Languages", None),
    ]
    leaves = [
        LeafRecord("d1", "Calculus", "f1"),
        LeafRecord("d2", "Matrices", "f2"),
        LeafRecord("d3", "Dutch", "f4"),
        LeafRecord("d4", "Loose", None),
    ]
    return containers, leaves


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()

    # Mocking HOME to a temp directory to isolate config/logs
    monkeypatch.setenv("HOME", str(home))
    return home
