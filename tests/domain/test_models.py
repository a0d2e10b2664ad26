import pytest

from spacedeck.domain.errors import (
    InvalidPolicyError,
    InvalidRatingError,
    ValidationError,
    ValidationResult,
)
from spacedeck.domain.hierarchy.models import (
    ContainerRecord,
    DeletePlan,
    LeafRecord,
    LeafReparent,
    NodeKind,
)
from spacedeck.domain.scheduling.models import Rating, SchedulingPolicy


class TestRating:
    def test_ordinals(self):
        assert [int(r) for r in Rating] == [0, 3, 4, 5]

    @pytest.mark.parametrize(
        "value,expected",
        [(0, Rating.FAIL), ("hard", Rating.HARD), ("Good", Rating.GOOD), ("5", Rating.EASY)],
    )
    def test_parse(self, value, expected):
        assert Rating.parse(value) is expected

    @pytest.mark.parametrize("value", [1, 2, "again", "", 3.0, False])
    def test_parse_rejects(self, value):
        with pytest.raises(InvalidRatingError) as exc:
            Rating.parse(value)
        assert exc.value.value == value
        assert isinstance(exc.value, ValueError)

    def test_label(self):
        assert Rating.EASY.label == "Easy"


class TestSchedulingPolicy:
    def test_baseline(self):
        policy = SchedulingPolicy.baseline()
        assert (
            policy.lapse_interval_minutes,
            policy.first_step_minutes,
            policy.second_step_minutes,
            policy.easy_bonus_multiplier,
            policy.starting_ease_factor,
        ) == (10, 1440, 8640, 1.3, 2.5)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"lapse_interval_minutes": 0},
            {"first_step_minutes": -1},
            {"second_step_minutes": 1.5},
            {"easy_bonus_multiplier": 0.9},
            {"starting_ease_factor": 1.29},
            {"easy_bonus_multiplier": float("nan")},
            {"easy_bonus_multiplier": float("inf")},
            {"easy_bonus_multiplier": "1.5"},
            {"starting_ease_factor": True},
            {"starting_ease_factor": float("nan")},
        ],
    )
    def test_invariants(self, kwargs):
        with pytest.raises(InvalidPolicyError):
            SchedulingPolicy(**kwargs)


def test_state_is_due(fresh_state, now):
    assert fresh_state.is_due(now)


def test_record_parent_ref():
    assert ContainerRecord("f1", "A", "f0").parent_ref == "f0"
    assert LeafRecord("d1", "B", "f1").parent_ref == "f1"
    assert ContainerRecord("f1", "A").kind is NodeKind.CONTAINER
    assert LeafRecord("d1", "B").kind is NodeKind.LEAF


def test_delete_plan_ids():
    plan = DeletePlan(
        delete_container_ids=["f1"], reparent=[LeafReparent("d1", None)]
    )
    assert plan.delete_ids == ["f1"]


def test_validation_result_truthiness():
    assert ValidationResult.success()
    failure = ValidationResult.failure(ValidationError.INVALID_TARGET, "no")
    assert not failure
    assert failure.error.value == "invalid_target"
