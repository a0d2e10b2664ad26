"""Tests for tree building, move/rename validation and delete planning."""

import pytest

from spacedeck.application.hierarchy_manager import (
    build_tree,
    children_of,
    compute_move_targets,
    iter_nodes,
    list_move_destinations,
    plan_delete,
    validate_create,
    validate_move,
    validate_rename,
)
from spacedeck.domain.errors import ValidationError
from spacedeck.domain.hierarchy.models import (
    ContainerNode,
    ContainerRecord,
    LeafRecord,
    LeafReparent,
    NodeKind,
)


@pytest.fixture
def forest(records):
    containers, leaves = records
    return build_tree(containers, leaves)


def _by_id(records, node_id):
    containers, leaves = records
    return next(r for r in [*containers, *leaves] if r.id == node_id)


class TestBuildTree:
    def test_roots_and_arena(self, forest):
        assert [n.id for n in forest.roots] == ["f4", "f1", "d4"]
        assert set(forest.containers) == {"f1", "f2", "f3", "f4"}
        assert set(forest.leaves) == {"d1", "d2", "d3", "d4"}
        assert len(forest) == 8

    def test_children_before_parents_in_input(self, forest):
        math = forest.containers["f1"]
        assert [c.id for c in math.children] == ["f2", "d1"]
        assert [c.id for c in forest.containers["f2"].children] == ["f3", "d2"]

    def test_display_order(self, forest):
        order = [(node.name, depth) for node, depth in iter_nodes(forest)]
        assert order == [
            ("Languages", 0),
            ("Dutch", 1),
            ("Math", 0),
            ("Algebra", 1),
            ("Linear", 2),
            ("Matrices", 2),
            ("Calculus", 1),
            ("Loose", 0),
        ]

    def test_containers_before_leaves_then_case_insensitive(self):
        forest = build_tree(
            [ContainerRecord("c1", "beta"), ContainerRecord("c2", "Alpha")],
            [LeafRecord("l1", "aardvark"), LeafRecord("l2", "Zebra"), LeafRecord("l3", "apple")],
        )
        assert [n.name for n in forest.roots] == ["Alpha", "beta", "aardvark", "apple", "Zebra"]

    def test_missing_parent_becomes_root(self):
        forest = build_tree(
            [ContainerRecord("c1", "Orphan", "gone")], [LeafRecord("l1", "x", "gone")]
        )
        assert {n.id for n in forest.roots} == {"c1", "l1"}

    def test_parent_cycle_is_broken(self):
        forest = build_tree(
            [ContainerRecord("a", "A", "b"), ContainerRecord("b", "B", "a")],
            [],
        )
        assert [n.id for n in forest.roots] == ["a"]
        assert [c.id for c in forest.containers["a"].children] == ["b"]
        assert forest.containers["b"].children == []

    def test_empty(self):
        forest = build_tree([], [])
        assert forest.roots == []
        assert len(forest) == 0

    def test_payload_carried(self):
        forest = build_tree([], [LeafRecord("l1", "Deck", None, payload={"cards": 12})])
        assert forest.leaves["l1"].payload == {"cards": 12}

    def test_rebuild_returns_new_forest(self, records):
        containers, leaves = records
        first = build_tree(containers, leaves)
        second = build_tree(containers, leaves)
        assert first is not second
        assert first.containers["f1"] is not second.containers["f1"]


class TestComputeMoveTargets:
    def test_nested_container(self, forest):
        assert compute_move_targets("f1", forest) == {"f1", "f2", "f3"}

    def test_excludes_unrelated(self, forest):
        targets = compute_move_targets("f2", forest)
        assert targets == {"f2", "f3"}
        assert "f1" not in targets
        assert "f4" not in targets

    def test_leaf_has_no_forbidden_targets(self, forest):
        assert compute_move_targets("d1", forest) == set()

    def test_unknown_id(self, forest):
        with pytest.raises(KeyError):
            compute_move_targets("nope", forest)


class TestValidateMove:
    @pytest.mark.parametrize("target", ["f1", "f2", "f3"])
    def test_rejects_own_subtree(self, forest, records, target):
        result = validate_move(_by_id(records, "f1"), target, forest)

        assert not result.ok
        assert result.error is ValidationError.INVALID_TARGET

    def test_allows_unrelated_container(self, forest, records):
        assert validate_move(_by_id(records, "f2"), "f4", forest).ok

    def test_allows_move_to_root(self, forest, records):
        assert validate_move(_by_id(records, "f2"), None, forest).ok

    def test_unknown_destination(self, forest, records):
        result = validate_move(_by_id(records, "d1"), "missing", forest)
        assert result.error is ValidationError.INVALID_TARGET

    def test_name_collision_case_insensitive(self):
        containers = [
            ContainerRecord("f1", "Math"),
            ContainerRecord("f2", "School"),
            ContainerRecord("f3", "math", "f2"),
        ]
        forest = build_tree(containers, [])

        result = validate_move(containers[2], None, forest)

        assert not result.ok
        assert result.error is ValidationError.DUPLICATE_NAME

    def test_same_name_different_kind_allowed(self, forest):
        mover = ContainerRecord("f5", "Calculus", None)
        forest.containers["f5"] = ContainerNode("f5", "Calculus", None)
        forest.roots.append(forest.containers["f5"])

        assert validate_move(mover, "f1", forest).ok

    def test_leaf_collision(self, forest):
        mover = LeafRecord("d9", "calculus", None)
        result = validate_move(mover, "f1", forest)
        assert result.error is ValidationError.DUPLICATE_NAME

    def test_leaf_may_go_anywhere(self, forest, records):
        leaf = _by_id(records, "d4")
        for container_id in forest.containers:
            assert validate_move(leaf, container_id, forest).ok

    def test_staying_put_is_not_a_collision(self, forest, records):
        assert validate_move(_by_id(records, "d1"), "f1", forest).ok


class TestValidateCreate:
    def test_duplicate_container(self, records):
        containers, leaves = records
        result = validate_create(NodeKind.CONTAINER, "math", None, [*containers, *leaves])
        assert result.error is ValidationError.DUPLICATE_NAME

    def test_kinds_are_namespaced(self, records):
        containers, leaves = records
        assert validate_create(NodeKind.LEAF, "Math", None, [*containers, *leaves]).ok

    def test_other_parent_is_fine(self, records):
        containers, leaves = records
        assert validate_create(NodeKind.CONTAINER, "Math", "f4", [*containers, *leaves]).ok

    def test_whitespace_trimmed(self, records):
        containers, leaves = records
        result = validate_create(NodeKind.LEAF, "  calculus ", "f1", [*containers, *leaves])
        assert result.error is ValidationError.DUPLICATE_NAME

    def test_empty_name(self, records):
        containers, leaves = records
        result = validate_create(NodeKind.CONTAINER, "   ", None, [*containers, *leaves])
        assert result.error is ValidationError.EMPTY_NAME

    def test_accepts_tree_nodes(self, forest):
        result = validate_create(NodeKind.CONTAINER, "ALGEBRA", "f1", children_of(forest, "f1"))
        assert result.error is ValidationError.DUPLICATE_NAME


class TestValidateRename:
    def test_case_change_of_self_allowed(self, records):
        containers, leaves = records
        assert validate_rename(_by_id(records, "f1"), "MATH", [*containers, *leaves]).ok

    def test_collision_with_sibling(self, records):
        containers, leaves = records
        result = validate_rename(_by_id(records, "f4"), "math", [*containers, *leaves])
        assert not result
        assert result.error is ValidationError.DUPLICATE_NAME
        assert "math" in result.message

    def test_same_name_under_other_parent(self, records):
        containers, leaves = records
        assert validate_rename(_by_id(records, "d1"), "Matrices", [*containers, *leaves]).ok

    def test_empty(self, records):
        containers, leaves = records
        result = validate_rename(_by_id(records, "d1"), "", [*containers, *leaves])
        assert result.error is ValidationError.EMPTY_NAME


class TestMoveDestinations:
    def test_container_excludes_own_subtree(self, forest):
        dests = [(c.id, depth) for c, depth in list_move_destinations("f2", forest)]
        assert dests == [("f4", 0), ("f1", 0)]

    def test_leaf_sees_everything(self, forest):
        dests = [(c.id, depth) for c, depth in list_move_destinations("d4", forest)]
        assert dests == [("f4", 0), ("f1", 0), ("f2", 1), ("f3", 2)]


class TestPlanDelete:
    def test_container_cascade_and_reparent(self, records):
        containers, leaves = records
        plan = plan_delete(_by_id(records, "f1"), containers, leaves)

        assert plan.delete_container_ids == ["f1", "f2", "f3"]
        assert plan.delete_leaf_ids == []
        assert plan.reparent == [LeafReparent("d1", None), LeafReparent("d2", None)]

    def test_nested_container_reparents_to_its_parent(self, records):
        containers, leaves = records
        plan = plan_delete(_by_id(records, "f2"), containers, leaves)

        assert plan.delete_container_ids == ["f2", "f3"]
        assert plan.reparent == [LeafReparent("d2", "f1")]

    def test_leaves_never_deleted_with_container(self, records):
        containers, leaves = records
        plan = plan_delete(_by_id(records, "f4"), containers, leaves)

        assert plan.delete_ids == ["f4"]
        assert plan.reparent == [LeafReparent("d3", None)]

    def test_leaf_delete(self, records):
        containers, leaves = records
        plan = plan_delete(_by_id(records, "d3"), containers, leaves)

        assert plan.delete_leaf_ids == ["d3"]
        assert plan.delete_container_ids == []
        assert plan.reparent == []


def test_name_with_nul_still_sorts():
    forest = build_tree([], [LeafRecord("l1", "b\0x"), LeafRecord("l2", "a")])
    assert [n.id for n in forest.roots] == ["l2", "l1"]
