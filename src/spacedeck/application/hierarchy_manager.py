"""
Hierarchy manager for the folder/deck tree.

Builds the in-memory forest from flat storage records and validates
create, rename, move and delete mutations against a full snapshot
before anything is dispatched to storage:
1. Names are unique per (parent, kind), compared case-insensitively
2. A container can never be moved into itself or a descendant
3. Deleting a container never deletes the leaves inside it
"""

import locale
import logging
from collections.abc import Iterable, Iterator

from spacedeck.domain.errors import ValidationError, ValidationResult
from spacedeck.domain.hierarchy.models import (
    ContainerNode,
    ContainerRecord,
    DeletePlan,
    Forest,
    HierarchyNode,
    HierarchyRecord,
    LeafNode,
    LeafRecord,
    LeafReparent,
    NodeKind,
)

logger = logging.getLogger(__name__)

Named = HierarchyNode | HierarchyRecord


def name_key(name: str) -> str:
    """Normalize a name for uniqueness checks."""
    return name.strip().casefold()


def _sort_key(node: HierarchyNode) -> tuple[int, str, str]:
    kind_order = 0 if node.kind is NodeKind.CONTAINER else 1
    # strxfrm follows the process LC_COLLATE (C locale means codepoint order) and rejects NUL
    collated = locale.strxfrm(node.name.casefold().replace("\0", ""))
    return (kind_order, collated, node.name)


# ---------------------------------------------------------------------------
# Tree construction
# ---------------------------------------------------------------------------


def build_tree(
    containers: Iterable[ContainerRecord],
    leaves: Iterable[LeafRecord],
) -> Forest:
    """
    Build a forest from flat container and leaf records.

    Parents may appear before or after their children in the input.
    Records pointing at a missing container become roots.

    Args:
        containers: Folder records (id, name, parent_id).
        leaves: Deck/item records (id, name, container_id, payload).

    Returns:
        A new Forest; siblings sorted containers-first, then by name.
    """
    forest = Forest()

    for record in containers:
        forest.containers[record.id] = ContainerNode(
            id=record.id, name=record.name, parent_id=record.parent_id
        )
    for record in leaves:
        forest.leaves[record.id] = LeafNode(
            id=record.id,
            name=record.name,
            container_id=record.container_id,
            payload=record.payload,
        )

    for node in [*forest.containers.values(), *forest.leaves.values()]:
        parent = forest.containers.get(node.parent_ref) if node.parent_ref else None
        if parent is None:
            if node.parent_ref is not None:
                logger.warning(
                    f"{node.kind.value} {node.id} references missing parent {node.parent_ref}"
                )
            forest.roots.append(node)
        else:
            parent.children.append(node)

    _promote_unreachable(forest)
    _sort_forest(forest)
    return forest


def _promote_unreachable(forest: Forest) -> None:
    """
    Break parent cycles in corrupt snapshots.

    A container caught in a cycle is unreachable from any root; the first
    such container found is detached from its parent and made a root.
    """
    reachable: set[str] = set()

    def mark(start: HierarchyNode) -> None:
        stack = [start]
        while stack:
            node = stack.pop()
            if node.id in reachable:
                continue
            reachable.add(node.id)
            if isinstance(node, ContainerNode):
                stack.extend(node.child_containers)

    for root in forest.roots:
        mark(root)

    for container in forest.containers.values():
        if container.id in reachable:
            continue
        logger.warning(f"Container {container.id} is part of a parent cycle, promoting to root")
        parent = forest.containers[container.parent_id]
        parent.children.remove(container)
        forest.roots.append(container)
        mark(container)


def _sort_forest(forest: Forest) -> None:
    forest.roots.sort(key=_sort_key)
    stack: list[ContainerNode] = [n for n in forest.roots if isinstance(n, ContainerNode)]
    while stack:
        node = stack.pop()
        node.children.sort(key=_sort_key)
        stack.extend(node.child_containers)


def iter_nodes(forest: Forest) -> Iterator[tuple[HierarchyNode, int]]:
    """Yield (node, depth) pairs in display order."""
    stack: list[tuple[HierarchyNode, int]] = [(n, 0) for n in reversed(forest.roots)]
    while stack:
        node, depth = stack.pop()
        yield node, depth
        if isinstance(node, ContainerNode):
            stack.extend((child, depth + 1) for child in reversed(node.children))


def children_of(forest: Forest, parent_id: str | None) -> list[HierarchyNode]:
    """Siblings living directly under parent_id (None for the root level)."""
    if parent_id is None:
        return list(forest.roots)
    parent = forest.containers.get(parent_id)
    return list(parent.children) if parent else []


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def _find_collision(
    kind: NodeKind,
    name: str,
    parent_id: str | None,
    siblings: Iterable[Named],
    exclude_id: str | None = None,
) -> Named | None:
    key = name_key(name)
    for sibling in siblings:
        if sibling.kind is not kind or sibling.parent_ref != parent_id:
            continue
        if exclude_id is not None and sibling.id == exclude_id:
            continue
        if name_key(sibling.name) == key:
            return sibling
    return None


def _duplicate(kind: NodeKind, name: str) -> ValidationResult:
    return ValidationResult.failure(
        ValidationError.DUPLICATE_NAME,
        f'A {kind.value} named "{name.strip()}" already exists here.',
    )


def validate_create(
    kind: NodeKind,
    name: str,
    parent_id: str | None,
    siblings: Iterable[Named],
) -> ValidationResult:
    """
    Check a new node's name against same-kind siblings under parent_id.

    Containers and leaves are namespaced independently.
    """
    if not name.strip():
        return ValidationResult.failure(ValidationError.EMPTY_NAME, "Name cannot be empty.")
    if _find_collision(kind, name, parent_id, siblings) is not None:
        return _duplicate(kind, name)
    return ValidationResult.success()


def validate_rename(node: Named, new_name: str, siblings: Iterable[Named]) -> ValidationResult:
    """
    Check a rename against same-kind siblings, ignoring the node itself.

    Changing only the case of a name is allowed.
    """
    if not new_name.strip():
        return ValidationResult.failure(ValidationError.EMPTY_NAME, "Name cannot be empty.")
    clash = _find_collision(node.kind, new_name, node.parent_ref, siblings, exclude_id=node.id)
    if clash is not None:
        return _duplicate(node.kind, new_name)
    return ValidationResult.success()


def compute_move_targets(node_id: str, forest: Forest) -> set[str]:
    """
    Ids a node may not be moved under.

    For a container this is its own id plus every descendant container id;
    for a leaf it is empty.

    Raises:
        KeyError: if node_id is not in the forest.
    """
    node = forest.get(node_id)
    if node is None:
        raise KeyError(node_id)
    if isinstance(node, LeafNode):
        return set()

    forbidden: set[str] = set()
    stack: list[ContainerNode] = [node]
    while stack:
        current = stack.pop()
        if current.id in forbidden:
            continue
        forbidden.add(current.id)
        stack.extend(current.child_containers)
    return forbidden


def validate_move(node: Named, new_parent_id: str | None, forest: Forest) -> ValidationResult:
    """
    Check that node can be re-parented under new_parent_id.

    Args:
        node: The node (or record) being moved.
        new_parent_id: Destination container id, or None for the root level.
        forest: A freshly built snapshot to validate against.

    Returns:
        INVALID_TARGET for a missing destination or a move into the node's
        own subtree, DUPLICATE_NAME for a same-kind name clash, else ok.
    """
    if new_parent_id is not None:
        if new_parent_id not in forest.containers:
            logger.debug(f"Rejected move of {node.id}: unknown destination {new_parent_id}")
            return ValidationResult.failure(
                ValidationError.INVALID_TARGET, "Destination folder does not exist."
            )
        if node.kind is NodeKind.CONTAINER and new_parent_id in compute_move_targets(
            node.id, forest
        ):
            logger.debug(f"Rejected move of {node.id} into its own subtree ({new_parent_id})")
            return ValidationResult.failure(
                ValidationError.INVALID_TARGET,
                "A folder cannot be moved into itself or one of its subfolders.",
            )

    siblings = children_of(forest, new_parent_id)
    key = name_key(node.name)
    for sibling in siblings:
        if sibling.kind is node.kind and sibling.id != node.id and name_key(sibling.name) == key:
            logger.debug(f"Rejected move of {node.id}: name clash with {sibling.id}")
            return _duplicate(node.kind, node.name)
    return ValidationResult.success()


def list_move_destinations(node_id: str, forest: Forest) -> list[tuple[ContainerNode, int]]:
    """
    Containers a node may legally be moved into, as (container, depth) in display order.

    Subtrees rooted at a forbidden container are skipped entirely.
    """
    forbidden = compute_move_targets(node_id, forest)
    destinations: list[tuple[ContainerNode, int]] = []
    stack: list[tuple[ContainerNode, int]] = [
        (n, 0) for n in reversed(forest.roots) if isinstance(n, ContainerNode)
    ]
    while stack:
        container, depth = stack.pop()
        if container.id in forbidden:
            continue
        destinations.append((container, depth))
        stack.extend((c, depth + 1) for c in reversed(container.child_containers))
    return destinations


# ---------------------------------------------------------------------------
# Deletion
# ---------------------------------------------------------------------------


def plan_delete(
    node: Named,
    all_containers: Iterable[ContainerRecord],
    all_leaves: Iterable[LeafRecord],
) -> DeletePlan:
    """
    Compute the mutations for deleting node.

    Deleting a leaf removes just that leaf. Deleting a container removes it
    and every nested container (cascade), while every leaf anywhere in
    that subtree is re-parented to the deleted container's own parent.
    """
    if node.kind is NodeKind.LEAF:
        return DeletePlan(delete_leaf_ids=[node.id])

    child_map: dict[str | None, list[str]] = {}
    parent_of: dict[str, str | None] = {}
    for record in all_containers:
        child_map.setdefault(record.parent_id, []).append(record.id)
        parent_of[record.id] = record.parent_id

    new_parent = parent_of.get(node.id, node.parent_ref)

    deleted: list[str] = []
    seen: set[str] = set()
    stack = [node.id]
    while stack:
        current = stack.pop()
        if current in seen:
            continue
        seen.add(current)
        deleted.append(current)
        stack.extend(reversed(child_map.get(current, [])))

    reparent = [
        LeafReparent(leaf_id=leaf.id, new_container_id=new_parent)
        for leaf in all_leaves
        if leaf.container_id in seen
    ]

    logger.debug(
        f"Delete plan for {node.id}: {len(deleted)} containers, {len(reparent)} leaves re-parented"
    )
    return DeletePlan(delete_container_ids=deleted, reparent=reparent)
