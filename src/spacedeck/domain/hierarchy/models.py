"""
Domain models for the container/leaf hierarchy.

Flat records mirror what storage returns; nodes are the in-memory tree
rebuilt from those records on every load.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class NodeKind(str, Enum):
    CONTAINER = "container"
    LEAF = "leaf"


@dataclass(frozen=True)
class ContainerRecord:
    """A folder row as stored: id, name, nullable parent folder id."""

    id: str
    name: str
    parent_id: str | None = None

    kind = NodeKind.CONTAINER

    @property
    def parent_ref(self) -> str | None:
        return self.parent_id


@dataclass(frozen=True)
class LeafRecord:
    """A deck/item row as stored: id, name, nullable container id, opaque payload."""

    id: str
    name: str
    container_id: str | None = None
    payload: Any = field(default=None, compare=False, hash=False)

    kind = NodeKind.LEAF

    @property
    def parent_ref(self) -> str | None:
        return self.container_id


HierarchyRecord = ContainerRecord | LeafRecord


@dataclass
class LeafNode:
    id: str
    name: str
    container_id: str | None
    payload: Any = None

    kind = NodeKind.LEAF

    @property
    def parent_ref(self) -> str | None:
        return self.container_id


@dataclass
class ContainerNode:
    id: str
    name: str
    parent_id: str | None
    children: list["ContainerNode | LeafNode"] = field(default_factory=list)

    kind = NodeKind.CONTAINER

    @property
    def parent_ref(self) -> str | None:
        return self.parent_id

    @property
    def child_containers(self) -> list["ContainerNode"]:
        return [c for c in self.children if isinstance(c, ContainerNode)]

    @property
    def child_leaves(self) -> list[LeafNode]:
        return [c for c in self.children if isinstance(c, LeafNode)]


HierarchyNode = ContainerNode | LeafNode


@dataclass
class Forest:
    """
    A set of disjoint trees plus an id-keyed arena of every node.

    Attributes:
        roots: Un-parented nodes in display order.
        containers: All container nodes by id.
        leaves: All leaf nodes by id.
    """

    roots: list[HierarchyNode] = field(default_factory=list)
    containers: dict[str, ContainerNode] = field(default_factory=dict)
    leaves: dict[str, LeafNode] = field(default_factory=dict)

    def get(self, node_id: str) -> HierarchyNode | None:
        return self.containers.get(node_id) or self.leaves.get(node_id)

    def __len__(self) -> int:
        return len(self.containers) + len(self.leaves)


@dataclass(frozen=True)
class LeafReparent:
    leaf_id: str
    new_container_id: str | None


@dataclass
class DeletePlan:
    """
    Mutations needed to delete a node without orphaning leaves.

    Attributes:
        delete_container_ids: Containers removed (the target plus nested containers).
        delete_leaf_ids: Leaves removed (only when the target itself is a leaf).
        reparent: Leaves moved up to the deleted container's own parent.
    """

    delete_container_ids: list[str] = field(default_factory=list)
    delete_leaf_ids: list[str] = field(default_factory=list)
    reparent: list[LeafReparent] = field(default_factory=list)

    @property
    def delete_ids(self) -> list[str]:
        return self.delete_container_ids + self.delete_leaf_ids
