# Domain Hierarchy Package
from .models import (
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

__all__ = [
    "ContainerNode",
    "ContainerRecord",
    "DeletePlan",
    "Forest",
    "HierarchyNode",
    "HierarchyRecord",
    "LeafNode",
    "LeafRecord",
    "LeafReparent",
    "NodeKind",
]
