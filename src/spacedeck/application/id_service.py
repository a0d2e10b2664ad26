"""Service for generating stable ids for new hierarchy nodes."""

from ulid import ULID

from spacedeck.domain.hierarchy.models import NodeKind


def generate_node_id(kind: NodeKind) -> str:
    """Generate a sortable, collision-free id using ULID, prefixed by kind."""
    return f"{kind.value}_{ULID()}"
