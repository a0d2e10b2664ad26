"""Tree subgroup: inspect the folder/deck hierarchy and validate mutations."""

import json
from pathlib import Path
from typing import Annotated

import typer

from spacedeck.application.hierarchy_manager import (
    build_tree,
    children_of,
    iter_nodes,
    list_move_destinations,
    name_key,
    plan_delete,
    validate_create,
    validate_move,
    validate_rename,
)
from spacedeck.application.id_service import generate_node_id
from spacedeck.application.snapshot import parse_records
from spacedeck.domain.errors import SnapshotError, ValidationResult
from spacedeck.domain.hierarchy.models import (
    ContainerRecord,
    Forest,
    HierarchyRecord,
    LeafRecord,
    LeafReparent,
    NodeKind,
)
from spacedeck.interface._common import EXIT_INVALID, EXIT_MALFORMED, _load_or_exit

tree_app = typer.Typer(help="Folder/deck hierarchy tools.", no_args_is_help=True)

SnapshotArg = Annotated[
    Path, typer.Argument(help="YAML snapshot with `containers` and `leaves` lists.")
]
JsonOpt = Annotated[bool, typer.Option("--json", help="Output as JSON.")]


def _load_tree(path: Path) -> tuple[list[ContainerRecord], list[LeafRecord], Forest]:
    data = _load_or_exit(path)
    try:
        containers, leaves = parse_records(data)
    except SnapshotError as e:
        typer.secho(str(e), fg="red", err=True)
        raise typer.Exit(EXIT_MALFORMED) from e
    return containers, leaves, build_tree(containers, leaves)


def _find_record(
    node_id: str, containers: list[ContainerRecord], leaves: list[LeafRecord]
) -> HierarchyRecord:
    for record in [*containers, *leaves]:
        if record.id == node_id:
            return record
    typer.secho(f"No node with id {node_id!r}", fg="red", err=True)
    raise typer.Exit(EXIT_MALFORMED)


def _report(result: ValidationResult, json_output: bool) -> None:
    if json_output:
        typer.echo(
            json.dumps(
                {
                    "ok": result.ok,
                    "error": result.error.value if result.error else None,
                    "message": result.message,
                },
                indent=2,
            )
        )
    elif result.ok:
        typer.secho("OK", fg="green")
    else:
        typer.secho(f"{result.error.value}: {result.message}", fg="red")

    if not result.ok:
        raise typer.Exit(EXIT_INVALID)


@tree_app.command("show")
def show(snapshot: SnapshotArg, json_output: JsonOpt = False):
    """Print the hierarchy, folders first, sorted by name."""
    _, _, forest = _load_tree(snapshot)

    if json_output:
        typer.echo(
            json.dumps(
                [
                    {"id": node.id, "name": node.name, "kind": node.kind.value, "depth": depth}
                    for node, depth in iter_nodes(forest)
                ],
                indent=2,
            )
        )
        return

    for node, depth in iter_nodes(forest):
        marker = "+" if node.kind is NodeKind.CONTAINER else "-"
        typer.echo(f"{'  ' * depth}{marker} {node.name}  [{node.id}]")


@tree_app.command("create")
def create(
    snapshot: SnapshotArg,
    kind: Annotated[NodeKind, typer.Argument(help="container or leaf.")],
    name: Annotated[str, typer.Argument(help="Name of the new node.")],
    parent: Annotated[str | None, typer.Option(help="Parent container id.")] = None,
    json_output: JsonOpt = False,
):
    """Validate a new node and print the record to insert."""
    containers, leaves, forest = _load_tree(snapshot)
    if parent is not None and parent not in forest.containers:
        typer.secho(f"No container with id {parent!r}", fg="red", err=True)
        raise typer.Exit(EXIT_MALFORMED)

    result = validate_create(kind, name, parent, [*containers, *leaves])
    if not result.ok:
        _report(result, json_output)

    record = {
        "id": generate_node_id(kind),
        "name": name.strip(),
        ("parent_id" if kind is NodeKind.CONTAINER else "container_id"): parent,
    }
    typer.echo(json.dumps(record, indent=2))


@tree_app.command("check-name")
def check_name(
    snapshot: SnapshotArg,
    node_id: Annotated[str, typer.Argument(help="Node being renamed.")],
    new_name: Annotated[str, typer.Argument(help="Proposed name.")],
    json_output: JsonOpt = False,
):
    """Validate a rename against same-kind siblings."""
    containers, leaves, _ = _load_tree(snapshot)
    node = _find_record(node_id, containers, leaves)
    _report(validate_rename(node, new_name, [*containers, *leaves]), json_output)


@tree_app.command("check-move")
def check_move(
    snapshot: SnapshotArg,
    node_id: Annotated[str, typer.Argument(help="Node being moved.")],
    to: Annotated[
        str | None, typer.Option("--to", help="Destination container id. Omit for root.")
    ] = None,
    json_output: JsonOpt = False,
):
    """Validate moving a node under another container (or to the root)."""
    containers, leaves, forest = _load_tree(snapshot)
    node = _find_record(node_id, containers, leaves)
    _report(validate_move(node, to, forest), json_output)


@tree_app.command("destinations")
def destinations(
    snapshot: SnapshotArg,
    node_id: Annotated[str, typer.Argument(help="Node being moved.")],
):
    """List every container the node may be moved into."""
    containers, leaves, forest = _load_tree(snapshot)
    _find_record(node_id, containers, leaves)

    typer.echo("(root)")
    for container, depth in list_move_destinations(node_id, forest):
        typer.echo(f"{'  ' * (depth + 1)}{container.name}  [{container.id}]")


@tree_app.command("plan-delete")
def plan_delete_cmd(
    snapshot: SnapshotArg,
    node_id: Annotated[str, typer.Argument(help="Node to delete.")],
    json_output: JsonOpt = False,
):
    """Show which nodes a delete removes and which leaves it re-parents."""
    containers, leaves, forest = _load_tree(snapshot)
    node = _find_record(node_id, containers, leaves)
    plan = plan_delete(node, containers, leaves)

    if json_output:
        typer.echo(
            json.dumps(
                {
                    "delete_containers": plan.delete_container_ids,
                    "delete_leaves": plan.delete_leaf_ids,
                    "reparent": [
                        {"leaf_id": r.leaf_id, "new_container_id": r.new_container_id}
                        for r in plan.reparent
                    ],
                },
                indent=2,
            )
        )
        return

    for cid in plan.delete_ids:
        typer.echo(f"delete   {forest.get(cid).name}  [{cid}]")
    for move in plan.reparent:
        target = forest.containers.get(move.new_container_id) if move.new_container_id else None
        where = target.name if target else "(root)"
        typer.echo(f"reparent {forest.leaves[move.leaf_id].name}  -> {where}")

    clashes = _reparent_clashes(plan.reparent, forest)
    if clashes:
        typer.secho(f"Name clashes after re-parenting: {', '.join(clashes)}", fg="yellow")


def _reparent_clashes(moves: list[LeafReparent], forest: Forest) -> list[str]:
    """
    Leaf names that would collide once moved under their new parent.

    A moved leaf clashes with leaves already at the destination and with
    any earlier leaf in the same plan headed to the same destination.
    """
    clashes: list[str] = []
    taken: dict[str | None, set[str]] = {}
    for move in moves:
        dest = move.new_container_id
        if dest not in taken:
            taken[dest] = {
                name_key(child.name)
                for child in children_of(forest, dest)
                if child.kind is NodeKind.LEAF
            }
        leaf = forest.leaves[move.leaf_id]
        key = name_key(leaf.name)
        if key in taken[dest]:
            clashes.append(leaf.name)
        taken[dest].add(key)
    return clashes
