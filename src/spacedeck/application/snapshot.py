"""
Snapshot loading.

Turns the flat records storage hands us (as YAML/JSON-shaped mappings)
into domain objects: policy, scheduling state, review items and the
container/leaf records that feed build_tree.
"""

import logging
import math
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import yaml  # type: ignore
import yaml.constructor

from spacedeck.domain.constants import MIN_EASE_FACTOR
from spacedeck.domain.errors import InvalidPolicyError, SnapshotError
from spacedeck.domain.hierarchy.models import ContainerRecord, LeafRecord
from spacedeck.domain.scheduling.models import ReviewItem, SchedulingPolicy, SchedulingState

logger = logging.getLogger(__name__)

# Column names used by older exports
POLICY_ALIASES = {
    "initial_step_1_minutes": "first_step_minutes",
    "initial_step_2_minutes": "second_step_minutes",
}
STATE_ALIASES = {
    "srs_repetition": "repetition_count",
    "srs_ease_factor": "ease_factor",
    "srs_interval_minutes": "interval_minutes",
}


class UniqueKeyLoader(yaml.SafeLoader):
    """YAML loader that forbids duplicate keys."""

    def construct_mapping(self, node, deep=False):
        seen = set()
        for key_node, _ in node.value:
            key = self.construct_object(key_node, deep=deep)
            if key in seen:
                raise yaml.constructor.ConstructorError(
                    None, None, f"found duplicate key '{key}'", key_node.start_mark
                )
            seen.add(key)
        return super().construct_mapping(node, deep)


def parse_snapshot(text: str) -> dict[str, Any]:
    try:
        data = yaml.load(text, Loader=UniqueKeyLoader) or {}
    except yaml.YAMLError as e:
        raise SnapshotError(f"Invalid snapshot: {e}") from e
    if not isinstance(data, dict):
        raise SnapshotError("Snapshot must be a mapping at the top level")
    return data


def load_snapshot(path: Path) -> dict[str, Any]:
    """Read and parse a YAML (or JSON) snapshot file."""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise SnapshotError(f"Cannot read {path}: {e}") from e
    return parse_snapshot(text)


def _rename_keys(data: dict[str, Any], aliases: dict[str, str]) -> dict[str, Any]:
    return {aliases.get(k, k): v for k, v in data.items()}


def parse_timestamp(value: Any) -> datetime:
    """Accept a datetime or ISO-8601 string; naive values are taken as UTC."""
    if isinstance(value, datetime):
        ts = value
    elif isinstance(value, str):
        try:
            ts = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError as e:
            raise SnapshotError(f"Invalid timestamp: {value!r}") from e
    else:
        raise SnapshotError(f"Invalid timestamp: {value!r}")
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def parse_policy(data: dict[str, Any] | None) -> SchedulingPolicy | None:
    """
    Build a policy override from a mapping.

    Returns:
        None when data is None (no override stored); missing keys take the
        baseline value.
    """
    if data is None:
        return None
    if not isinstance(data, dict):
        raise SnapshotError("policy must be a mapping")
    fields = _rename_keys(data, POLICY_ALIASES)
    known = set(SchedulingPolicy.__dataclass_fields__)
    unknown = set(fields) - known
    if unknown:
        logger.debug(f"Ignoring unknown policy keys: {sorted(unknown)}")
    try:
        return SchedulingPolicy(**{k: v for k, v in fields.items() if k in known})
    except InvalidPolicyError as e:
        raise SnapshotError(str(e)) from e


def parse_state(
    data: dict[str, Any],
    default_ease: float,
    now: datetime | None = None,
) -> SchedulingState:
    """
    Build a SchedulingState from a mapping.

    Missing fields take the new-item defaults: no repetitions, the
    policy's starting ease, zero interval, due now.

    Raises:
        SnapshotError: on unparseable fields, negative counts, or an ease
            below the 1.3 floor.
    """
    if not isinstance(data, dict):
        raise SnapshotError("state must be a mapping")
    fields = _rename_keys(data, STATE_ALIASES)
    due = fields.get("next_review_at")
    try:
        repetition_count = int(fields.get("repetition_count", 0))
        ease_factor = float(fields.get("ease_factor", default_ease))
        interval_minutes = int(fields.get("interval_minutes", 0))
    except (TypeError, ValueError) as e:
        raise SnapshotError(f"Invalid state: {e}") from e

    if repetition_count < 0 or interval_minutes < 0:
        raise SnapshotError(
            f"Invalid state: negative repetition_count ({repetition_count}) "
            f"or interval_minutes ({interval_minutes})"
        )
    if not math.isfinite(ease_factor) or ease_factor < MIN_EASE_FACTOR:
        raise SnapshotError(
            f"Invalid state: ease_factor must be >= {MIN_EASE_FACTOR}, got {ease_factor!r}"
        )

    return SchedulingState(
        repetition_count=repetition_count,
        ease_factor=ease_factor,
        interval_minutes=interval_minutes,
        next_review_at=(
            parse_timestamp(due) if due is not None else (now or datetime.now(timezone.utc))
        ),
    )


def parse_items(
    data: list[dict[str, Any]] | None,
    default_ease: float,
    now: datetime | None = None,
) -> list[ReviewItem]:
    items = []
    for raw in data or []:
        if not isinstance(raw, dict) or "id" not in raw:
            raise SnapshotError(f"Item entries need an id: {raw!r}")
        items.append(
            ReviewItem(
                item_id=str(raw["id"]),
                state=parse_state(raw.get("state") or {}, default_ease, now=now),
                front=str(raw.get("front", "")),
                back=str(raw.get("back", "")),
            )
        )
    return items


def _optional_id(value: Any) -> str | None:
    return None if value is None else str(value)


def parse_records(data: dict[str, Any]) -> tuple[list[ContainerRecord], list[LeafRecord]]:
    """
    Extract container and leaf records from a snapshot.

    Accepts `parent_id` (or `parent_folder_id`) on containers and
    `container_id` (or `folder_id`) on leaves.
    """
    containers: list[ContainerRecord] = []
    leaves: list[LeafRecord] = []

    for raw in data.get("containers") or []:
        if not isinstance(raw, dict) or "id" not in raw or "name" not in raw:
            raise SnapshotError(f"Container entries need an id and name: {raw!r}")
        parent = raw.get("parent_id", raw.get("parent_folder_id"))
        containers.append(
            ContainerRecord(
                id=str(raw["id"]), name=str(raw["name"]), parent_id=_optional_id(parent)
            )
        )

    for raw in data.get("leaves") or []:
        if not isinstance(raw, dict) or "id" not in raw or "name" not in raw:
            raise SnapshotError(f"Leaf entries need an id and name: {raw!r}")
        parent = raw.get("container_id", raw.get("folder_id"))
        leaves.append(
            LeafRecord(
                id=str(raw["id"]),
                name=str(raw["name"]),
                container_id=_optional_id(parent),
                payload=raw.get("payload"),
            )
        )

    return containers, leaves


def dump_state(state: SchedulingState) -> dict[str, Any]:
    """Inverse of parse_state, with an ISO-8601 timestamp."""
    return {
        "repetition_count": state.repetition_count,
        "ease_factor": round(state.ease_factor, 4),
        "interval_minutes": state.interval_minutes,
        "next_review_at": state.next_review_at.isoformat(),
    }


def dump_states(states: dict[str, SchedulingState]) -> str:
    """Render committed states as a YAML `items:` document."""
    payload = {"items": [{"id": item_id, "state": dump_state(s)} for item_id, s in states.items()]}
    return yaml.safe_dump(payload, sort_keys=False, allow_unicode=True)
