"""spacedeck CLI: scheduling commands, subgroup registration, config."""

import asyncio
import json
import locale
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Annotated

import typer

from spacedeck.application.config import resolve_config
from spacedeck.application.scheduler import commit, format_interval, preview_intervals
from spacedeck.application.snapshot import (
    dump_state,
    dump_states,
    parse_items,
    parse_state,
    parse_timestamp,
)
from spacedeck.domain.errors import InvalidRatingError, SnapshotError
from spacedeck.domain.scheduling.models import Rating
from spacedeck.interface._common import (
    EXIT_MALFORMED,
    _attach_file_log,
    _load_or_exit,
    _policy_for,
    _resolve_with_overrides,
)

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="spacedeck: spaced-repetition scheduling and deck hierarchy tools.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

# Sibling ordering in the tree commands collates by the user's locale
try:
    locale.setlocale(locale.LC_COLLATE, "")
except locale.Error:
    logger.debug("LC_COLLATE from the environment is unavailable, using C collation")

# ---------------------------------------------------------------------------
# Register subgroups
# ---------------------------------------------------------------------------

from spacedeck.interface.tree_commands import tree_app  # noqa: E402

app.add_typer(tree_app, name="tree")

config_app = typer.Typer(help="Manage spacedeck configuration.")
app.add_typer(config_app, name="config")


# ---------------------------------------------------------------------------
# Global callback
# ---------------------------------------------------------------------------


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Increase verbosity. Repeat for more detail."
        ),
    ] = 1,
):
    """Global settings for spacedeck."""
    ctx.ensure_object(dict)
    ctx.obj["verbose_bonus"] = verbose


def _parse_now(now: str | None) -> datetime | None:
    if now is None:
        return None
    try:
        return parse_timestamp(now)
    except SnapshotError as e:
        typer.secho(str(e), fg="red", err=True)
        raise typer.Exit(EXIT_MALFORMED) from e


RATING_SHORTCUTS = {"f": Rating.FAIL, "h": Rating.HARD, "g": Rating.GOOD, "e": Rating.EASY}


def _prompt_rating() -> Rating:
    """Ask until the answer is a shortcut letter, a rating name or an ordinal."""
    while True:
        answer = typer.prompt("Rating").strip().lower()
        if answer in RATING_SHORTCUTS:
            return RATING_SHORTCUTS[answer]
        try:
            return Rating.parse(answer)
        except InvalidRatingError as e:
            typer.secho(str(e), fg="yellow")


# ---------------------------------------------------------------------------
# Root commands
# ---------------------------------------------------------------------------


@app.command()
def preview(
    ctx: typer.Context,
    snapshot: Annotated[
        Path, typer.Argument(help="YAML snapshot with `state` and optional `policy`.")
    ],
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Show the interval each rating would give, without committing."""
    config = _resolve_with_overrides(verbose=ctx.obj.get("verbose_bonus", 1))
    data = _load_or_exit(snapshot)
    policy = _policy_for(data, config)
    try:
        state = parse_state(data.get("state") or {}, policy.starting_ease_factor)
    except SnapshotError as e:
        typer.secho(str(e), fg="red", err=True)
        raise typer.Exit(EXIT_MALFORMED) from e

    intervals = preview_intervals(state, policy)
    if json_output:
        typer.echo(
            json.dumps(
                {
                    r.name.lower(): {"minutes": m, "label": format_interval(m)}
                    for r, m in intervals.items()
                },
                indent=2,
            )
        )
        return
    for rating, minutes in intervals.items():
        typer.echo(f"{rating.label:<5} {format_interval(minutes):>5}  ({minutes} min)")


@app.command("commit")
def commit_cmd(
    ctx: typer.Context,
    snapshot: Annotated[
        Path, typer.Argument(help="YAML snapshot with `state` and optional `policy`.")
    ],
    rating: Annotated[str, typer.Argument(help="fail, hard, good or easy (or 0, 3, 4, 5).")],
    now: Annotated[
        str | None, typer.Option(help="Reference time (ISO-8601). Defaults to now.")
    ] = None,
):
    """Compute the next scheduling state for a rating and print it as JSON."""
    config = _resolve_with_overrides(verbose=ctx.obj.get("verbose_bonus", 1))
    data = _load_or_exit(snapshot)
    policy = _policy_for(data, config)
    try:
        state = parse_state(data.get("state") or {}, policy.starting_ease_factor)
        new_state = commit(state, policy, rating, now=_parse_now(now))
    except (SnapshotError, InvalidRatingError) as e:
        typer.secho(str(e), fg="red", err=True)
        raise typer.Exit(EXIT_MALFORMED) from e

    out = dump_state(new_state)
    out["label"] = format_interval(new_state.interval_minutes)
    typer.echo(json.dumps(out, indent=2))


@app.command("format")
def format_cmd(
    minutes: Annotated[list[float], typer.Argument(help="Interval(s) in minutes.")],
):
    """Render minute counts as interval labels."""
    for m in minutes:
        typer.echo(f"{m:g}\t{format_interval(m)}")


@app.command()
def review(
    ctx: typer.Context,
    snapshot: Annotated[
        Path, typer.Argument(help="YAML snapshot with `items` and optional `policy`.")
    ],
    out: Annotated[
        Path | None, typer.Option(help="Write committed states here as YAML.")
    ] = None,
):
    """Run an interactive review session over the due items in a snapshot."""
    from spacedeck.application.review_session import ReviewSession, SessionStatus
    from spacedeck.infrastructure.adapters.memory import InMemoryStateRepository

    config = _resolve_with_overrides(verbose=ctx.obj.get("verbose_bonus", 1))
    data = _load_or_exit(snapshot)
    policy = _policy_for(data, config)
    try:
        items = parse_items(data.get("items"), policy.starting_ease_factor)
    except SnapshotError as e:
        typer.secho(str(e), fg="red", err=True)
        raise typer.Exit(EXIT_MALFORMED) from e

    _attach_file_log(config, "review.log")
    repo = InMemoryStateRepository()
    session = ReviewSession(policy, repo)
    if session.load(items) is SessionStatus.FINISHED:
        typer.secho("Nothing due.", fg="green")
        return

    while session.status is SessionStatus.ACTIVE:
        item = session.current
        typer.echo(f"\n[{session.cursor + 1}/{len(session.queue)}] {item.front}")
        action = typer.prompt("Enter to reveal, n=next, b=back", default="", show_default=False)
        if action == "n":
            session.advance()
            continue
        if action == "b":
            session.back()
            continue

        card = session.reveal()
        typer.echo(card.answer)
        typer.echo("  ".join(f"{r.name[0].lower()}={r.label} ({card.labels[r]})" for r in Rating))
        rating = _prompt_rating()
        outcome = asyncio.run(session.rate(rating))
        if not outcome.persisted:
            typer.secho(f"Could not save {outcome.item_id}: {outcome.error}", fg="red")

    typer.secho(f"Session finished, {len(session.outcomes)} rated.", fg="green")

    if out is not None:
        out.write_text(dump_states(repo.states), encoding="utf-8")
        typer.echo(f"Wrote {len(repo.states)} states to {out}")


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show():
    """Display final resolved configuration."""
    config = resolve_config()
    d = {k: str(v) if isinstance(v, Path) else v for k, v in config.model_dump().items()}
    typer.echo(json.dumps(d, indent=2))
