"""Helpers shared by CLI command groups."""

import logging
from pathlib import Path
from typing import Any

import typer

from spacedeck.application.config import AppConfig, resolve_config
from spacedeck.application.snapshot import load_snapshot, parse_policy
from spacedeck.domain.errors import SnapshotError
from spacedeck.domain.scheduling.models import SchedulingPolicy

logger = logging.getLogger(__name__)

EXIT_INVALID = 1
EXIT_MALFORMED = 2


def _resolve_with_overrides(**kwargs: Any) -> AppConfig:
    """Resolve config, letting only explicitly passed CLI values override it."""
    verbose = kwargs.get("verbose")
    config = resolve_config({k: v for k, v in kwargs.items() if v is not None})
    if verbose is not None:
        logging.getLogger().setLevel(_log_level(verbose))
    return config


def _log_level(verbose: int) -> int:
    if verbose >= 3:
        return logging.DEBUG
    if verbose == 2:
        return logging.INFO
    return logging.WARNING


def _load_or_exit(path: Path) -> dict[str, Any]:
    try:
        return load_snapshot(path)
    except SnapshotError as e:
        typer.secho(str(e), fg="red", err=True)
        raise typer.Exit(EXIT_MALFORMED) from e


def _policy_for(snapshot: dict[str, Any], config: AppConfig) -> SchedulingPolicy:
    """The snapshot's policy override, or the configured baseline."""
    try:
        override = parse_policy(snapshot.get("policy"))
    except SnapshotError as e:
        typer.secho(str(e), fg="red", err=True)
        raise typer.Exit(EXIT_MALFORMED) from e
    return override or config.default_policy()


def _attach_file_log(config: AppConfig, filename: str) -> Path:
    """Mirror records passing the configured log level into config.log_dir/filename."""
    path = (config.log_dir / filename).resolve()
    root = logging.getLogger()
    for handler in root.handlers:
        if isinstance(handler, logging.FileHandler) and Path(handler.baseFilename) == path:
            return path

    config.log_dir.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s:%(name)s:%(message)s"))
    root.addHandler(handler)
    logger.debug(f"Logging to {path}")
    return path
