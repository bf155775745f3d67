"""Shared utilities for all CLI command modules.

Provides the Rich console instance, config loading with friendly
failures, and result formatting.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console

from ..config import default_config_path, load_config
from ..errors import ConfigurationInvalid
from ..models import SyncAction, SyncConfig, SyncResult
from ..service import build_engine

console = Console()
logger = logging.getLogger("savesync.cli")


def config_option(func):
    """``--config`` option shared by every command."""
    return click.option(
        "--config", "config_path",
        default=None, type=click.Path(dir_okay=False),
        help="Config file (default: $SAVESYNC_CONFIG or ~/.savesync/config.yaml).",
    )(func)


def resolve_config_path(config_path: Optional[str]) -> Path:
    return Path(config_path).expanduser() if config_path else default_config_path()


def load_or_exit(config_path: Optional[str]) -> tuple[SyncConfig, Path]:
    """Load the config or print why not and exit 1.

    Returns:
        tuple: The config and the directory relative paths resolve against.
    """
    path = resolve_config_path(config_path)
    try:
        config = load_config(path)
    except FileNotFoundError:
        console.print(f"[bold red]No configuration found[/] at {path}.")
        console.print("  Run [cyan]savesync init[/cyan] to create a sample.")
        sys.exit(1)
    except ConfigurationInvalid as exc:
        console.print(f"[bold red]Invalid configuration[/] in {path}:")
        for err in exc.errors:
            console.print(f"  [red]-[/] {err}")
        sys.exit(1)
    return config, path.parent


def action_label(action: SyncAction) -> str:
    """Map a sync action to Rich markup.

    Args:
        action: The action taken.

    Returns:
        str: Rich markup string.
    """
    return {
        SyncAction.NONE: "[green]IN SYNC[/]",
        SyncAction.UPLOAD: "[bold cyan]UPLOAD[/]",
        SyncAction.DOWNLOAD: "[bold magenta]DOWNLOAD[/]",
        SyncAction.SKIPPED: "[yellow]SKIPPED[/]",
        SyncAction.ERROR: "[bold red]ERROR[/]",
    }.get(action, "[dim]UNKNOWN[/]")


def print_result(result: SyncResult) -> None:
    console.print(f"  Action: {action_label(result.action)}")
    console.print(f"  Message: {result.message}")
    if result.save_file:
        console.print(f"  [dim]Save: {result.save_file}[/]")
    if result.backup_path:
        console.print(f"  [dim]Backup: {result.backup_path}[/]")


def build_engine_or_exit(config: SyncConfig, base_dir: Path, log=None):
    """Build the engine, or print why the backend cannot be set up and exit 1."""
    try:
        return build_engine(config, base_dir, log=log)
    except (ConfigurationInvalid, RuntimeError) as exc:
        console.print(f"[bold red]Cannot set up remote store:[/] {exc}")
        sys.exit(1)
