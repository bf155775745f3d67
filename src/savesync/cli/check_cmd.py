"""Diagnostic commands: check game, check remote."""

from __future__ import annotations

import sys

import click
from rich.table import Table

from ..logs import LoggingContext
from ..models import SyncAction
from ..probe import GameProbe
from ._common import build_engine_or_exit, config_option, console, load_or_exit, logger


def register_check_commands(main: click.Group) -> None:
    """Register the check command group."""

    @main.group()
    def check():
        """Diagnose the game probe and the remote store."""

    @check.command("game")
    @config_option
    def check_game(config_path):
        """Look for the game process."""
        cfg, _ = load_or_exit(config_path)
        name = cfg.game.process_name

        console.print(f"\n  Checking for [cyan]{name}[/]...")
        try:
            procs = GameProbe().find(name)
        except Exception as exc:
            logger.error("Error checking game process: %s", exc)
            console.print(f"  [red]Error checking process:[/] {exc}\n")
            sys.exit(1)

        if not procs:
            console.print("  [green]No game processes found.[/] Sync will run.\n")
            return

        table = Table(title=f"{len(procs)} process(es) running")
        table.add_column("PID", style="bold")
        table.add_column("Name")
        table.add_column("Started")
        for p in procs:
            started = p["started_at"].strftime("%Y-%m-%d %H:%M:%S") if p["started_at"] else "?"
            table.add_row(str(p["pid"]), p["name"], started)
        console.print(table)
        console.print("  [yellow]Sync is skipped while the game runs.[/]\n")

    @check.command("remote")
    @config_option
    def check_remote(config_path):
        """Test the connection to the remote store."""
        cfg, base_dir = load_or_exit(config_path)

        with LoggingContext(cfg.logging, base_dir=base_dir) as ctx:
            engine = build_engine_or_exit(cfg, base_dir, log=ctx.get_logger("engine"))
            console.print(f"\n  Testing [cyan]{engine.store.name}[/] connection...")
            result = engine.check_remote()

        if result.action == SyncAction.ERROR:
            console.print(f"  [bold red]Connection test failed:[/] {result.message}\n")
            sys.exit(1)
        console.print(f"  [green]Connection test passed![/] {result.message}\n")
