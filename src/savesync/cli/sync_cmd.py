"""Sync commands: once, run, force-upload, reset-cache."""

from __future__ import annotations

import sys
from pathlib import Path

import click

from ..cache import HashCache
from ..errors import ConfigurationInvalid
from ..logs import LoggingContext
from ..models import SyncAction
from ..service import SyncService, resolve_path
from ._common import build_engine_or_exit, config_option, console, load_or_exit, print_result


def register_sync_commands(main: click.Group) -> None:
    """Register the sync command group."""

    @main.group()
    def sync():
        """Move the save whichever way it needs to go."""

    @sync.command("once")
    @config_option
    @click.option("--verbose", "-v", is_flag=True, help="Log to the terminal as well.")
    def sync_once(config_path, verbose):
        """Run a single synchronization."""
        cfg, base_dir = load_or_exit(config_path)

        with LoggingContext(cfg.logging, base_dir=base_dir, console=verbose) as ctx:
            engine = build_engine_or_exit(cfg, base_dir, log=ctx.get_logger("engine"))
            console.print("\n  Running single synchronization...")
            result = engine.synchronize()

        print_result(result)
        console.print()
        if result.action == SyncAction.ERROR:
            sys.exit(1)

    @sync.command("run")
    @config_option
    @click.option("--quiet", "-q", is_flag=True, help="Only log to the log file.")
    def sync_run(config_path, quiet):
        """Run continuous sync in the foreground (Ctrl+C to stop)."""
        cfg, base_dir = load_or_exit(config_path)

        console.print(
            f"\n  [green]Starting continuous sync[/] every "
            f"[cyan]{cfg.sync.interval_minutes}[/] minute(s)"
        )
        console.print("  [dim]Press Ctrl+C to stop[/]\n")

        svc = SyncService(cfg, base_dir, console=not quiet)
        try:
            svc.start()
        except (ConfigurationInvalid, RuntimeError) as exc:
            svc.stop()
            console.print(f"[bold red]Cannot set up remote store:[/] {exc}")
            sys.exit(1)
        svc.run_forever()

        snap = svc.poller.state.snapshot()
        console.print(
            f"\n  Continuous sync stopped after [bold]{snap['cycles']}[/] cycle(s).\n"
        )

    @sync.command("force-upload")
    @config_option
    @click.argument("save_file", type=click.Path(exists=True, dir_okay=False))
    def sync_force_upload(config_path, save_file):
        """Push SAVE_FILE to the remote as the new shared save.

        The local hash cache is not updated, so every machine,
        this one included, downloads it on its next cycle.
        """
        cfg, base_dir = load_or_exit(config_path)

        with LoggingContext(cfg.logging, base_dir=base_dir) as ctx:
            engine = build_engine_or_exit(cfg, base_dir, log=ctx.get_logger("engine"))
            console.print("\n  Calculating hash and uploading file...")
            result = engine.force_upload(Path(save_file))

        print_result(result)
        console.print()
        if result.action == SyncAction.ERROR:
            sys.exit(1)

    @sync.command("reset-cache")
    @config_option
    def sync_reset_cache(config_path):
        """Forget the last remote hash seen on this machine.

        The next cycle then treats any difference as a remote change.
        """
        cfg, base_dir = load_or_exit(config_path)
        cache = HashCache(resolve_path(cfg.sync.hash_cache_file, base_dir))
        if cache.clear():
            console.print(f"\n  [green]Cleared[/] {cache.path}\n")
        else:
            console.print(f"\n  [dim]No cached hash at {cache.path}[/]\n")
