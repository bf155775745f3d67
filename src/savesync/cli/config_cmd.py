"""Config commands: init, config show."""

from __future__ import annotations

import sys

import click
from rich.panel import Panel

from ..config import create_sample_config
from ..logs import mask_secret
from ..models import RemoteBackendType
from ._common import config_option, console, load_or_exit, resolve_config_path


def register_config_commands(main: click.Group) -> None:
    """Register init and the config group."""

    @main.command("init")
    @click.option("--path", "config_path", default=None, type=click.Path(dir_okay=False),
                  help="Where to write the sample config.")
    @click.option("--force", is_flag=True, help="Overwrite an existing config.")
    def init(config_path, force):
        """Write a sample configuration to edit."""
        target = resolve_config_path(config_path)
        try:
            written = create_sample_config(target, overwrite=force)
        except FileExistsError:
            console.print(f"[yellow]Configuration already exists:[/] {target}")
            console.print("  Use [cyan]--force[/cyan] to overwrite it.")
            sys.exit(1)

        console.print(f"\n  [green]Sample configuration created at:[/] {written}")
        console.print("  Edit it with your storage details, then run [cyan]savesync sync once[/cyan].\n")

    @main.group()
    def config():
        """Inspect the configuration."""

    @config.command("show")
    @config_option
    def config_show(config_path):
        """Show the loaded configuration (secrets masked)."""
        cfg, base_dir = load_or_exit(config_path)
        remote = cfg.remote

        lines = [
            f"Config file: [cyan]{resolve_config_path(config_path)}[/]",
            f"Backend: [cyan]{remote.backend.value}[/]",
            f"Container: {remote.container}",
        ]
        if remote.backend == RemoteBackendType.AZURE:
            lines.append(f"Connection string: [dim]{mask_secret(remote.connection_string, keep=24)}[/]")
        if remote.backend == RemoteBackendType.S3:
            lines.append(f"Region: {remote.region or '[dim]default[/]'}")
            lines.append(f"Endpoint: {remote.endpoint_url or '[dim]default[/]'}")
        if remote.backend == RemoteBackendType.LOCAL:
            lines.append(f"Path: {remote.path or base_dir / 'remote'}")
        lines += [
            f"Process Name: {cfg.game.process_name}",
            f"Save File Directory: {cfg.game.save_directory}",
            f"Save File Prefix: {cfg.game.save_prefix}",
            f"Check Interval: {cfg.sync.interval_minutes} minutes",
            f"Remote blobs: {cfg.sync.save_blob_name}, {cfg.sync.hash_blob_name}",
            f"Hash cache: {cfg.sync.hash_cache_file}",
            f"Log File: {cfg.logging.file or '[dim]none[/]'}",
            f"Log Level: {cfg.logging.level}",
        ]

        console.print()
        console.print(Panel("\n".join(lines), title="savesync configuration", border_style="cyan"))
        console.print()
