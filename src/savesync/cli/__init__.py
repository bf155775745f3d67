"""
savesync CLI -- keep a game save in step across machines.

Each command group lives in its own module and registers itself
on the main Click group.

Entry point: savesync.cli:main
"""

from __future__ import annotations

import click

from .. import __version__


@click.group()
@click.version_option(version=__version__, prog_name="savesync")
def main():
    """savesync -- one save file, every machine.

    Uploads when you played here, downloads when you played elsewhere,
    and backs up before every overwrite.
    """


# ---------------------------------------------------------------------------
# Register all command groups/commands from modular files
# ---------------------------------------------------------------------------

from .config_cmd import register_config_commands
from .sync_cmd import register_sync_commands
from .check_cmd import register_check_commands

register_config_commands(main)
register_sync_commands(main)
register_check_commands(main)
