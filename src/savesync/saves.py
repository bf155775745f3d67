"""
Save file discovery and safety backups.

The game writes a rotating set of autosaves, so the file to sync
is picked fresh every cycle: the newest ``<prefix>*.sav`` in the
save directory.
"""

from __future__ import annotations

import glob
import os
import shutil
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from .errors import BackupFailed

SAVE_SUFFIX = ".sav"
BACKUP_MARKER = ".backup."
BACKUP_TIME_FORMAT = "%Y%m%d_%H%M%S"


def expand_directory(directory: str) -> Path:
    """Expand ``~``, ``$VAR`` and Windows-style ``%VAR%`` references."""
    expanded = os.path.expandvars(directory)
    for name, value in os.environ.items():
        expanded = expanded.replace(f"%{name}%", value)
    return Path(expanded).expanduser()


def find_latest_save(directory: Path, prefix: str) -> Optional[Path]:
    """Return the most recently modified ``<prefix>*.sav`` in *directory*.

    Args:
        directory: Save directory (must already be expanded).
        prefix: Required filename prefix.

    Returns:
        The newest matching file, or None when there is none.
    """
    candidates = [
        p for p in directory.glob(f"{glob.escape(prefix)}*{SAVE_SUFFIX}")
        if p.is_file()
    ]
    if not candidates:
        return None
    return max(candidates, key=lambda p: p.stat().st_mtime)


def backup_path_for(save_file: Path, now: Optional[datetime] = None) -> Path:
    """``<save>.backup.<yyyyMMdd_HHmmss>`` for the given moment."""
    stamp = (now or datetime.now()).strftime(BACKUP_TIME_FORMAT)
    return save_file.with_name(f"{save_file.name}{BACKUP_MARKER}{stamp}")


def create_backup(
    save_file: Union[str, Path], now: Optional[datetime] = None
) -> Path:
    """Copy *save_file* to a timestamped sibling before it is overwritten.

    An existing backup with the same name is never replaced.

    Returns:
        Path: The backup that was written.

    Raises:
        BackupFailed: If the copy could not be made.
    """
    save_file = Path(save_file)
    target = backup_path_for(save_file, now)
    if target.exists():
        raise BackupFailed(f"Backup already exists: {target}")
    try:
        shutil.copy2(save_file, target)
    except OSError as exc:
        raise BackupFailed(f"Could not back up {save_file}: {exc}") from exc
    return target


def list_backups(save_file: Union[str, Path]) -> list[Path]:
    """All backups made for *save_file*, oldest first."""
    save_file = Path(save_file)
    return sorted(save_file.parent.glob(f"{glob.escape(save_file.name)}{BACKUP_MARKER}*"))
