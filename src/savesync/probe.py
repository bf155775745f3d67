"""
Is the game running? A read-only process query.

Sync is skipped while the game is up so a save is never swapped
underneath it.
"""

from __future__ import annotations

import logging
from datetime import datetime

import psutil

logger = logging.getLogger("savesync.probe")


def _normalize_name(name: str) -> str:
    name = name.strip().lower()
    if name.endswith(".exe"):
        name = name[:-4]
    return name


class GameProbe:
    """psutil-backed process lookup."""

    def find(self, process_name: str) -> list[dict]:
        """Return pid/name/started_at for every matching process.

        Processes that vanish or deny access mid-scan are skipped.
        """
        wanted = _normalize_name(process_name)
        matches = []
        for proc in psutil.process_iter(["pid", "name", "create_time"]):
            try:
                info = proc.info
                name = info.get("name") or ""
                if _normalize_name(name) != wanted:
                    continue
                created = info.get("create_time")
                matches.append({
                    "pid": info["pid"],
                    "name": name,
                    "started_at": (
                        datetime.fromtimestamp(created) if created else None
                    ),
                })
            except (psutil.NoSuchProcess, psutil.AccessDenied):
                continue
        return matches

    def is_running(self, process_name: str) -> bool:
        found = self.find(process_name)
        if found:
            logger.debug(
                "%s running (pids: %s)",
                process_name, ", ".join(str(p["pid"]) for p in found),
            )
        return bool(found)
