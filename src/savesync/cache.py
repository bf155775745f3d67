"""
Local cache of the last remote fingerprint this machine saw.

This one small file is what tells "the remote moved on" apart from
"I changed the save locally". Losing it costs one redundant sync
decision, never data, so every failure here is logged and absorbed.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from .hasher import normalize_fingerprint

logger = logging.getLogger("savesync.cache")


class HashCache:
    """Plain-text file holding one normalized fingerprint.

    Args:
        path: Location of the cache file.
        log: Logger to report failures on. Defaults to the module logger.
    """

    def __init__(self, path: Path, log: Optional[logging.Logger] = None):
        self.path = Path(path)
        self._log = log or logger

    def read(self) -> Optional[str]:
        """Return the cached fingerprint, or None if absent or unreadable."""
        try:
            if not self.path.exists():
                return None
            value = normalize_fingerprint(self.path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError) as exc:
            self._log.warning("Error reading cached remote hash: %s", exc)
            return None
        return value or None

    def write(self, fingerprint: str) -> None:
        """Persist a fingerprint. Best effort."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(normalize_fingerprint(fingerprint), encoding="utf-8")
        except OSError as exc:
            self._log.warning("Error saving cached remote hash: %s", exc)

    def clear(self) -> bool:
        """Delete the cache file.

        Returns:
            bool: True if a file was removed.
        """
        try:
            if self.path.exists():
                self.path.unlink()
                return True
        except OSError as exc:
            self._log.warning("Error clearing cached remote hash: %s", exc)
        return False
