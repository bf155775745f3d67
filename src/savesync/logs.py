"""
Logging context for a savesync process.

Handlers are attached to the ``savesync`` logger only, for the
lifetime of the context, and removed again on exit. The root logger
is left alone, so embedding savesync in another program does not
rewire that program's logging.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from rich.logging import RichHandler

from . import __version__
from .models import LoggingSettings, SyncConfig

PACKAGE_LOGGER = "savesync"
FILE_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"


def parse_level(level: str) -> int:
    """Map a level name to its number; unknown names fall back to INFO."""
    value = logging.getLevelName(str(level).upper())
    return value if isinstance(value, int) else logging.INFO


def mask_secret(value: Optional[str], keep: int = 4) -> str:
    """Redact a secret for display, keeping a short prefix."""
    if not value:
        return ""
    if len(value) <= keep:
        return "***"
    return value[:keep] + "***"


class LoggingContext:
    """Scoped logging setup for one process.

    Usage::

        with LoggingContext(config.logging, base_dir=home, console=True) as ctx:
            log = ctx.get_logger("service")

    Args:
        settings: Logging section of the configuration.
        base_dir: Directory that relative log paths resolve against.
        console: Also log to the terminal through rich.
    """

    def __init__(
        self,
        settings: LoggingSettings,
        base_dir: Optional[Path] = None,
        console: bool = False,
    ):
        self.settings = settings
        self.level = parse_level(settings.level)
        self.log_file: Optional[Path] = None
        if settings.file:
            path = Path(settings.file).expanduser()
            if not path.is_absolute() and base_dir is not None:
                path = Path(base_dir).expanduser() / path
            self.log_file = path
        self.console = console
        self._handlers: list[logging.Handler] = []
        self._previous_level: Optional[int] = None
        self.logger = logging.getLogger(PACKAGE_LOGGER)

    def __enter__(self) -> "LoggingContext":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def open(self) -> None:
        """Attach file and console handlers."""
        if self.log_file is not None:
            self.log_file.parent.mkdir(parents=True, exist_ok=True)
            handler = logging.FileHandler(self.log_file, encoding="utf-8")
            handler.setFormatter(logging.Formatter(FILE_FORMAT))
            self._add(handler)

        if self.console:
            self._add(RichHandler(show_path=False, rich_tracebacks=True))

        self._previous_level = self.logger.level
        self.logger.setLevel(self.level)

    def close(self) -> None:
        """Detach and close every handler this context added."""
        for handler in self._handlers:
            self.logger.removeHandler(handler)
            handler.close()
        self._handlers = []
        if self._previous_level is not None:
            self.logger.setLevel(self._previous_level)
            self._previous_level = None

    def get_logger(self, name: str) -> logging.Logger:
        """Child logger under the package logger."""
        return self.logger.getChild(name)

    def _add(self, handler: logging.Handler) -> None:
        handler.setLevel(self.level)
        self.logger.addHandler(handler)
        self._handlers.append(handler)


def log_startup(logger: logging.Logger, app_name: str, config: SyncConfig) -> None:
    """Write the startup banner with the effective configuration."""
    logger.info("=== %s Started ===", app_name)
    logger.info("Version: %s", __version__)
    logger.info("Start Time: %s", datetime.now().isoformat(timespec="seconds"))
    logger.info("Configuration:")
    logger.info("  Backend: %s", config.remote.backend.value)
    logger.info("  Container: %s", config.remote.container)
    logger.info("  Process Name: %s", config.game.process_name)
    logger.info(
        "  Save File: Directory: %s, Prefix: %s",
        config.game.save_directory, config.game.save_prefix,
    )
    logger.info("  Check Interval: %d minutes", config.sync.interval_minutes)
    logger.info("  Log Level: %s", config.logging.level)
    logger.info("====================================")


def log_shutdown(logger: logging.Logger, app_name: str) -> None:
    """Write the shutdown banner."""
    logger.info("=== %s Shutting Down ===", app_name)
    logger.info("End Time: %s", datetime.now().isoformat(timespec="seconds"))
    logger.info("=========================================")
