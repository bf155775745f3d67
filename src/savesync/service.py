"""
savesync service -- the always-on synchronizer.

Wires configuration into an engine, wraps it in the poller, and
runs until SIGINT/SIGTERM. This is what the ``savesync sync run``
command and an OS service unit both host.
"""

from __future__ import annotations

import logging
import signal
from pathlib import Path
from typing import Optional

from .cache import HashCache
from .engine import SyncEngine
from .hasher import FileHasher
from .logs import LoggingContext, log_shutdown, log_startup
from .models import SyncConfig
from .poller import SyncPoller
from .probe import GameProbe
from .stores import create_store

logger = logging.getLogger("savesync.service")

APP_NAME = "savesync service"


def resolve_path(value: str, base_dir: Path) -> Path:
    """Expand ``~`` and anchor relative paths at *base_dir*."""
    path = Path(value).expanduser()
    if not path.is_absolute():
        path = Path(base_dir).expanduser() / path
    return path


def build_engine(
    config: SyncConfig,
    base_dir: Path,
    log: Optional[logging.Logger] = None,
) -> SyncEngine:
    """Build a SyncEngine from configuration.

    Args:
        config: Validated configuration.
        base_dir: Directory relative paths (hash cache, local backend
            root) resolve against; normally the config file's folder.
        log: Logger handed to every component.

    Returns:
        SyncEngine: Ready to ``synchronize()``.
    """
    return SyncEngine(
        store=create_store(config.remote, home=base_dir),
        cache=HashCache(resolve_path(config.sync.hash_cache_file, base_dir), log=log),
        probe=GameProbe(),
        hasher=FileHasher(config.sync.hash_algorithm),
        game=config.game,
        sync=config.sync,
        log=log,
    )


class SyncService:
    """Long-running host for the poller.

    Args:
        config: Validated configuration.
        base_dir: Directory relative paths resolve against.
        console: Mirror logs to the terminal.
        engine: Pre-built engine (tests); built from config otherwise.
    """

    def __init__(
        self,
        config: SyncConfig,
        base_dir: Path,
        console: bool = False,
        engine: Optional[SyncEngine] = None,
    ):
        self.config = config
        self.base_dir = Path(base_dir)
        self.logging = LoggingContext(config.logging, base_dir=self.base_dir, console=console)
        self._engine = engine
        self._started = False
        self._previous_handlers: dict = {}
        self.poller: Optional[SyncPoller] = None

    def start(self) -> SyncPoller:
        """Open logging, log the banner, and build the poller."""
        self.logging.open()
        self._started = True
        log = self.logging.get_logger("service")
        log_startup(log, APP_NAME, self.config)

        engine = self._engine or build_engine(
            self.config, self.base_dir, log=self.logging.get_logger("engine")
        )
        self.poller = SyncPoller(
            engine,
            interval_seconds=self.config.sync.interval_minutes * 60,
            log=self.logging.get_logger("poller"),
        )
        return self.poller

    def run_forever(self, install_signals: bool = True) -> None:
        """Run the poller in this thread until stopped."""
        if self.poller is None:
            self.start()
        if install_signals:
            self._setup_signals()
        try:
            self.poller.run()
        except KeyboardInterrupt:
            pass
        finally:
            self.stop()

    def stop(self) -> None:
        """Stop the poller and tear down logging."""
        if self.poller is not None:
            self.poller.stop()
        if self._started:
            log_shutdown(self.logging.get_logger("service"), APP_NAME)
            self.logging.close()
            self._started = False
        self._restore_signals()

    def _setup_signals(self) -> None:
        """Register signal handlers for graceful shutdown."""
        for sig in (signal.SIGTERM, signal.SIGINT):
            self._previous_handlers[sig] = signal.signal(sig, self._handle_signal)

    def _restore_signals(self) -> None:
        """Put back whatever handlers were installed before us."""
        for sig, handler in self._previous_handlers.items():
            # None means the old handler was not installed from Python
            signal.signal(sig, handler if handler is not None else signal.SIG_DFL)
        self._previous_handlers = {}

    def _handle_signal(self, signum, frame):
        """Handle shutdown signals."""
        logger.info("Received signal %s, stopping", signal.Signals(signum).name)
        if self.poller is not None:
            self.poller.stop()
