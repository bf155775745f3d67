"""
Poller -- runs the sync engine on a fixed interval until told to stop.

One cycle at a time: the next wait starts only after the previous
cycle has finished, and manual triggers share the same lock.
"""

from __future__ import annotations

import logging
import os
import threading
from datetime import datetime, timezone
from typing import Optional

from .engine import SyncEngine
from .errors import SyncCancelled
from .models import SyncAction, SyncResult

logger = logging.getLogger("savesync.poller")

MAX_ERRORS = 50


class PollerState:
    """Thread-safe record of what the poller has been doing.

    All access is lock-protected.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self.started_at: Optional[datetime] = None
        self.last_cycle: Optional[datetime] = None
        self.last_result: Optional[SyncResult] = None
        self.cycles: int = 0
        self.counts: dict[str, int] = {a.value: 0 for a in SyncAction}
        self.errors: list[str] = []
        self.running: bool = False

    def record_result(self, result: SyncResult) -> None:
        """Record the outcome of a completed cycle."""
        with self._lock:
            self.last_cycle = datetime.now(timezone.utc)
            self.last_result = result
            self.cycles += 1
            self.counts[result.action.value] += 1
        if result.action == SyncAction.ERROR:
            self.record_error(result.message)

    def record_error(self, error: str) -> None:
        """Record an error, keeping only the last 50."""
        with self._lock:
            ts = datetime.now(timezone.utc).isoformat()
            self.errors.append(f"[{ts}] {error}")
            if len(self.errors) > MAX_ERRORS:
                self.errors = self.errors[-MAX_ERRORS:]

    def snapshot(self) -> dict:
        """Return a serializable snapshot of current state."""
        with self._lock:
            last = self.last_result
            return {
                "running": self.running,
                "started_at": self.started_at.isoformat() if self.started_at else None,
                "last_cycle": self.last_cycle.isoformat() if self.last_cycle else None,
                "last_action": last.action.value if last else None,
                "last_message": last.message if last else None,
                "cycles": self.cycles,
                "counts": dict(self.counts),
                "recent_errors": self.errors[-10:],
                "pid": os.getpid(),
            }


class SyncPoller:
    """Interval loop around ``SyncEngine.synchronize``.

    Args:
        engine: The engine to drive.
        interval_seconds: Wait between the end of one cycle and the
            start of the next.
        log: Logger. Defaults to ``savesync.poller``.
    """

    def __init__(
        self,
        engine: SyncEngine,
        interval_seconds: float,
        log: Optional[logging.Logger] = None,
    ):
        self.engine = engine
        self.interval = interval_seconds
        self.state = PollerState()
        self._stop_event = threading.Event()
        self._cycle_lock = threading.Lock()
        self._log = log or logger

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    def run_once(self) -> SyncResult:
        """Run one cycle, serialized against any other caller.

        Raises:
            SyncCancelled: If ``stop()`` was called mid-cycle.
        """
        with self._cycle_lock:
            result = self.engine.synchronize(cancel_event=self._stop_event)
        self.state.record_result(result)

        if result.action in (SyncAction.NONE, SyncAction.SKIPPED):
            self._log.debug("Sync check: %s - %s", result.action.value, result.message)
        elif result.action == SyncAction.ERROR:
            self._log.error("Sync failed: %s", result.message)
        else:
            self._log.info("Sync completed: %s - %s", result.action.value, result.message)
        return result

    def run(self) -> None:
        """Cycle, wait, repeat. Blocks until ``stop()``."""
        self.state.running = True
        self.state.started_at = datetime.now(timezone.utc)
        self._log.info("Sync interval set to %s seconds", self.interval)

        try:
            while not self._stop_event.is_set():
                try:
                    self.run_once()
                except SyncCancelled:
                    break
                except Exception as exc:
                    self._log.error("Error during synchronization cycle: %s", exc, exc_info=True)
                    self.state.record_error(f"Cycle: {exc}")

                self._stop_event.wait(timeout=self.interval)
        finally:
            self.state.running = False
            self._log.info("Poller stopped")

    def stop(self) -> None:
        """Request the loop to end. Interrupts the wait immediately."""
        self._stop_event.set()
