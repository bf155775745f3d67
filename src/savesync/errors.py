"""
Exception taxonomy for savesync.

Local file problems stay as the builtin ``OSError``. Everything
that originates in savesync itself derives from ``SaveSyncError``.
"""

from __future__ import annotations

from typing import Optional


class SaveSyncError(Exception):
    """Base class for savesync errors."""


class RemoteUnavailable(SaveSyncError):
    """A remote store operation failed (network, auth, timeout, missing blob).

    Always recoverable: the next cycle tries again.
    """

    def __init__(self, message: str, blob_name: Optional[str] = None):
        super().__init__(message)
        self.blob_name = blob_name


class ConfigurationInvalid(SaveSyncError):
    """The configuration file could not be loaded or failed validation."""

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__(
            "Configuration validation failed:\n" + "\n".join(self.errors)
        )


class BackupFailed(SaveSyncError):
    """The safety copy could not be written, so the download was aborted."""


class SyncCancelled(SaveSyncError):
    """Cooperative cancellation of an in-flight sync cycle."""
