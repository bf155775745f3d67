"""
Pydantic models for savesync configuration and sync outcomes.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field


class RemoteBackendType(str, Enum):
    """Supported remote blob backends."""

    AZURE = "azure"
    S3 = "s3"
    LOCAL = "local"


class RemoteSettings(BaseModel):
    """Where the shared save lives.

    Attributes:
        backend: Which blob backend to talk to.
        container: Container (Azure) or bucket (S3) name. For the local
            backend, a subdirectory of ``path``.
        connection_string: Azure storage connection string.
        endpoint_url: Custom S3 endpoint (MinIO, R2, ...).
        region: S3 region.
        path: Root directory for the local backend.
    """

    backend: RemoteBackendType = RemoteBackendType.AZURE
    container: str = ""
    connection_string: str = ""
    endpoint_url: Optional[str] = None
    region: Optional[str] = None
    path: Optional[Path] = None


class GameSettings(BaseModel):
    """Which process and which save files belong to the game."""

    process_name: str = ""
    save_directory: str = ""
    save_prefix: str = ""


class SynchronizationSettings(BaseModel):
    """Blob names, cache location, and polling cadence."""

    interval_minutes: int = 1
    save_blob_name: str = ""
    hash_blob_name: str = ""
    hash_cache_file: str = ""
    hash_algorithm: str = "md5"


class LoggingSettings(BaseModel):
    """Log destination and verbosity."""

    file: str = ""
    level: str = "INFO"


class SyncConfig(BaseModel):
    """Complete savesync configuration."""

    remote: RemoteSettings = Field(default_factory=RemoteSettings)
    game: GameSettings = Field(default_factory=GameSettings)
    sync: SynchronizationSettings = Field(default_factory=SynchronizationSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


class SyncAction(str, Enum):
    """What a sync cycle ended up doing."""

    NONE = "none"
    UPLOAD = "upload"
    DOWNLOAD = "download"
    SKIPPED = "skipped"
    ERROR = "error"


class SyncResult(BaseModel):
    """Outcome of one sync cycle."""

    action: SyncAction
    message: str
    save_file: Optional[Path] = None
    local_hash: Optional[str] = None
    remote_hash: Optional[str] = None
    backup_path: Optional[Path] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def ok(self) -> bool:
        return self.action != SyncAction.ERROR
