"""
Remote blob stores -- where the shared save lives.

Azure: the default, one storage account container.
S3: any S3-compatible bucket (optional extra).
Local: a plain directory, for NAS shares, USB drives, or tests.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from ..errors import ConfigurationInvalid
from ..models import RemoteBackendType, RemoteSettings
from .base import BlobStore
from .local import LocalBlobStore

__all__ = ["BlobStore", "LocalBlobStore", "create_store"]


def create_store(
    settings: RemoteSettings, home: Optional[Path] = None
) -> BlobStore:
    """Factory function to create the configured backend.

    SDK modules are imported on demand so a missing optional
    extra only matters for the backend that needs it.

    Args:
        settings: Remote section of the configuration.
        home: savesync home, used as the local backend root when
            no path is configured.

    Returns:
        BlobStore: Instantiated backend.

    Raises:
        ConfigurationInvalid: If the backend type is not supported.
        RuntimeError: If the backend's SDK is not installed.
    """
    backend = settings.backend

    if backend == RemoteBackendType.LOCAL:
        base = Path(home or "~/.savesync").expanduser()
        root = Path(settings.path).expanduser() if settings.path else base / "remote"
        if not root.is_absolute():
            root = base / root
        return LocalBlobStore(root, settings.container)

    if backend == RemoteBackendType.AZURE:
        from .azure import AzureBlobStore

        try:
            return AzureBlobStore(settings.connection_string, settings.container)
        except ValueError as exc:
            raise ConfigurationInvalid([f"remote.connection_string: {exc}"]) from exc

    if backend == RemoteBackendType.S3:
        try:
            from .s3 import S3BlobStore
        except ImportError:
            raise RuntimeError(
                "S3 backend requires boto3: pip install 'savesync[s3]'"
            )
        return S3BlobStore(
            settings.container,
            region=settings.region,
            endpoint_url=settings.endpoint_url,
        )

    raise ConfigurationInvalid([f"Unsupported backend: {backend}"])
