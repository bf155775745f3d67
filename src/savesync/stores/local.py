"""
Local filesystem store for NAS shares, USB drives, or synced folders.

The container is a directory under the configured root and each
blob is a plain file inside it.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Optional

from ..errors import RemoteUnavailable
from .base import BlobStore, PathLike, staged_replace

logger = logging.getLogger("savesync.stores.local")


class LocalBlobStore(BlobStore):
    """Directory-backed blob store.

    Args:
        root: Directory that holds containers.
        container: Name of the container directory under *root*.
    """

    def __init__(self, root: PathLike, container: str):
        self.root = Path(root).expanduser()
        self.container = container
        self.container_dir = self.root / container

    @property
    def name(self) -> str:
        return "local"

    def _blob(self, blob_name: str) -> Path:
        return self.container_dir / blob_name

    def ensure_container(self) -> None:
        try:
            self.container_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise RemoteUnavailable(
                f"Cannot create container {self.container_dir}: {exc}"
            ) from exc

    def exists(self, blob_name: str) -> bool:
        return self._blob(blob_name).is_file()

    def read_text(self, blob_name: str) -> Optional[str]:
        path = self._blob(blob_name)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise RemoteUnavailable(
                f"Cannot read {blob_name}: {exc}", blob_name
            ) from exc

    def upload_file(self, blob_name: str, local_path: PathLike) -> None:
        try:
            with staged_replace(self._blob(blob_name)) as part:
                shutil.copyfile(local_path, part)
        except OSError as exc:
            raise RemoteUnavailable(
                f"Cannot upload {blob_name}: {exc}", blob_name
            ) from exc
        logger.debug("Uploaded %s -> %s", local_path, self._blob(blob_name))

    def upload_text(self, blob_name: str, content: str) -> None:
        try:
            self._blob(blob_name).write_text(content, encoding="utf-8")
        except OSError as exc:
            raise RemoteUnavailable(
                f"Cannot upload {blob_name}: {exc}", blob_name
            ) from exc

    def download_to_file(self, blob_name: str, local_path: PathLike) -> None:
        source = self._blob(blob_name)
        if not source.is_file():
            raise RemoteUnavailable(f"Blob not found: {blob_name}", blob_name)
        try:
            with staged_replace(local_path) as part:
                shutil.copyfile(source, part)
        except OSError as exc:
            raise RemoteUnavailable(
                f"Cannot download {blob_name}: {exc}", blob_name
            ) from exc
        logger.debug("Downloaded %s -> %s", source, local_path)
