"""
Azure Blob Storage backend.

One container, two blobs: the save payload and its fingerprint.
Authentication is whatever the connection string carries.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator, Optional

from azure.core.exceptions import (
    AzureError,
    ResourceExistsError,
    ResourceNotFoundError,
)
from azure.storage.blob import BlobServiceClient

from ..errors import RemoteUnavailable
from .base import BlobStore, PathLike, staged_replace

logger = logging.getLogger("savesync.stores.azure")


@contextmanager
def _azure_errors(action: str, blob_name: Optional[str] = None) -> Iterator[None]:
    """Re-raise SDK failures as RemoteUnavailable."""
    try:
        yield
    except AzureError as exc:
        target = f" {blob_name}" if blob_name else ""
        raise RemoteUnavailable(
            f"Azure {action}{target} failed: {exc}", blob_name
        ) from exc


class AzureBlobStore(BlobStore):
    """Blob store on an Azure storage account.

    Args:
        connection_string: Storage account connection string.
        container: Container name.
        service_client: Pre-built ``BlobServiceClient`` (tests, custom auth).
    """

    def __init__(
        self,
        connection_string: str,
        container: str,
        service_client: Any = None,
    ):
        self.container = container
        self._service = service_client or BlobServiceClient.from_connection_string(
            connection_string
        )
        self._container = self._service.get_container_client(container)

    @property
    def name(self) -> str:
        return "azure"

    def ensure_container(self) -> None:
        with _azure_errors("create container"):
            try:
                self._container.create_container()
                logger.info("Created container %s", self.container)
            except ResourceExistsError:
                pass

    def exists(self, blob_name: str) -> bool:
        with _azure_errors("exists", blob_name):
            return bool(self._container.get_blob_client(blob_name).exists())

    def read_text(self, blob_name: str) -> Optional[str]:
        blob = self._container.get_blob_client(blob_name)
        with _azure_errors("read", blob_name):
            try:
                return blob.download_blob(encoding="utf-8").readall()
            except ResourceNotFoundError:
                return None

    def upload_file(self, blob_name: str, local_path: PathLike) -> None:
        blob = self._container.get_blob_client(blob_name)
        with _azure_errors("upload", blob_name):
            with open(local_path, "rb") as f:
                blob.upload_blob(f, overwrite=True)

    def upload_text(self, blob_name: str, content: str) -> None:
        blob = self._container.get_blob_client(blob_name)
        with _azure_errors("upload", blob_name):
            blob.upload_blob(content.encode("utf-8"), overwrite=True)

    def download_to_file(self, blob_name: str, local_path: PathLike) -> None:
        blob = self._container.get_blob_client(blob_name)
        with _azure_errors("download", blob_name):
            with staged_replace(local_path) as part:
                with open(part, "wb") as f:
                    blob.download_blob().readinto(f)
