"""
Blob store contract -- the only thing the engine knows about the remote.

Any object store that can hold two named blobs in one container
can carry a save: the payload and its fingerprint record.
"""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Union

PathLike = Union[str, Path]


class BlobStore(ABC):
    """Abstract remote blob backend.

    Every method raises ``RemoteUnavailable`` when the backend
    cannot be reached or rejects the request.
    """

    @abstractmethod
    def ensure_container(self) -> None:
        """Create the container/bucket if it does not exist yet."""

    @abstractmethod
    def exists(self, blob_name: str) -> bool:
        """Check whether a blob is present."""

    @abstractmethod
    def read_text(self, blob_name: str) -> Optional[str]:
        """Read a small text blob.

        Returns:
            The blob content, or None if the blob does not exist.
        """

    @abstractmethod
    def upload_file(self, blob_name: str, local_path: PathLike) -> None:
        """Stream a local file into a blob, overwriting it."""

    @abstractmethod
    def upload_text(self, blob_name: str, content: str) -> None:
        """Write a short string as a blob, overwriting it."""

    @abstractmethod
    def download_to_file(self, blob_name: str, local_path: PathLike) -> None:
        """Stream a blob over a local file."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable backend name."""


@contextmanager
def staged_replace(local_path: PathLike) -> Iterator[Path]:
    """Yield a sibling ``.part`` path; move it over *local_path* on success.

    A transfer that dies halfway leaves the original file untouched.
    """
    target = Path(local_path)
    part = target.with_name(target.name + ".part")
    try:
        yield part
        os.replace(part, target)
    finally:
        if part.exists():
            part.unlink()
