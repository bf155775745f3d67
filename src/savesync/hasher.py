"""
Content fingerprints for save files.

The fingerprint is a cheap equality proxy: two files with the same
digest are treated as the same save. MD5 by default, which is what
the remote hash records were always written with.
"""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Optional, Union

DEFAULT_ALGORITHM = "md5"
CHUNK_SIZE = 1024 * 1024


def normalize_fingerprint(value: Optional[str]) -> str:
    """Trim and lowercase a fingerprint. ``None`` becomes ``""``."""
    if value is None:
        return ""
    return value.strip().lower()


def compute_fingerprint(
    path: Union[str, Path],
    algorithm: str = DEFAULT_ALGORITHM,
    chunk_size: int = CHUNK_SIZE,
) -> str:
    """Stream a file through a digest and return the lowercase hex.

    Args:
        path: File to hash.
        algorithm: Any name accepted by ``hashlib.new``.
        chunk_size: Bytes read per iteration.

    Returns:
        str: Lowercase hex digest.

    Raises:
        OSError: If the file cannot be read.
    """
    h = hashlib.new(algorithm)
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(chunk_size), b""):
            h.update(chunk)
    return h.hexdigest().lower()


class FileHasher:
    """Injectable fingerprint calculator.

    Args:
        algorithm: hashlib algorithm name.
    """

    def __init__(self, algorithm: str = DEFAULT_ALGORITHM):
        hashlib.new(algorithm)  # ValueError early for unknown names
        self.algorithm = algorithm

    def hash(self, path: Union[str, Path]) -> str:
        return compute_fingerprint(path, self.algorithm)
