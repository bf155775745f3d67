"""Shared test fixtures for savesync."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import pytest

from savesync.cache import HashCache
from savesync.engine import SyncEngine
from savesync.errors import RemoteUnavailable
from savesync.hasher import FileHasher
from savesync.models import GameSettings, SynchronizationSettings
from savesync.stores.base import BlobStore

SAVE_BLOB = "cloudsave.sav"
HASH_BLOB = "cloudsave.md5"


class MemoryBlobStore(BlobStore):
    """In-memory blob store that records every call.

    ``fail(method, blob_name)`` makes that call raise RemoteUnavailable.
    """

    def __init__(self):
        self.blobs: dict[str, bytes] = {}
        self.calls: list[tuple[str, Optional[str]]] = []
        self.failures: dict[tuple[str, Optional[str]], Exception] = {}

    @property
    def name(self) -> str:
        return "memory"

    def fail(self, method: str, blob_name: Optional[str] = None, exc: Optional[Exception] = None):
        self.failures[(method, blob_name)] = exc or RemoteUnavailable(
            f"{method} {blob_name} unavailable", blob_name
        )

    def _call(self, method: str, blob_name: Optional[str] = None) -> None:
        self.calls.append((method, blob_name))
        exc = self.failures.get((method, blob_name))
        if exc is not None:
            raise exc

    def methods_called(self) -> set[str]:
        return {method for method, _ in self.calls}

    def ensure_container(self) -> None:
        self._call("ensure_container")

    def exists(self, blob_name: str) -> bool:
        self._call("exists", blob_name)
        return blob_name in self.blobs

    def read_text(self, blob_name: str) -> Optional[str]:
        self._call("read_text", blob_name)
        data = self.blobs.get(blob_name)
        return None if data is None else data.decode("utf-8")

    def upload_file(self, blob_name: str, local_path) -> None:
        self._call("upload_file", blob_name)
        self.blobs[blob_name] = Path(local_path).read_bytes()

    def upload_text(self, blob_name: str, content: str) -> None:
        self._call("upload_text", blob_name)
        self.blobs[blob_name] = content.encode("utf-8")

    def download_to_file(self, blob_name: str, local_path) -> None:
        self._call("download_to_file", blob_name)
        if blob_name not in self.blobs:
            raise RemoteUnavailable(f"Blob not found: {blob_name}", blob_name)
        Path(local_path).write_bytes(self.blobs[blob_name])


class FakeProbe:
    """Game probe with a fixed answer (or a fixed failure)."""

    def __init__(self, running: bool = False, error: Optional[Exception] = None):
        self.running = running
        self.error = error
        self.calls: list[str] = []

    def is_running(self, process_name: str) -> bool:
        self.calls.append(process_name)
        if self.error is not None:
            raise self.error
        return self.running


class FakeHasher:
    """Returns a fixed fingerprint regardless of file content."""

    def __init__(self, fingerprint: str = "", error: Optional[Exception] = None):
        self.fingerprint = fingerprint
        self.error = error

    def hash(self, path) -> str:
        if self.error is not None:
            raise self.error
        return self.fingerprint


@pytest.fixture
def save_dir(tmp_path: Path) -> Path:
    """An empty game save directory."""
    d = tmp_path / "saves"
    d.mkdir()
    return d


@pytest.fixture
def save_file(save_dir: Path) -> Path:
    """One save file matching the configured prefix."""
    path = save_dir / "TestSave_autosave_1.sav"
    path.write_bytes(b"local content")
    return path


@pytest.fixture
def game_settings(save_dir: Path) -> GameSettings:
    return GameSettings(
        process_name="FakeGame",
        save_directory=str(save_dir),
        save_prefix="TestSave",
    )


@pytest.fixture
def sync_settings() -> SynchronizationSettings:
    return SynchronizationSettings(
        interval_minutes=1,
        save_blob_name=SAVE_BLOB,
        hash_blob_name=HASH_BLOB,
        hash_cache_file="last-cloud-hash.txt",
    )


@pytest.fixture
def store() -> MemoryBlobStore:
    return MemoryBlobStore()


@pytest.fixture
def cache(tmp_path: Path) -> HashCache:
    return HashCache(tmp_path / "state" / "last-cloud-hash.txt")


@pytest.fixture
def probe() -> FakeProbe:
    return FakeProbe()


@pytest.fixture
def make_engine(store, cache, probe, game_settings, sync_settings):
    """Factory for engines wired to the in-memory fakes.

    Any collaborator can be overridden per test.
    """

    def _make(**overrides) -> SyncEngine:
        kwargs = dict(
            store=store,
            cache=cache,
            probe=probe,
            hasher=FileHasher(),
            game=game_settings,
            sync=sync_settings,
        )
        kwargs.update(overrides)
        return SyncEngine(**kwargs)

    return _make


@pytest.fixture
def local_config_file(tmp_path: Path, save_dir: Path) -> Path:
    """A valid config file using the local directory backend."""
    import yaml

    config_dir = tmp_path / "home"
    config_dir.mkdir()
    data = {
        "remote": {
            "backend": "local",
            "container": "saves",
            "path": str(tmp_path / "remote"),
        },
        "game": {
            "process_name": "savesync-test-game-that-never-runs",
            "save_directory": str(save_dir),
            "save_prefix": "TestSave",
        },
        "sync": {
            "interval_minutes": 1,
            "save_blob_name": SAVE_BLOB,
            "hash_blob_name": HASH_BLOB,
            "hash_cache_file": "last-cloud-hash.txt",
        },
        "logging": {"file": "logs/sync.log", "level": "DEBUG"},
    }
    path = config_dir / "config.yaml"
    path.write_text(yaml.dump(data, default_flow_style=False))
    return path
