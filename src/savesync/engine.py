"""
Sync Engine -- decides which way the save moves, then moves it.

Three fingerprints drive every decision:

    local   what is on disk right now
    remote  what the hash record next to the remote save says
    cached  what the remote was the last time this machine synced

If the remote moved away from what we cached, someone else saved:
download. If it did not, the change is ours: upload.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any, Optional, Union

from .cache import HashCache
from .errors import RemoteUnavailable, SyncCancelled
from .hasher import FileHasher, normalize_fingerprint
from .models import GameSettings, SyncAction, SyncResult, SynchronizationSettings
from .saves import create_backup, expand_directory, find_latest_save
from .stores.base import BlobStore

logger = logging.getLogger("savesync.engine")


def decide(
    local_hash: Optional[str],
    remote_hash: Optional[str],
    cached_hash: Optional[str],
) -> SyncAction:
    """Pick the sync direction. First matching rule wins.

    ====================  =============  ==============  ========
    remote                local==remote  remote==cached  action
    ====================  =============  ==============  ========
    absent                -              -               UPLOAD
    present               yes            -               NONE
    present               no             no              DOWNLOAD
    present               no             yes             UPLOAD
    ====================  =============  ==============  ========

    Inputs are normalized first; ``None`` and blank mean absent.
    When both sides changed the remote wins, since it differs from
    the cache.
    """
    local = normalize_fingerprint(local_hash)
    remote = normalize_fingerprint(remote_hash)
    cached = normalize_fingerprint(cached_hash)

    if not remote:
        return SyncAction.UPLOAD
    if local == remote:
        return SyncAction.NONE
    if remote != cached:
        return SyncAction.DOWNLOAD
    return SyncAction.UPLOAD


class SyncEngine:
    """Single-save synchronizer.

    Every collaborator is passed in, so tests can hand it in-memory
    fakes and hosts can swap the backend.

    Args:
        store: Remote blob store.
        cache: Cache of the last remote fingerprint seen here.
        probe: Anything with ``is_running(process_name) -> bool``.
        hasher: Anything with ``hash(path) -> str``.
        game: Process name and save location.
        sync: Blob names.
        log: Logger for this engine. Defaults to ``savesync.engine``.
    """

    def __init__(
        self,
        store: BlobStore,
        cache: HashCache,
        probe: Any,
        hasher: Any,
        game: GameSettings,
        sync: SynchronizationSettings,
        log: Optional[logging.Logger] = None,
    ):
        self.store = store
        self.cache = cache
        self.probe = probe
        self.hasher = hasher or FileHasher()
        self.game = game
        self.sync = sync
        self._log = log or logger

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def synchronize(
        self, cancel_event: Optional[threading.Event] = None
    ) -> SyncResult:
        """Run one sync cycle.

        Never raises for sync failures: they come back as an ERROR
        result. Only ``SyncCancelled`` escapes, when *cancel_event*
        is set while the cycle is in flight.
        """
        if self._game_running():
            self._log.debug("Game is running, skipping synchronization")
            return SyncResult(action=SyncAction.SKIPPED, message="Game is running")

        try:
            return self._run_cycle(cancel_event)
        except SyncCancelled:
            self._log.info("Synchronization cancelled")
            raise
        except Exception as exc:
            self._log.error("Error during synchronization: %s", exc, exc_info=True)
            return SyncResult(action=SyncAction.ERROR, message=str(exc))

    def force_upload(self, path: Union[str, Path]) -> SyncResult:
        """Push an arbitrary file as the remote save.

        The local cache is left alone on purpose: every machine,
        this one included, then sees the remote as changed and
        pulls it down on its next cycle.
        """
        path = Path(path)
        try:
            local_hash = normalize_fingerprint(self.hasher.hash(path))
            self.store.ensure_container()
            self._upload(path, local_hash)
        except Exception as exc:
            self._log.error("Force upload failed: %s", exc, exc_info=True)
            return SyncResult(action=SyncAction.ERROR, message=str(exc), save_file=path)

        self._log.info("Force uploaded %s with hash %s", path, local_hash)
        return SyncResult(
            action=SyncAction.UPLOAD,
            message=f"Force upload complete. Hash: {local_hash}",
            save_file=path,
            local_hash=local_hash,
            remote_hash=local_hash,
        )

    def check_remote(self) -> SyncResult:
        """Probe the remote without moving any save data."""
        try:
            self.store.ensure_container()
            remote_hash = normalize_fingerprint(
                self.store.read_text(self.sync.hash_blob_name)
            )
            has_save = self.store.exists(self.sync.save_blob_name)
        except Exception as exc:
            self._log.error("Remote check failed: %s", exc)
            return SyncResult(action=SyncAction.ERROR, message=str(exc))

        return SyncResult(
            action=SyncAction.NONE,
            message=(
                f"Remote '{self.store.name}' reachable. "
                f"Save blob: {'present' if has_save else 'absent'}. "
                f"Hash record: {remote_hash or 'absent'}"
            ),
            remote_hash=remote_hash or None,
        )

    # ------------------------------------------------------------------
    # Cycle
    # ------------------------------------------------------------------

    def _run_cycle(self, cancel_event: Optional[threading.Event]) -> SyncResult:
        _checkpoint(cancel_event)

        save_dir = expand_directory(self.game.save_directory)
        prefix = self.game.save_prefix
        if not save_dir.is_dir():
            self._log.warning("Save file directory not found: %s", save_dir)
            return SyncResult(
                action=SyncAction.NONE,
                message=f"Save file directory not found: {save_dir}",
            )

        save_file = find_latest_save(save_dir, prefix)
        if save_file is None:
            self._log.warning("No save files found with prefix %s in %s", prefix, save_dir)
            return SyncResult(
                action=SyncAction.NONE,
                message=f"No save files found with prefix {prefix} in {save_dir}",
            )

        _checkpoint(cancel_event)
        self.store.ensure_container()

        local_hash = normalize_fingerprint(self.hasher.hash(save_file))
        _checkpoint(cancel_event)
        remote_hash = normalize_fingerprint(
            self.store.read_text(self.sync.hash_blob_name)
        )
        cached_hash = normalize_fingerprint(self.cache.read())

        self._log.debug("Local file selected for sync: %s", save_file)
        self._log.debug("Local hash: %s", local_hash)
        self._log.debug("Remote hash: %s", remote_hash or "absent")
        self._log.debug("Cached remote hash: %s", cached_hash or "absent")

        action = decide(local_hash, remote_hash, cached_hash)
        result = SyncResult(
            action=action,
            message="",
            save_file=save_file,
            local_hash=local_hash,
            remote_hash=remote_hash or None,
        )

        if action == SyncAction.NONE:
            self._log.debug("Local and remote save files are in sync")
            result.message = "Files are in sync"
            return result

        _checkpoint(cancel_event)

        if action == SyncAction.UPLOAD:
            first = not remote_hash
            self._upload(save_file, local_hash)
            self.cache.write(local_hash)
            result.remote_hash = local_hash
            result.message = (
                "First upload to remote" if first else "Uploaded newer local version"
            )
            self._log.info(
                "Uploaded local save %s (%s)",
                save_file.name, "first upload" if first else "local changed",
            )
            return result

        result.backup_path = create_backup(save_file)
        self._log.debug("Created backup of local save file: %s", result.backup_path)
        self.store.download_to_file(self.sync.save_blob_name, save_file)
        self.cache.write(remote_hash)
        self._verify_download(save_file, remote_hash)
        result.message = "Downloaded newer remote version"
        self._log.info("Downloaded newer remote save over %s", save_file.name)
        return result

    def _upload(self, path: Path, local_hash: str) -> None:
        """Write the payload and the hash record.

        Both writes are attempted even if the first fails; any
        failure fails the whole upload.
        """
        failures = []
        writes = (
            (self.sync.save_blob_name, lambda: self.store.upload_file(self.sync.save_blob_name, path)),
            (self.sync.hash_blob_name, lambda: self.store.upload_text(self.sync.hash_blob_name, local_hash)),
        )
        for blob_name, write in writes:
            try:
                write()
            except (RemoteUnavailable, OSError) as exc:
                self._log.warning("Upload of %s failed: %s", blob_name, exc)
                failures.append(f"{blob_name}: {exc}")

        if failures:
            raise RemoteUnavailable("Upload incomplete: " + "; ".join(failures))

    def _verify_download(self, save_file: Path, expected: str) -> None:
        try:
            actual = normalize_fingerprint(self.hasher.hash(save_file))
        except OSError as exc:
            self._log.warning("Could not re-hash downloaded save: %s", exc)
            return
        if actual != expected:
            # Another machine uploaded between our hash read and download.
            self._log.warning(
                "Downloaded save hash %s does not match remote record %s",
                actual, expected,
            )

    def _game_running(self) -> bool:
        """Probe the game process; an unanswerable probe means not running."""
        try:
            return bool(self.probe.is_running(self.game.process_name))
        except Exception as exc:
            self._log.warning("Error checking if game is running: %s", exc)
            return False


def _checkpoint(cancel_event: Optional[threading.Event]) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise SyncCancelled("Synchronization cancelled")
