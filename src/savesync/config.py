"""
Configuration loading and validation.

Config lives in ``<SAVESYNC_HOME>/config.yaml`` unless
``SAVESYNC_CONFIG`` or ``--config`` points elsewhere. JSON files
load too, since YAML is a superset of JSON.
"""

from __future__ import annotations

import hashlib
import logging
import os
from pathlib import Path
from typing import Optional, Union

import yaml
from pydantic import ValidationError

from . import SAVESYNC_HOME
from .errors import ConfigurationInvalid
from .models import RemoteBackendType, SyncConfig

logger = logging.getLogger("savesync.config")

CONFIG_FILENAME = "config.yaml"

SAMPLE_CONFIG = {
    "remote": {
        "backend": "azure",
        "connection_string": (
            "DefaultEndpointsProtocol=https;AccountName=your-storage-account;"
            "AccountKey=your-key;EndpointSuffix=core.windows.net"
        ),
        "container": "satisfactory-saves",
    },
    "game": {
        "process_name": "FactoryGame-Win64-Shipping",
        "save_directory": "%LOCALAPPDATA%/FactoryGame/Saved/SaveGames/76561198000000000",
        "save_prefix": "Session1_autosave_0",
    },
    "sync": {
        "interval_minutes": 1,
        "save_blob_name": "satisfactory-save.sav",
        "hash_blob_name": "cloud-save-hash.md5",
        "hash_cache_file": "last-cloud-hash.txt",
        "hash_algorithm": "md5",
    },
    "logging": {
        "file": "logs/sync.log",
        "level": "INFO",
    },
}


def savesync_home() -> Path:
    """The savesync home directory (``SAVESYNC_HOME``, default ~/.savesync)."""
    return Path(os.environ.get("SAVESYNC_HOME", SAVESYNC_HOME)).expanduser()


def default_config_path() -> Path:
    """``SAVESYNC_CONFIG`` if set, else ``<home>/config.yaml``."""
    override = os.environ.get("SAVESYNC_CONFIG")
    if override:
        return Path(override).expanduser()
    return savesync_home() / CONFIG_FILENAME


def validate_config(config: SyncConfig) -> list[str]:
    """Collect every semantic problem with a parsed config.

    Returns:
        list[str]: Human-readable problems; empty when valid.
    """
    errors = []

    def required(value: Optional[str], name: str) -> None:
        if not value or not str(value).strip():
            errors.append(f"{name} is required")

    remote = config.remote
    required(remote.container, "remote.container")
    if remote.backend == RemoteBackendType.AZURE:
        required(remote.connection_string, "remote.connection_string")

    required(config.game.process_name, "game.process_name")
    required(config.game.save_directory, "game.save_directory")
    required(config.game.save_prefix, "game.save_prefix")

    required(config.sync.save_blob_name, "sync.save_blob_name")
    required(config.sync.hash_blob_name, "sync.hash_blob_name")
    required(config.sync.hash_cache_file, "sync.hash_cache_file")
    if config.sync.interval_minutes <= 0:
        errors.append("sync.interval_minutes must be greater than 0")
    if config.sync.save_blob_name and config.sync.save_blob_name == config.sync.hash_blob_name:
        errors.append("sync.save_blob_name and sync.hash_blob_name must differ")

    if config.sync.hash_algorithm not in hashlib.algorithms_available:
        errors.append(f"sync.hash_algorithm '{config.sync.hash_algorithm}' is not supported")

    return errors


def load_config(path: Optional[Union[str, Path]] = None) -> SyncConfig:
    """Load and validate the configuration file.

    Args:
        path: Config file. Defaults to ``default_config_path()``.

    Returns:
        SyncConfig: The validated configuration.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigurationInvalid: If it cannot be parsed or fails validation.
    """
    config_path = Path(path).expanduser() if path else default_config_path()
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    try:
        data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ConfigurationInvalid([f"{config_path}: {exc}"]) from exc
    if not isinstance(data, dict):
        raise ConfigurationInvalid([f"{config_path}: top level must be a mapping"])

    try:
        config = SyncConfig(**data)
    except ValidationError as exc:
        raise ConfigurationInvalid([
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
            for err in exc.errors()
        ]) from exc

    errors = validate_config(config)
    if errors:
        raise ConfigurationInvalid(errors)

    logger.debug("Loaded configuration from %s", config_path)
    return config


def create_sample_config(path: Union[str, Path], overwrite: bool = False) -> Path:
    """Write a sample configuration to edit.

    Args:
        path: Where to write it.
        overwrite: Replace an existing file.

    Returns:
        Path: The file written.

    Raises:
        FileExistsError: If the file exists and *overwrite* is False.
    """
    target = Path(path).expanduser()
    if target.exists() and not overwrite:
        raise FileExistsError(f"Configuration already exists: {target}")
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(
        yaml.dump(SAMPLE_CONFIG, default_flow_style=False, sort_keys=False),
        encoding="utf-8",
    )
    return target
