"""
Persisted registry state.

One JSON file holds a record per workspace, keyed by a short hash of the
workspace's absolute path so several projects can share the same data
directory without colliding:

    {
      "teamRegistry_1a2b3c4d": {
        "remoteUrl": "git@github.com:acme/rules.git",
        "storageLocation": "/home/me/.local/share/teamreg/storage/teamRegistry_1a2b3c4d",
        "files": [".cursor/rules/a.mdc"]
      }
    }
"""

from __future__ import annotations

import hashlib
import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from teamreg.core.registry.locks import file_lock
from teamreg.core.registry.models import RegistryDescriptor

logger = logging.getLogger(__name__)

KEY_PREFIX = "teamRegistry"


def workspace_key(workspace_root: Path) -> str:
    """
    Derive the stable state key for a workspace.

    The key is ``teamRegistry_`` followed by the first eight hex digits of
    the MD5 of the resolved path.
    """
    absolute = str(workspace_root.resolve())
    digest = hashlib.md5(absolute.encode(), usedforsecurity=False).hexdigest()
    return f"{KEY_PREFIX}_{digest[:8]}"


class StateStore:
    """
    Load, save, and clear registry descriptors by workspace key.

    Writes go through a temp file and an atomic rename so a crash mid-write
    never leaves a truncated state file behind. Updates hold a lock file so
    processes saving different workspaces do not drop each other's records.
    """

    STATE_FILE = "state.json"
    LOCK_FILE = "state.lock"

    def __init__(self, state_dir: Path) -> None:
        self.state_dir = state_dir

    @property
    def state_file_path(self) -> Path:
        """Full path to the state file."""
        return self.state_dir / self.STATE_FILE

    def _read(self) -> dict[str, Any]:
        if not self.state_file_path.exists():
            return {}
        try:
            data = json.loads(self.state_file_path.read_text())
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Failed to read registry state %s: %s", self.state_file_path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring malformed registry state in %s", self.state_file_path)
            return {}
        return data

    def _write(self, data: dict[str, Any]) -> None:
        self.state_dir.mkdir(parents=True, exist_ok=True)

        temp_path = self.state_file_path.with_suffix(".tmp")
        try:
            temp_path.write_text(json.dumps(data, indent=2))
            temp_path.replace(self.state_file_path)
        except OSError:
            if temp_path.exists():
                temp_path.unlink()
            raise

    def load(self, key: str) -> RegistryDescriptor | None:
        """
        Load the descriptor stored under a key.

        Returns:
            The descriptor, or None if absent or unreadable.
        """
        record = self._read().get(key)
        if record is None:
            return None
        try:
            return RegistryDescriptor.model_validate(record)
        except ValidationError as e:
            logger.warning("Discarding invalid registry record %s: %s", key, e)
            return None

    def save(self, key: str, descriptor: RegistryDescriptor) -> None:
        """Persist a descriptor under a key, replacing any previous record."""
        with file_lock(self.state_dir / self.LOCK_FILE):
            data = self._read()
            data[key] = descriptor.model_dump(mode="json", by_alias=True)
            self._write(data)
        logger.info("Registry state persisted for %s", key)

    def clear(self, key: str) -> None:
        """Remove the record stored under a key, if any."""
        with file_lock(self.state_dir / self.LOCK_FILE):
            data = self._read()
            if key not in data:
                return
            del data[key]
            self._write(data)
        logger.info("Registry state cleared for %s", key)
