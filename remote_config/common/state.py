"""
File-Backed State Store

Durable key/value state using one JSON file per key.
Writes take an exclusive file lock on Unix and land atomically via
write-to-temp + rename, so a crash never leaves a half-written entry.
"""

import json
import os
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .logging_setup import get_service_logger

logger = get_service_logger("state")

# Default state directory - will be created if it doesn't exist
STATE_DIR = Path(os.environ.get("REMOTE_CONFIG_STATE_DIR", "/var/lib/remote-config/state"))


class FileStateStore:
    """
    Simple file-based state store.

    Uses file locking on Unix systems for safe concurrent access.
    On Windows, relies on the atomic rename alone.
    """

    def __init__(self, state_dir: Path | str | None = None):
        self.state_dir = Path(state_dir) if state_dir else STATE_DIR
        self._lock = threading.Lock()

    def _ensure_dir(self) -> None:
        """Ensure state directory exists"""
        self.state_dir.mkdir(parents=True, exist_ok=True)

    def _get_path(self, key: str) -> Path:
        """Get file path for state key"""
        return self.state_dir / f"{key}.json"

    def write(self, key: str, data: dict[str, Any]) -> None:
        """
        Write state atomically.

        Args:
            key: State key (becomes filename without .json)
            data: Dictionary to serialize as JSON
        """
        self._ensure_dir()
        path = self._get_path(key)
        temp_path = path.with_suffix(".tmp")

        data_with_meta = {
            **data,
            "_updated_at": datetime.now(timezone.utc).isoformat(),
        }

        with self._lock:
            with open(temp_path, "w", encoding="utf-8") as f:
                if os.name != "nt":
                    import fcntl
                    fcntl.flock(f.fileno(), fcntl.LOCK_EX)
                try:
                    json.dump(data_with_meta, f, indent=2)
                    f.flush()
                    os.fsync(f.fileno())
                finally:
                    if os.name != "nt":
                        fcntl.flock(f.fileno(), fcntl.LOCK_UN)
            temp_path.replace(path)

        logger.debug(f"State written: {key}", extra={"key": key})

    def read(self, key: str) -> dict[str, Any] | None:
        """
        Read state from file.

        Returns:
            Dictionary from JSON file, or None if missing or undecodable
        """
        path = self._get_path(key)
        if not path.exists():
            return None

        try:
            with self._lock, open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            logger.error(f"Error reading state {key}: {e}", extra={"key": key})
            return None

        if not isinstance(data, dict):
            logger.error(f"State {key} is not a JSON object", extra={"key": key})
            return None
        return data

    def delete(self, key: str) -> bool:
        """
        Delete state file.

        Returns:
            True if deleted, False if not found
        """
        path = self._get_path(key)
        with self._lock:
            if path.exists():
                path.unlink()
                return True
        return False
