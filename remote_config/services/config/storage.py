"""
Configuration Storage

Durable last-known-good copy of the raw configuration download.
Survives restarts so the provider can serve a fallback while offline.
"""

import base64
import binascii
from datetime import timedelta

from remote_config.common.exceptions import StorageError
from remote_config.common.logging_setup import get_service_logger
from remote_config.common.state import FileStateStore
from remote_config.common.timestamp import parse_iso

from .models import RawDownload

logger = get_service_logger("config.storage")


class ConfigStorage:
    """
    DurableStore implementation on top of FileStateStore.

    Stored envelope:
    - raw_data: base64 of the downloaded bytes
    - server_time: ISO timestamp reported by the server
    - local_offset_ms: local minus server clock, milliseconds
    """

    def __init__(self, store: FileStateStore, key: str = "app_config"):
        self.store = store
        self.key = key

    def get(self) -> RawDownload | None:
        """
        Load the stored download.

        Returns:
            RawDownload, or None if nothing usable is stored
        """
        envelope = self.store.read(self.key)
        if not envelope:
            return None

        try:
            return RawDownload(
                raw_data=base64.b64decode(envelope["raw_data"], validate=True),
                server_time=parse_iso(envelope["server_time"]),
                local_offset=timedelta(milliseconds=int(envelope["local_offset_ms"])),
            )
        except (AttributeError, KeyError, TypeError, ValueError, binascii.Error) as e:
            logger.error(f"Stored config envelope is unreadable: {e}", extra={"key": self.key})
            return None

    def set(self, value: RawDownload | None) -> None:
        """
        Overwrite the stored download. None clears it.

        Raises:
            StorageError: if the write fails
        """
        if value is None:
            self.store.delete(self.key)
            logger.info("Stored config cleared", extra={"key": self.key})
            return

        envelope = {
            "raw_data": base64.b64encode(value.raw_data).decode("ascii"),
            "server_time": value.server_time.isoformat(),
            "local_offset_ms": int(value.local_offset / timedelta(milliseconds=1)),
        }

        try:
            self.store.write(self.key, envelope)
        except OSError as e:
            raise StorageError(f"failed to persist config: {e}", key=self.key) from e

        logger.debug(
            f"Stored config ({len(value.raw_data)} bytes)",
            extra={"key": self.key, "server_time": envelope["server_time"]},
        )
