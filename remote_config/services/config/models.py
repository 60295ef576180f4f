"""
Configuration Data Models

RawDownload is what travels between fetcher, parser and durable cache.
ConfigData is the resolved, immutable value served to consumers.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any


@dataclass(frozen=True)
class RawDownload:
    """Raw configuration bytes as received from the server"""
    raw_data: bytes
    server_time: datetime
    local_offset: timedelta  # local clock minus server clock at download time


@dataclass(frozen=True)
class ConfigData:
    """Result of one resolution pass"""
    mapped_config: Any
    server_time: datetime
    local_offset: timedelta
    is_fallback: bool
    updated_at: datetime  # When this value was produced

    def is_stale(self, now: datetime, timeout: timedelta) -> bool:
        """True once `now` is past updated_at + timeout"""
        return now > self.updated_at + timeout
