"""
Common Utilities

Shared modules used across the provider:
- state.py - File-backed JSON state store
- settings.py - Provider settings dataclasses
- exceptions.py - Custom exception classes
- logging_setup.py - Structured logging setup
- timestamp.py - UTC clock
"""

from .state import FileStateStore
from .settings import (
    ProviderSettings,
    ServerSettings,
    CacheSettings,
    ParserSettings,
    ServiceSettings,
    load_settings,
    settings_from_dict,
)
from .exceptions import (
    RemoteConfigError,
    DownloadError,
    ConfigParseError,
    ConfigUnavailableError,
    StorageError,
)
from .logging_setup import (
    setup_logging,
    get_service_logger,
)
from .timestamp import Clock, SystemClock

__all__ = [
    # State
    "FileStateStore",
    # Settings
    "ProviderSettings",
    "ServerSettings",
    "CacheSettings",
    "ParserSettings",
    "ServiceSettings",
    "load_settings",
    "settings_from_dict",
    # Exceptions
    "RemoteConfigError",
    "DownloadError",
    "ConfigParseError",
    "ConfigUnavailableError",
    "StorageError",
    # Logging
    "setup_logging",
    "get_service_logger",
    # Time
    "Clock",
    "SystemClock",
]
