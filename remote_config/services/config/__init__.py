"""
Config Service - Remote Configuration Provider

Responsibilities:
- Download configuration from the remote server
- Keep the last valid download for offline fallback
- Serve one coherent config with bounded staleness
- Notify subscribers of config changes
"""

from .models import ConfigData, RawDownload
from .provider import AppConfigProvider, CACHE_TIMEOUT

__all__ = ["AppConfigProvider", "CACHE_TIMEOUT", "ConfigData", "RawDownload"]
