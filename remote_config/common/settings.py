"""
Provider Settings

Type-safe runtime settings for the remote config provider.
Loaded from a local YAML file with environment variable overrides.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .logging_setup import get_service_logger

logger = get_service_logger("settings")

DEFAULT_CONFIG_PATHS = [
    "/etc/remote-config/config.yaml",
    "config.yaml",
]


@dataclass
class ServerSettings:
    """Remote configuration server"""
    url: str = ""
    timeout_s: float = 30.0


@dataclass
class CacheSettings:
    """Durable cache and staleness window"""
    dir: str = "/var/lib/remote-config/state"
    key: str = "app_config"
    timeout_s: int = 180  # Staleness window (3 minutes)


@dataclass
class ParserSettings:
    """Default parser validation rules"""
    required_keys: list[str] = field(default_factory=list)


@dataclass
class ServiceSettings:
    """Long-running service behaviour"""
    refresh_interval_s: int = 3600
    health_host: str = "127.0.0.1"
    health_port: int = 8082


@dataclass
class ProviderSettings:
    """Complete provider settings"""
    server: ServerSettings = field(default_factory=ServerSettings)
    cache: CacheSettings = field(default_factory=CacheSettings)
    parser: ParserSettings = field(default_factory=ParserSettings)
    service: ServiceSettings = field(default_factory=ServiceSettings)
    source_path: str | None = None

    def validate(self) -> tuple[bool, list[str]]:
        """
        Validate settings.

        Returns:
            Tuple of (is_valid, list of error messages)
        """
        errors: list[str] = []

        if not self.server.url:
            errors.append("Missing server.url")
        elif not self.server.url.startswith(("http://", "https://")):
            errors.append(f"Invalid server.url: {self.server.url}")

        if self.server.timeout_s <= 0:
            errors.append("server.timeout_s must be positive")

        if self.cache.timeout_s < 0:
            errors.append("cache.timeout_s cannot be negative")

        if not self.cache.key:
            errors.append("Missing cache.key")

        if self.service.refresh_interval_s <= 0:
            errors.append("service.refresh_interval_s must be positive")

        port = self.service.health_port
        if port < 1 or port > 65535:
            errors.append("Invalid service.health_port")

        return len(errors) == 0, errors


def find_config_path() -> str | None:
    """Find the first existing settings file"""
    for path in DEFAULT_CONFIG_PATHS:
        if Path(path).exists():
            return path
    return None


def settings_from_dict(data: dict[str, Any]) -> ProviderSettings:
    """Build ProviderSettings from a dictionary (e.g., parsed YAML)"""
    server = data.get("server") or {}
    cache = data.get("cache") or {}
    parser = data.get("parser") or {}
    service = data.get("service") or {}

    return ProviderSettings(
        server=ServerSettings(
            url=server.get("url", ""),
            timeout_s=float(server.get("timeout_s", 30.0)),
        ),
        cache=CacheSettings(
            dir=cache.get("dir", "/var/lib/remote-config/state"),
            key=cache.get("key", "app_config"),
            timeout_s=int(cache.get("timeout_s", 180)),
        ),
        parser=ParserSettings(
            required_keys=list(parser.get("required_keys") or []),
        ),
        service=ServiceSettings(
            refresh_interval_s=int(service.get("refresh_interval_s", 3600)),
            health_host=service.get("health_host", "127.0.0.1"),
            health_port=int(service.get("health_port", 8082)),
        ),
    )


def load_settings(config_path: str | None = None) -> ProviderSettings:
    """
    Load settings from YAML file, then apply environment overrides.

    A missing or unreadable file yields defaults (plus overrides).

    Args:
        config_path: Explicit settings file, or None to search defaults
    """
    path = config_path or find_config_path()
    data: dict[str, Any] = {}

    if path:
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except FileNotFoundError:
            logger.warning(f"Settings file not found: {path}")
        except yaml.YAMLError as e:
            logger.error(f"Error parsing settings: {e}")
    else:
        logger.warning("No settings file found, using defaults")

    if not isinstance(data, dict):
        logger.error(f"Settings file {path} is not a mapping, using defaults")
        data = {}

    settings = settings_from_dict(data)
    settings.source_path = path

    # Environment overrides
    if os.environ.get("REMOTE_CONFIG_URL"):
        settings.server.url = os.environ["REMOTE_CONFIG_URL"]
    if os.environ.get("REMOTE_CONFIG_STATE_DIR"):
        settings.cache.dir = os.environ["REMOTE_CONFIG_STATE_DIR"]

    return settings
