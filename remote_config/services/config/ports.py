"""Collaborator ports for the config provider.

These protocols are the only way the resolution engine touches the
network, the durable cache and the payload parser.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from .models import RawDownload


@runtime_checkable
class RemoteFetcher(Protocol):
    """Downloads the raw configuration document."""

    async def download(self) -> RawDownload:
        """Return the raw download or raise on any failure."""

    def clear_cache(self) -> None:
        """Drop any transport-level response cache (best effort)."""


@runtime_checkable
class DurableStore(Protocol):
    """Persists the last successfully validated download."""

    def get(self) -> RawDownload | None:
        """Return the stored download, or None."""

    def set(self, value: RawDownload | None) -> None:
        """Overwrite the stored download; None clears it."""


@runtime_checkable
class Parser(Protocol):
    """Turns raw bytes into a validated structured configuration."""

    def parse(self, raw_data: bytes) -> Any:
        """Return the parsed configuration or raise."""
