"""
Remote Config Provider

Fetches a versioned configuration document, keeps the last valid copy
on disk and serves one coherent in-memory view with bounded staleness.
"""

from remote_config.services import __version__

__all__ = ["__version__"]
