"""
Remote Config Services

- Config Service - Download, durable fallback, staleness-gated serving
"""

__version__ = "1.0.0"
