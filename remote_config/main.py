#!/usr/bin/env python3
"""
Remote Config Provider - Entry Point

Usage:
    remote-config                       # Run the config service
    remote-config --config my.yaml      # Use custom settings file
    remote-config --once                # Resolve once, print JSON, exit
    remote-config --dry-run             # Validate settings and exit
    remote-config --verbose             # Enable debug logging
"""

import argparse
import asyncio
import json
import sys
from datetime import timedelta

from remote_config.common.exceptions import RemoteConfigError
from remote_config.common.logging_setup import reconfigure_service_loggers
from remote_config.common.settings import ProviderSettings, load_settings
from remote_config.services import __version__
from remote_config.services.config.service import ConfigService


def print_settings(settings: ProviderSettings) -> None:
    """Print startup information."""
    print()
    print("=" * 60)
    print("  REMOTE CONFIG PROVIDER")
    print("=" * 60)
    print()
    print(f"  Settings file: {settings.source_path or 'defaults'}")
    print(f"  Server URL:    {settings.server.url or 'not set'}")
    print(f"  Cache dir:     {settings.cache.dir}")
    print(f"  Cache timeout: {timedelta(seconds=settings.cache.timeout_s)}")
    print(f"  Refresh every: {timedelta(seconds=settings.service.refresh_interval_s)}")
    print(f"  Health:        http://{settings.service.health_host}:{settings.service.health_port}/health")
    print()
    print("=" * 60)
    print()


async def resolve_once(settings: ProviderSettings) -> int:
    """Resolve the configuration once and print it as JSON."""
    service = ConfigService(settings)
    try:
        config = await service.provider.get_app_config()
    except RemoteConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        await service.close_server()

    print(json.dumps(
        {
            "config": config.mapped_config,
            "is_fallback": config.is_fallback,
            "server_time": config.server_time.isoformat(),
            "local_offset_ms": int(config.local_offset.total_seconds() * 1000),
            "updated_at": config.updated_at.isoformat(),
        },
        indent=2,
        default=str,
    ))
    return 0


async def run_service(settings: ProviderSettings) -> None:
    service = ConfigService(settings)
    try:
        await service.start()
    finally:
        await service.stop()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="remote-config",
        description="Remote configuration provider with durable fallback",
    )
    parser.add_argument(
        "--config", "-c",
        type=str,
        default=None,
        help="Path to settings file (default: search /etc/remote-config, ./config.yaml)",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Resolve the configuration once, print it as JSON and exit",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate settings and exit without starting",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose (debug) logging",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"Remote Config Provider v{__version__}",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    if args.verbose:
        reconfigure_service_loggers("DEBUG", json_format=False)

    settings = load_settings(args.config)

    is_valid, errors = settings.validate()
    if not is_valid:
        print("Settings errors:")
        for error in errors:
            print(f"  - {error}")
        return 1

    if args.dry_run:
        print_settings(settings)
        print("Dry run mode - settings valid")
        return 0

    if args.once:
        return asyncio.run(resolve_once(settings))

    print_settings(settings)
    try:
        asyncio.run(run_service(settings))
    except KeyboardInterrupt:
        print("\nStopped by user")
    return 0


if __name__ == "__main__":
    sys.exit(main())
