"""
Config Service - Long-Running Provider Process

Responsible for:
- Warming up the provider on start (fresh or fallback config)
- Periodic staleness-gated refresh
- Health/control HTTP endpoints (health, current config, forced sync)
- Graceful shutdown on SIGTERM/SIGINT
"""

import asyncio
import json
import signal
from datetime import datetime, timedelta, timezone
from functools import partial

from aiohttp import web

from remote_config.common.exceptions import RemoteConfigError
from remote_config.common.logging_setup import get_service_logger
from remote_config.common.settings import ProviderSettings
from remote_config.common.state import FileStateStore
from remote_config.common.timestamp import SystemClock

from .models import ConfigData
from .parser import ConfigParser
from .provider import AppConfigProvider
from .server import ConfigServer
from .storage import ConfigStorage

logger = get_service_logger("config")

json_response = partial(web.json_response, dumps=partial(json.dumps, default=str))


class ConfigService:
    """
    Config Service

    Wires the HTTP fetcher, file storage and parser into an
    AppConfigProvider and keeps it warm.
    """

    def __init__(
        self,
        settings: ProviderSettings,
        provider: AppConfigProvider | None = None,
    ):
        self.settings = settings
        self.clock = SystemClock()

        if provider is None:
            provider = AppConfigProvider(
                server=ConfigServer(
                    url=settings.server.url,
                    timeout_s=settings.server.timeout_s,
                    clock=self.clock,
                ),
                storage=ConfigStorage(
                    FileStateStore(settings.cache.dir),
                    key=settings.cache.key,
                ),
                parser=ConfigParser(settings.parser.required_keys),
                clock=self.clock,
                cache_timeout=timedelta(seconds=settings.cache.timeout_s),
            )
        self.provider = provider

        self._start_time = datetime.now(timezone.utc)
        self._last_error: str | None = None

        # Health server
        self._health_runner: web.AppRunner | None = None

        # State
        self._running = False
        self._refresh_task: asyncio.Task | None = None
        self._shutdown_event = asyncio.Event()

    async def start(self) -> None:
        """Start the config service and wait for shutdown"""
        logger.info("Starting Config Service")
        self._running = True

        # Initial resolution (fresh or fallback)
        await self.refresh()

        await self._start_health_server()

        self._refresh_task = asyncio.create_task(self._refresh_loop())

        logger.info(
            f"Config Service started (server: {self.settings.server.url})",
            extra={"url": self.settings.server.url},
        )

        self._setup_signal_handlers()

        await self._shutdown_event.wait()

    async def stop(self) -> None:
        """Stop the config service"""
        logger.info("Stopping Config Service")
        self._running = False

        if self._refresh_task:
            self._refresh_task.cancel()
            try:
                await self._refresh_task
            except asyncio.CancelledError:
                pass

        await self._stop_health_server()
        await self.close_server()

        logger.info("Config Service stopped")

    async def close_server(self) -> None:
        """Close the provider's fetcher, if it holds a connection"""
        close = getattr(self.provider.server, "close", None)
        if close is not None:
            await close()

    def _setup_signal_handlers(self) -> None:
        """Setup graceful shutdown signal handlers"""
        loop = asyncio.get_running_loop()

        for sig in (signal.SIGTERM, signal.SIGINT):
            try:
                loop.add_signal_handler(sig, self._handle_shutdown)
            except NotImplementedError:
                # Windows doesn't support add_signal_handler
                signal.signal(sig, lambda s, f: self._handle_shutdown())

    def _handle_shutdown(self) -> None:
        logger.info("Received shutdown signal")
        self._shutdown_event.set()

    async def refresh(self) -> ConfigData | None:
        """
        Resolve the config if stale.

        Returns:
            Current ConfigData, or None on a fatal error (logged)
        """
        previous = self.provider.current

        try:
            config = await self.provider.get_app_config()
        except RemoteConfigError as e:
            self._last_error = str(e)
            logger.error(f"Config unavailable: {e}", extra={"recoverable": e.recoverable})
            return None

        self._last_error = None

        if config is not previous:
            logger.info(
                f"Config resolved (fallback: {config.is_fallback})",
                extra={
                    "is_fallback": config.is_fallback,
                    "server_time": config.server_time.isoformat(),
                },
            )
        return config

    async def _refresh_loop(self) -> None:
        """Periodic refresh loop"""
        while self._running:
            await asyncio.sleep(self.settings.service.refresh_interval_s)

            try:
                await self.refresh()
            except Exception as e:
                logger.error(f"Error in refresh loop: {e}", exc_info=True)

    def create_app(self) -> web.Application:
        """Build the health/control HTTP application"""
        app = web.Application()
        app.router.add_get("/health", self._health_handler)
        app.router.add_get("/config", self._config_handler)
        app.router.add_post("/sync", self._sync_handler)
        return app

    async def _start_health_server(self) -> None:
        """Start the health check HTTP server"""
        self._health_runner = web.AppRunner(self.create_app())
        await self._health_runner.setup()

        host = self.settings.service.health_host
        port = self.settings.service.health_port
        site = web.TCPSite(self._health_runner, host, port)
        await site.start()

        logger.info(f"Health server started on {host}:{port}")

    async def _stop_health_server(self) -> None:
        if self._health_runner:
            await self._health_runner.cleanup()
            self._health_runner = None

    async def _health_handler(self, request: web.Request) -> web.Response:
        """Handle health check requests"""
        now = datetime.now(timezone.utc)
        uptime = (now - self._start_time).total_seconds()
        config = self.provider.current

        return json_response({
            "status": "healthy" if config is not None else "degraded",
            "service": "config",
            "uptime": int(uptime),
            "timestamp": now.isoformat(),
            "config_loaded": config is not None,
            "is_fallback": config.is_fallback if config else None,
            "updated_at": config.updated_at.isoformat() if config else None,
            "server_time": config.server_time.isoformat() if config else None,
            "last_error": self._last_error,
        })

    async def _config_handler(self, request: web.Request) -> web.Response:
        """Serve the current best config"""
        try:
            config = await self.provider.get_app_config()
        except RemoteConfigError as e:
            return json_response({"error": str(e)}, status=503)

        return json_response({
            "config": config.mapped_config,
            "is_fallback": config.is_fallback,
            "server_time": config.server_time.isoformat(),
            "local_offset_ms": int(config.local_offset.total_seconds() * 1000),
            "updated_at": config.updated_at.isoformat(),
        })

    async def _sync_handler(self, request: web.Request) -> web.Response:
        """Trigger a forced update (fire-and-forget)"""
        self.provider.force_update()
        return json_response({"scheduled": True}, status=202)
