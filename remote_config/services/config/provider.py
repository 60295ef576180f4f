"""
App Config Provider

Resolves the remote configuration with a durable fallback and serves it
as one shared, lazily computed value.

Resolution precedence:
1. Fresh download that parses and is persisted -> is_fallback=False
2. Otherwise the stored download, if it parses -> is_fallback=True
3. Stored download that does not parse -> its parse error is raised
4. Nothing stored -> ConfigUnavailableError carrying the download failure
"""

import asyncio
from contextlib import aclosing
from datetime import timedelta
from typing import Any, AsyncIterator

from remote_config.common.exceptions import ConfigUnavailableError, RemoteConfigError
from remote_config.common.logging_setup import get_service_logger
from remote_config.common.timestamp import Clock, SystemClock

from .hot_data import HotData
from .models import ConfigData, RawDownload
from .ports import DurableStore, Parser, RemoteFetcher

logger = get_service_logger("config.provider")

CACHE_TIMEOUT = timedelta(minutes=3)


class AppConfigProvider:
    """
    Config Resolution Engine.

    Consumers use get_config() for a stream of values, get_app_config()
    for the current best value, and force_update() to drop every cache
    and re-resolve.
    """

    def __init__(
        self,
        server: RemoteFetcher,
        storage: DurableStore,
        parser: Parser,
        clock: Clock | None = None,
        cache_timeout: timedelta = CACHE_TIMEOUT,
    ):
        self.server = server
        self.storage = storage
        self.parser = parser
        self.clock = clock or SystemClock()
        self.cache_timeout = cache_timeout

        self._holder: HotData[ConfigData] = HotData(
            self._retrieve_config,
            logging_tag="config.provider.holder",
        )
        self._pending: set[asyncio.Task] = set()

    @property
    def current(self) -> ConfigData | None:
        """Last committed config without triggering a resolution"""
        return self._holder.current

    async def _run_io(self, func, *args):
        """Run a blocking store/parser call in the default thread pool."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, func, *args)

    async def _download(self) -> tuple[RawDownload | None, Exception | None]:
        try:
            return await self.server.download(), None
        except Exception as e:
            logger.warning(f"Failed to download config from server: {e}", exc_info=e)
            return None, e

    async def _parse(self, raw: RawDownload) -> tuple[Any, Exception | None]:
        try:
            return await self._run_io(self.parser.parse, raw.raw_data), None
        except Exception as e:
            return None, e

    def _build(self, mapped_config: Any, raw: RawDownload, is_fallback: bool) -> ConfigData:
        return ConfigData(
            mapped_config=mapped_config,
            server_time=raw.server_time,
            local_offset=raw.local_offset,
            is_fallback=is_fallback,
            updated_at=self.clock.now_utc(),
        )

    async def _retrieve_config(self) -> ConfigData:
        """
        Run one resolution pass.

        Returns:
            Fresh or fallback ConfigData

        Raises:
            ConfigUnavailableError: no download and nothing stored
            Exception: the parse error of an unreadable stored config
        """
        logger.debug("retrieve_config()")

        server_download, server_error = await self._download()

        parsed: ConfigData | None = None

        if server_download is not None:
            mapped, parse_error = await self._parse(server_download)
            if parse_error is None:
                logger.debug("Got a valid config from server, saving")
                persist_error = await self._persist(server_download)
                if persist_error is None:
                    parsed = self._build(mapped, server_download, is_fallback=False)
                else:
                    logger.error(
                        f"Failed to store config from server, trying fallback: {persist_error}",
                        exc_info=persist_error,
                    )
            else:
                logger.error(
                    f"Failed to parse config from server, trying fallback: {parse_error}",
                    exc_info=parse_error,
                )

        if parsed is None:
            stored = await self._run_io(self.storage.get)
            if stored is not None:
                mapped, parse_error = await self._parse(stored)
                if parse_error is not None:
                    logger.error(
                        f"Fallback config exists but could not be parsed: {parse_error}",
                        exc_info=parse_error,
                    )
                    if isinstance(parse_error, RemoteConfigError):
                        parse_error.recoverable = False
                    raise parse_error
                logger.info("Serving fallback config from storage")
                parsed = self._build(mapped, stored, is_fallback=True)

        if parsed is None:
            raise ConfigUnavailableError(server_error)

        return parsed

    async def _persist(self, raw: RawDownload) -> Exception | None:
        try:
            await self._run_io(self.storage.set, raw)
        except Exception as e:
            return e
        return None

    async def get_config(self, try_update: bool = False) -> AsyncIterator[ConfigData]:
        """
        Stream the current config, refreshing it first when stale.

        The first value reflects a resolution if try_update is set or the
        current value is older than cache_timeout. Later values follow
        every replacement; back-to-back duplicates are dropped.
        """
        now = self.clock.now_utc()

        async def refresh_if_stale(current: ConfigData) -> ConfigData:
            if try_update or current.is_stale(now, self.cache_timeout):
                return await self._retrieve_config()
            return current

        previous: ConfigData | None = None
        async with aclosing(self._holder.data_after(refresh_if_stale)) as updates:
            async for value in updates:
                if previous is not None and value == previous:
                    continue
                previous = value
                yield value

    async def get_app_config(self) -> ConfigData:
        """Current best config (first value of get_config())"""
        async with aclosing(self.get_config()) as stream:
            async for value in stream:
                return value
        raise ConfigUnavailableError()

    def force_update(self) -> asyncio.Task:
        """
        Clear stored and transport caches, then re-resolve.

        Fire-and-forget: failures are logged, the previous config stays
        in place. The returned task may be awaited but never raises.
        """
        logger.info("force_update()")

        task = asyncio.get_running_loop().create_task(self._force_update())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _force_update(self) -> None:
        async def refresh(current: ConfigData) -> ConfigData:
            await self._run_io(self.storage.set, None)
            self.server.clear_cache()
            return await self._retrieve_config()

        try:
            await self._holder.mutate(refresh)
        except Exception as e:
            logger.error(f"Forced config update failed: {e}", exc_info=e)
