"""
Configuration Server Client

Downloads the raw configuration document over HTTP.

- Reuses a single HTTP client (no connection overhead per request)
- Keeps a transport-level response cache keyed on ETag, so unchanged
  documents are answered with 304 and served from memory
"""

from datetime import datetime
from email.utils import parsedate_to_datetime

import httpx

from remote_config.common.exceptions import DownloadError
from remote_config.common.logging_setup import get_service_logger
from remote_config.common.timestamp import Clock, SystemClock, to_utc

from .models import RawDownload

logger = get_service_logger("config.server")


class ConfigServer:
    """
    HTTP implementation of the RemoteFetcher port.
    """

    def __init__(
        self,
        url: str,
        timeout_s: float = 30.0,
        clock: Clock | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.url = url
        self.timeout_s = timeout_s
        self.clock = clock or SystemClock()
        self._transport = transport
        # Reusable HTTP client - avoids connection overhead per request
        self._client: httpx.AsyncClient | None = None
        # Transport-level response cache
        self._etag: str | None = None
        self._cached_body: bytes | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create reusable HTTP client"""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self.timeout_s,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close HTTP client"""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def download(self) -> RawDownload:
        """
        Download the configuration document.

        Returns:
            RawDownload with body, server time and local clock offset

        Raises:
            DownloadError: on transport failure, error status or empty body
        """
        client = await self._get_client()

        headers = {"Accept": "application/json, application/yaml"}
        if self._etag and self._cached_body is not None:
            headers["If-None-Match"] = self._etag

        try:
            response = await client.get(self.url, headers=headers)
        except httpx.HTTPError as e:
            raise DownloadError(f"request failed: {e}", url=self.url) from e

        local_now = self.clock.now_utc()

        if response.status_code == 304 and self._cached_body is not None:
            logger.debug("Config not modified, serving cached response")
            body = self._cached_body
        else:
            try:
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                raise DownloadError(
                    f"server returned {response.status_code}",
                    url=self.url,
                    status_code=response.status_code,
                ) from e

            body = response.content
            if not body:
                raise DownloadError("empty response body", url=self.url)

            etag = response.headers.get("ETag")
            if etag:
                self._etag = etag
                self._cached_body = body

        server_time = self._server_time(response, local_now)

        logger.debug(
            f"Downloaded config ({len(body)} bytes)",
            extra={"url": self.url, "size": len(body)},
        )

        return RawDownload(
            raw_data=body,
            server_time=server_time,
            local_offset=local_now - server_time,
        )

    def clear_cache(self) -> None:
        """Discard the cached response so the next download is unconditional"""
        self._etag = None
        self._cached_body = None
        logger.debug("HTTP response cache cleared")

    def _server_time(self, response: httpx.Response, local_now: datetime) -> datetime:
        """Server time from the Date header, falling back to local time"""
        date_header = response.headers.get("Date")
        if not date_header:
            return local_now

        try:
            return to_utc(parsedate_to_datetime(date_header))
        except (TypeError, ValueError) as e:
            logger.warning(f"Unparseable Date header {date_header!r}: {e}")
            return local_now
