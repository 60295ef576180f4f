"""Shared fakes for the provider collaborators."""

import asyncio
import json
from datetime import datetime, timedelta, timezone

import pytest

from remote_config.common.exceptions import ConfigParseError, DownloadError
from remote_config.services.config.models import RawDownload

SERVER_TIME = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


def make_download(payload, server_time=SERVER_TIME, offset_s: float = 0.0) -> RawDownload:
    raw = payload if isinstance(payload, bytes) else json.dumps(payload).encode()
    return RawDownload(
        raw_data=raw,
        server_time=server_time,
        local_offset=timedelta(seconds=offset_s),
    )


class FakeClock:
    def __init__(self, now: datetime = SERVER_TIME):
        self.now = now

    def now_utc(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class FakeServer:
    """Scripted RemoteFetcher: returns `response` or raises `error`."""

    def __init__(self, response: RawDownload | None = None, error: Exception | None = None):
        self.response = response
        self.error = error
        self.delay = 0.0
        self.download_calls = 0
        self.clear_cache_calls = 0
        self.closed = False

    def fail(self, error: Exception | None = None) -> None:
        self.response = None
        self.error = error or DownloadError("connection refused")

    def succeed(self, response: RawDownload) -> None:
        self.response = response
        self.error = None

    async def download(self) -> RawDownload:
        self.download_calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if self.response is None:
            raise DownloadError("no response scripted")
        return self.response

    def clear_cache(self) -> None:
        self.clear_cache_calls += 1

    async def close(self) -> None:
        self.closed = True


class FakeStorage:
    def __init__(self, value: RawDownload | None = None):
        self.value = value
        self.set_calls: list[RawDownload | None] = []

    def get(self) -> RawDownload | None:
        return self.value

    def set(self, value: RawDownload | None) -> None:
        self.set_calls.append(value)
        self.value = value


class FakeParser:
    """JSON parser that rejects anything starting with b'corrupt'."""

    def __init__(self):
        self.parse_calls = 0

    def parse(self, raw_data: bytes):
        self.parse_calls += 1
        if raw_data.startswith(b"corrupt"):
            raise ConfigParseError("corrupt payload", errors=["corrupt payload"])
        return json.loads(raw_data)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def server():
    return FakeServer()


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def parser():
    return FakeParser()
