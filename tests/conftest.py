"""Shared fixtures for crawl_politeness tests."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from crawl_politeness.config import PolitenessConfig


class FakeClock:
    """Monotonic nanosecond clock whose sleep advances time instantly."""

    def __init__(self, start_ns: int = 1_000_000_000_000):
        self.ns = start_ns
        self.sleeps: list[float] = []

    def __call__(self) -> int:
        return self.ns

    def advance(self, seconds: float):
        self.ns += int(seconds * 1e9)

    async def sleep(self, seconds: float):
        self.sleeps.append(seconds)
        self.advance(seconds)


class FakeStream:
    """Stands in for ``aiohttp.StreamReader``, handing out small chunks."""

    def __init__(self, body: bytes, chunk_size: int = 64):
        self._body = body
        self._chunk_size = chunk_size
        self.delivered = 0

    async def read(self, n: int = -1) -> bytes:
        if n < 0:
            n = len(self._body)
        chunk = self._body[self.delivered:self.delivered + min(n, self._chunk_size)]
        self.delivered += len(chunk)
        return chunk


def mock_session_with_robots(body: bytes | str, status: int = 200):
    """Mock aiohttp session whose .get() returns an async CM with .status and .content."""
    if isinstance(body, str):
        body = body.encode("utf-8")
    resp = MagicMock()
    resp.status = status
    resp.content = FakeStream(body)

    cm = AsyncMock()
    cm.__aenter__.return_value = resp
    cm.__aexit__.return_value = False

    session = MagicMock()
    session.get.return_value = cm
    return session


@pytest.fixture
def sample_config() -> PolitenessConfig:
    """PolitenessConfig with test-friendly defaults."""
    return PolitenessConfig(user_agent="MyBot/1.0", default_delay_ms=1000)


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()
