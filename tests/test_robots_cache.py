"""Tests for crawl_politeness.robots.cache."""

import asyncio
from unittest.mock import MagicMock

from conftest import mock_session_with_robots
from crawl_politeness.robots.cache import RobotsTxtCache
from crawl_politeness.robots.fetcher import RobotsTxtFetcher
from crawl_politeness.robots.parser import RobotsPolicy


class _SlowFetcher:
    """Counts fetches and yields to the loop so callers can pile up."""

    def __init__(self, policy: RobotsPolicy | None = None, delay: float = 0.01):
        self.calls: list[str] = []
        self._policy = policy or RobotsPolicy(crawl_delay=1.0)
        self._delay = delay

    async def fetch(self, host: str) -> RobotsPolicy:
        self.calls.append(host)
        await asyncio.sleep(self._delay)
        return self._policy


class TestGetPolicy:
    def test_caches_robots(self):
        session = mock_session_with_robots("User-agent: *\nDisallow: /x\n")
        cache = RobotsTxtCache(RobotsTxtFetcher(session, "MyBot"))

        async def _test():
            first = await cache.get_policy("https://example.com/a")
            second = await cache.get_policy("https://example.com/b")
            return first, second

        first, second = asyncio.run(_test())
        assert first is second
        # Only one fetch call (cached)
        assert session.get.call_count == 1

    def test_concurrent_callers_single_fetch(self):
        fetcher = _SlowFetcher()
        cache = RobotsTxtCache(fetcher)

        async def _test():
            return await asyncio.gather(*(
                cache.get_policy(f"https://example.com/page{i}") for i in range(20)
            ))

        results = asyncio.run(_test())
        assert fetcher.calls == ["https://example.com"]
        assert all(r is results[0] for r in results)

    def test_hosts_fetched_independently(self):
        fetcher = _SlowFetcher()
        cache = RobotsTxtCache(fetcher)

        async def _test():
            await asyncio.gather(
                cache.get_policy("https://a.com/x"),
                cache.get_policy("https://b.com/y"),
                cache.get_policy("https://a.com/z"),
            )

        asyncio.run(_test())
        assert sorted(fetcher.calls) == ["https://a.com", "https://b.com"]
        assert len(cache) == 2

    def test_slow_host_does_not_block_other_hosts(self):
        class _PerHostFetcher:
            async def fetch(self, host):
                await asyncio.sleep(5 if "slow" in host else 0)
                return RobotsPolicy.empty()

        cache = RobotsTxtCache(_PerHostFetcher())

        async def _test():
            slow = asyncio.create_task(cache.get_policy("https://slow.com"))
            await asyncio.sleep(0)
            await asyncio.wait_for(cache.get_policy("https://fast.com"), timeout=1)
            slow.cancel()

        asyncio.run(_test())
        assert "https://fast.com" in cache

    def test_failed_fetch_is_memoized(self):
        session = MagicMock()
        session.get.side_effect = Exception("Network error")
        cache = RobotsTxtCache(RobotsTxtFetcher(session, "MyBot"))

        async def _test():
            for _ in range(3):
                policy = await cache.get_policy("https://example.com")
                assert policy == RobotsPolicy.empty()

        asyncio.run(_test())
        assert session.get.call_count == 1

    def test_scheme_and_case_normalized(self):
        fetcher = _SlowFetcher(delay=0)
        cache = RobotsTxtCache(fetcher)

        async def _test():
            await cache.get_policy("https://Example.com/a")
            await cache.get_policy("https://example.COM/b")
            await cache.get_policy("http://example.com/c")

        asyncio.run(_test())
        assert fetcher.calls == ["https://example.com", "http://example.com"]


class TestPeek:
    def test_peek_without_io(self):
        fetcher = _SlowFetcher(delay=0)
        cache = RobotsTxtCache(fetcher)
        assert cache.peek("https://example.com") is None
        assert "https://example.com" not in cache
        policy = asyncio.run(cache.get_policy("https://example.com/x"))
        assert cache.peek("https://example.com/other") is policy
        assert "https://example.com" in cache
        assert len(fetcher.calls) == 1
