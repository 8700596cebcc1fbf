"""Crawl-session politeness: robots.txt enforcement plus per-host pacing."""

import logging
from dataclasses import dataclass

import aiohttp

from .config import PolitenessConfig
from .delay.resolver import DelayResolver
from .robots.cache import RobotsTxtCache
from .robots.fetcher import RobotsTxtFetcher
from .robots.parser import RobotsPolicy
from .urls import base_url

logger = logging.getLogger(__name__)


@dataclass
class CrawlPermit:
    url: str
    host: str
    allowed: bool
    waited: float
    crawl_delay: float | None


class PolitenessEngine:
    """Owns the robots cache and delay state for one crawl session.

    Usage::

        async with PolitenessEngine(config) as engine:
            permit = await engine.acquire(url)
            if permit.allowed:
                ...  # fetch the document
    """

    def __init__(self, config: PolitenessConfig,
                 session: aiohttp.ClientSession | None = None,
                 resolver: DelayResolver | None = None):
        self._config = config
        self._session = session
        self._owns_session = session is None
        self._cache: RobotsTxtCache | None = None
        self._resolver = resolver or DelayResolver(config)
        if session is not None:
            self._cache = self._make_cache(session)

    def _make_cache(self, session: aiohttp.ClientSession) -> RobotsTxtCache:
        fetcher = RobotsTxtFetcher(
            session,
            user_agent=self._config.user_agent,
            timeout=self._config.robots_timeout,
            max_bytes=self._config.robots_max_bytes,
        )
        return RobotsTxtCache(fetcher)

    async def __aenter__(self):
        if self._session is None:
            self._session = aiohttp.ClientSession()
            self._cache = self._make_cache(self._session)
        return self

    async def __aexit__(self, *exc):
        if self._owns_session and self._session:
            await self._session.close()
            self._session = None

    @property
    def robots_cache(self) -> RobotsTxtCache | None:
        return self._cache

    @property
    def resolver(self) -> DelayResolver:
        return self._resolver

    async def get_policy(self, url: str) -> RobotsPolicy:
        if not self._config.respect_robots:
            return RobotsPolicy.empty()
        if self._cache is None:
            raise RuntimeError("PolitenessEngine used outside of 'async with'")
        return await self._cache.get_policy(url)

    async def is_allowed(self, url: str) -> bool:
        policy = await self.get_policy(url)
        return policy.is_allowed(url)

    async def await_next_slot(self, url: str) -> float:
        policy = await self.get_policy(url)
        return await self._resolver.await_next_slot(url, policy)

    async def acquire(self, url: str) -> CrawlPermit:
        """Check robots.txt, then wait for the host's next slot if allowed."""
        host = base_url(url)
        policy = await self.get_policy(url)
        if not policy.is_allowed(url):
            logger.info(f"Blocked by robots.txt: {url} ({policy.matching_rule(url)})")
            return CrawlPermit(url=url, host=host, allowed=False, waited=0.0,
                               crawl_delay=policy.crawl_delay)
        waited = await self._resolver.await_next_slot(host, policy)
        return CrawlPermit(url=url, host=host, allowed=True, waited=waited,
                           crawl_delay=policy.crawl_delay)
