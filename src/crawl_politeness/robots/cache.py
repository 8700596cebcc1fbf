"""Per-host robots.txt policy cache with single-flight fetching."""

import asyncio
import logging

from ..urls import base_url
from .fetcher import RobotsTxtFetcher
from .parser import RobotsPolicy

logger = logging.getLogger(__name__)


class RobotsTxtCache:
    """Memoizes one RobotsPolicy per host for the life of the cache.

    Concurrent callers for the same uncached host wait on a per-host lock,
    so the fetcher sees at most one request per host. Failed fetches are
    cached as empty policies. Entries never expire.
    """

    def __init__(self, fetcher: RobotsTxtFetcher):
        self._fetcher = fetcher
        self._policies: dict[str, RobotsPolicy] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def __contains__(self, host: str) -> bool:
        return base_url(host) in self._policies

    def __len__(self) -> int:
        return len(self._policies)

    def peek(self, host: str) -> RobotsPolicy | None:
        """Cached policy for ``host`` without any I/O."""
        return self._policies.get(base_url(host))

    def _get_lock(self, key: str) -> asyncio.Lock:
        if key not in self._locks:
            self._locks[key] = asyncio.Lock()
        return self._locks[key]

    async def get_policy(self, host: str) -> RobotsPolicy:
        key = base_url(host)
        policy = self._policies.get(key)
        if policy is not None:
            return policy

        async with self._get_lock(key):
            policy = self._policies.get(key)
            if policy is None:
                logger.debug(f"robots.txt cache miss for {key}")
                policy = await self._fetcher.fetch(key)
                self._policies[key] = policy
        return policy
