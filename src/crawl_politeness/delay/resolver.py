"""Per-host pacing: combines robots crawl-delay, schedules and default delay."""

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import datetime

from ..config import SCOPE_CRAWLER, PolitenessConfig
from ..robots.parser import RobotsPolicy
from ..urls import base_url
from .schedule import find_delay

logger = logging.getLogger(__name__)

_CRAWLER_KEY = "*"


@dataclass
class HostState:
    last_request_ns: int


class DelayResolver:
    """Blocks callers until the next request to a host is allowed.

    The delay is chosen in order from:

    1. the robots.txt crawl-delay, unless ``ignore_robots_crawl_delay``;
    2. the first configured schedule matching the local time;
    3. the configured default delay.

    The first request to a host never waits. State and locks are kept per
    host (or shared by all hosts with the "crawler" scope), so slow hosts
    never hold back unrelated ones. A cancelled wait leaves the host's
    last-request time untouched.
    """

    def __init__(self, config: PolitenessConfig, *, clock=time.monotonic_ns,
                 now=datetime.now, sleep=asyncio.sleep):
        self._config = config
        self._clock = clock
        self._now = now
        self._sleep = sleep
        self._states: dict[str, HostState] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def _key(self, host: str) -> str:
        if self._config.scope == SCOPE_CRAWLER:
            return _CRAWLER_KEY
        return base_url(host)

    def _get_lock(self, key: str) -> asyncio.Lock:
        if key not in self._locks:
            self._locks[key] = asyncio.Lock()
        return self._locks[key]

    def resolve_delay_ms(self, policy: RobotsPolicy | None,
                         now: datetime | None = None) -> float:
        """Required gap in milliseconds between two requests to a host."""
        if (policy is not None and policy.crawl_delay is not None
                and not self._config.ignore_robots_crawl_delay):
            return policy.crawl_delay * 1000
        scheduled = find_delay(self._config.schedules, now or self._now())
        if scheduled is not None:
            return scheduled
        return self._config.default_delay_ms

    def last_request_ns(self, host: str) -> int | None:
        state = self._states.get(self._key(host))
        return state.last_request_ns if state else None

    def forget(self, host: str):
        """Return a host to the unseen state."""
        self._states.pop(self._key(host), None)

    async def await_next_slot(self, host: str,
                              policy: RobotsPolicy | None = None) -> float:
        """Wait until ``host`` may be hit again. Returns seconds waited."""
        key = self._key(host)
        async with self._get_lock(key):
            state = self._states.get(key)
            if state is None:
                self._states[key] = HostState(self._clock())
                return 0.0

            delay_ns = int(self.resolve_delay_ms(policy) * 1_000_000)
            remaining_ns = delay_ns - (self._clock() - state.last_request_ns)
            waited = 0.0
            if remaining_ns > 0:
                waited = remaining_ns / 1e9
                logger.debug(f"Delaying {key} for {waited:.3f}s")
                await self._sleep(waited)

            # strictly increasing, even on coarse clocks
            state.last_request_ns = max(self._clock(), state.last_request_ns + 1)
            return waited
