"""Fetches /robots.txt for a host, degrading to an empty policy on any failure."""

import logging

import aiohttp
import chardet

from ..urls import base_url
from .parser import RobotsPolicy, parse_robots_txt

logger = logging.getLogger(__name__)


class RobotsTxtFetcher:
    """Downloads and parses robots.txt through an aiohttp session."""

    def __init__(self, session: aiohttp.ClientSession, user_agent: str,
                 timeout: float = 5, max_bytes: int = 512_000):
        self._session = session
        self._user_agent = user_agent
        self._timeout = timeout
        self._max_bytes = max_bytes

    async def fetch(self, host: str) -> RobotsPolicy:
        """Fetch and parse robots.txt for ``host``. Never raises on network errors."""
        root = base_url(host)
        robots_url = f"{root}/robots.txt"
        try:
            async with self._session.get(
                robots_url,
                headers={"User-Agent": self._user_agent},
                timeout=aiohttp.ClientTimeout(total=self._timeout),
            ) as resp:
                if not 200 <= resp.status < 300:
                    logger.info(f"No robots.txt found for {robots_url} (HTTP {resp.status})")
                    return RobotsPolicy.empty()
                raw = await self._read_capped(resp)
        except Exception as e:
            logger.info(f"Not able to obtain robots.txt at {robots_url}: {e}")
            return RobotsPolicy.empty()

        policy = parse_robots_txt(self._decode(raw), self._user_agent, root)
        logger.debug(f"Fetched and parsed {robots_url}: {len(policy.rules)} rules, "
                     f"crawl-delay={policy.crawl_delay}")
        return policy

    async def _read_capped(self, resp: aiohttp.ClientResponse) -> bytes:
        """Read at most ``max_bytes`` of the body, ending on a whole line."""
        raw = b""
        # one byte past the cap tells a full body from a cut one
        while len(raw) <= self._max_bytes:
            chunk = await resp.content.read(self._max_bytes + 1 - len(raw))
            if not chunk:
                return raw
            raw += chunk
        raw = raw[:self._max_bytes]
        end = raw.rfind(b"\n")
        return raw[:end + 1] if end >= 0 else raw

    @staticmethod
    def _decode(raw: bytes) -> str:
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError:
            detected = chardet.detect(raw)
            enc = detected.get("encoding", "utf-8") or "utf-8"
        try:
            return raw.decode(enc, errors="ignore")
        except LookupError:
            logger.debug(f"Unknown encoding {enc!r} detected, decoding as utf-8")
            return raw.decode("utf-8", errors="ignore")
