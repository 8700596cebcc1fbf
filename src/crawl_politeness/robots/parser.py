"""robots.txt parsing into an enforceable, first-match-wins policy."""

import enum
import logging
import math
import re
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


class RuleAction(enum.Enum):
    ALLOW = "allow"
    DISALLOW = "disallow"


@dataclass(frozen=True)
class PathRule:
    """One Allow/Disallow line, compiled against the host's base URL."""

    path: str
    action: RuleAction
    pattern: re.Pattern

    @classmethod
    def build(cls, base_url: str, path: str, action: RuleAction) -> "PathRule":
        return cls(path, action, re.compile(
            r"\A" + re.escape(base_url) + translate_path(path) + r"\Z",
            re.IGNORECASE | re.DOTALL,
        ))

    def matches(self, url: str) -> bool:
        return self.pattern.match(url) is not None

    def __str__(self) -> str:
        return f"{self.action.value.capitalize()}: {self.path}"


def translate_path(path: str) -> str:
    """Turn a robots.txt path pattern into a regex fragment.

    ``*`` matches any run of characters. A trailing ``$`` anchors the
    pattern (a trailing slash on the URL is still accepted); otherwise
    the pattern is a prefix match.
    """
    anchored = path.endswith("$")
    if anchored:
        path = path[:-1]
    regex = re.escape(path).replace(r"\*", ".*")
    if anchored:
        return regex + "/?"
    return regex + ".*"


@dataclass(frozen=True)
class RobotsPolicy:
    """Rules and crawl-delay that apply to one agent on one host.

    Rules are evaluated in declaration order and the first match wins,
    so ``Disallow: /private`` placed before ``Allow: /private/public``
    also blocks ``/private/public``. This is simpler than the
    longest-match convention and is intentional.
    """

    rules: tuple[PathRule, ...] = ()
    crawl_delay: float | None = None
    sitemaps: tuple[str, ...] = field(default=(), compare=False)

    @classmethod
    def empty(cls) -> "RobotsPolicy":
        return cls()

    def matching_rule(self, url: str) -> PathRule | None:
        for rule in self.rules:
            if rule.matches(url):
                return rule
        return None

    def is_allowed(self, url: str) -> bool:
        rule = self.matching_rule(url)
        return rule is None or rule.action is RuleAction.ALLOW


def _agent_matches(agent_name: str, value: str) -> bool:
    if value == "*":
        return True
    value = value.rstrip("*").strip().lower()
    return bool(value) and value in agent_name.lower()


def _parse_crawl_delay(value: str) -> float | None:
    try:
        delay = float(value)
    except ValueError:
        logger.debug(f"Ignoring invalid Crawl-delay: {value!r}")
        return None
    if not math.isfinite(delay) or delay < 0:
        logger.debug(f"Ignoring invalid Crawl-delay: {value!r}")
        return None
    return delay


def parse_robots_txt(text: str, agent_name: str, base_url: str = "") -> RobotsPolicy:
    """Parse robots.txt content for ``agent_name``.

    The first user-agent line matching the agent opens its group; any
    user-agent line with a different value after that ends parsing, so a
    following group never lends its rules to this agent. Malformed lines
    are skipped. Never raises on bad input.
    """
    rules: list[PathRule] = []
    sitemaps: list[str] = []
    crawl_delay = None
    matched_agent = None

    for raw_line in text.lstrip("\ufeff").splitlines():
        line = raw_line.split("#", 1)[0].strip()
        if not line or ":" not in line:
            continue
        key, value = line.split(":", 1)
        key = key.strip().lower()
        value = value.strip()

        if key == "user-agent":
            if matched_agent is not None:
                if value.lower() != matched_agent:
                    break
            elif _agent_matches(agent_name, value):
                matched_agent = value.lower()
            continue

        if key == "sitemap":
            if value:
                sitemaps.append(value)
            continue
        if matched_agent is None:
            continue

        if key in ("disallow", "allow"):
            if not value:
                continue
            rule = PathRule.build(base_url, value, RuleAction(key))
            logger.debug(f"Add rule from robots.txt: {rule} ({rule.pattern.pattern})")
            rules.append(rule)
        elif key == "crawl-delay":
            crawl_delay = _parse_crawl_delay(value)

    return RobotsPolicy(tuple(rules), crawl_delay, tuple(sitemaps))
