"""CLI entry point."""

import argparse
import asyncio
import logging
import sys
import time
from datetime import datetime
from pathlib import Path

from .config import PolitenessConfig, load_config, with_overrides
from .delay.resolver import DelayResolver
from .delay.schedule import find_delay
from .errors import ConfigError

# Logging setup
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)-25s | %(message)s",
    datefmt="%H:%M:%S",
)

# Suppress noisy loggers
for noisy in ["aiohttp", "asyncio", "chardet"]:
    logging.getLogger(noisy).setLevel(logging.ERROR)

logger = logging.getLogger(__name__)


def build_config(args) -> PolitenessConfig:
    """Build PolitenessConfig from an optional JSON file plus CLI overrides."""
    config_path = getattr(args, "config", None)
    config = load_config(Path(config_path)) if config_path else PolitenessConfig()
    no_robots = getattr(args, "no_robots", False)
    return with_overrides(
        config,
        user_agent=getattr(args, "user_agent", None),
        robots_timeout=getattr(args, "timeout", None),
        respect_robots=False if no_robots else None,
    )


def _parse_at(value: str | None) -> datetime:
    if not value:
        return datetime.now()
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        raise ConfigError(f"Invalid --at datetime (expected ISO format): {value!r}") from None


def _add_robots_args(p: argparse.ArgumentParser):
    p.add_argument("urls", nargs="+", help="URLs whose host robots.txt to check")
    p.add_argument("--config", default=None, help="JSON politeness configuration")
    p.add_argument("--user-agent", default=None)
    p.add_argument("--timeout", type=float, default=None, help="robots.txt fetch timeout (s)")


def _add_schedule_args(p: argparse.ArgumentParser):
    p.add_argument("--config", required=True, help="JSON politeness configuration")
    p.add_argument("--at", default=None, help="ISO datetime to evaluate (default: now)")


def _add_pace_args(p: argparse.ArgumentParser):
    p.add_argument("urls", nargs="+", help="URLs to pace, in crawl order")
    p.add_argument("--config", default=None, help="JSON politeness configuration")
    p.add_argument("--user-agent", default=None)
    p.add_argument("--timeout", type=float, default=None, help="robots.txt fetch timeout (s)")
    p.add_argument("--no-robots", action="store_true")


async def _check_robots(config: PolitenessConfig, urls: list[str]):
    from .politeness import PolitenessEngine

    async with PolitenessEngine(config) as engine:
        for url in urls:
            policy = await engine.get_policy(url)
            logger.info(f"{url}: {len(policy.rules)} rules, crawl-delay={policy.crawl_delay}")
            for rule in policy.rules:
                logger.info(f"  {rule}")
            for sitemap in policy.sitemaps:
                logger.info(f"  Sitemap: {sitemap}")
            verdict = "allowed" if policy.is_allowed(url) else "DISALLOWED"
            logger.info(f"  -> {verdict}")


async def _pace(config: PolitenessConfig, urls: list[str]):
    from .politeness import PolitenessEngine

    async with PolitenessEngine(config) as engine:
        for url in urls:
            permit = await engine.acquire(url)
            if permit.allowed:
                logger.info(f"{url}: allowed after {permit.waited:.2f}s")
            else:
                logger.info(f"{url}: blocked by robots.txt")


def _run_robots(args):
    config = build_config(args)
    asyncio.run(_check_robots(config, args.urls))


def _run_schedule(args):
    config = build_config(args)
    at = _parse_at(args.at)
    for schedule in config.schedules:
        logger.info(f"Schedule: {schedule.describe()}")
    scheduled = find_delay(config.schedules, at)
    if scheduled is None:
        logger.info(f"{at:%A %Y-%m-%d %H:%M}: no schedule matches, "
                    f"default delay {config.default_delay_ms}ms")
    else:
        logger.info(f"{at:%A %Y-%m-%d %H:%M}: scheduled delay {scheduled}ms")
    resolved = DelayResolver(config).resolve_delay_ms(None, at)
    logger.info(f"Delay without robots crawl-delay: {resolved:.0f}ms")


def _run_pace(args):
    config = build_config(args)
    asyncio.run(_pace(config, args.urls))


def main():
    p = argparse.ArgumentParser(
        description="Crawl Politeness - robots.txt and crawl-delay tools",
    )
    subparsers = p.add_subparsers(dest="command")

    robots_parser = subparsers.add_parser(
        "robots", help="Fetch and show robots.txt policies"
    )
    _add_robots_args(robots_parser)

    schedule_parser = subparsers.add_parser(
        "schedule", help="Show which scheduled delay applies at a given time"
    )
    _add_schedule_args(schedule_parser)

    pace_parser = subparsers.add_parser(
        "pace", help="Pace a list of URLs as a crawler would"
    )
    _add_pace_args(pace_parser)

    args = p.parse_args(sys.argv[1:])

    if not args.command:
        p.print_help()
        sys.exit(1)

    start = time.time()

    try:
        if args.command == "robots":
            _run_robots(args)
        elif args.command == "schedule":
            _run_schedule(args)
        else:
            _run_pace(args)
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(2)

    elapsed = time.time() - start
    mins, secs = divmod(int(elapsed), 60)
    logger.info(f"Total time: {mins}m {secs}s")


if __name__ == "__main__":
    main()
