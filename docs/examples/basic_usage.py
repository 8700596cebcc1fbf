"""Basic usage: pace a handful of URLs with robots.txt and crawl-delay rules."""

import asyncio

from crawl_politeness.config import PolitenessConfig
from crawl_politeness.delay.schedule import DelaySchedule
from crawl_politeness.politeness import PolitenessEngine


async def crawl(urls: list[str]):
    config = PolitenessConfig(
        user_agent="ExampleBot/1.0 (+https://example.org/bot)",
        default_delay_ms=2000,
        schedules=(
            DelaySchedule.parse("1 second", day_of_week="sat-sun"),
            DelaySchedule.parse("5 seconds", day_of_week="mon-fri", time="09:00-17:00"),
        ),
    )
    async with PolitenessEngine(config) as engine:
        for url in urls:
            permit = await engine.acquire(url)
            if not permit.allowed:
                print(f"skip  {url} (robots.txt)")
                continue
            print(f"fetch {url} after {permit.waited:.2f}s")
            # ... fetch the document here ...


def main():
    asyncio.run(crawl([
        "https://www.python.org/",
        "https://www.python.org/about/",
        "https://docs.python.org/3/",
    ]))


if __name__ == "__main__":
    main()
