"""Crawl Politeness - robots.txt enforcement and per-host crawl pacing."""

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "ConfigError",
    "PolitenessConfig",
    "PolitenessEngine",
]

from crawl_politeness.config import PolitenessConfig
from crawl_politeness.errors import ConfigError


def __getattr__(name):
    """Lazy import for PolitenessEngine so parsing and scheduling can be
    used without loading aiohttp."""
    if name == "PolitenessEngine":
        from crawl_politeness.politeness import PolitenessEngine
        return PolitenessEngine
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
