"""Exceptions raised by crawl_politeness."""


class ConfigError(ValueError):
    """Invalid politeness configuration (bad schedule, duration, scope...)."""
