"""Settings dataclass and configuration loading."""

import json
from dataclasses import dataclass, fields
from pathlib import Path

from .delay.schedule import DelaySchedule, parse_duration_ms
from .errors import ConfigError

SCOPE_SITE = "site"
SCOPE_CRAWLER = "crawler"
SCOPES = (SCOPE_SITE, SCOPE_CRAWLER)

DEFAULT_DELAY_MS = 3000


@dataclass(frozen=True)
class PolitenessConfig:
    # Robots
    user_agent: str = "CrawlPoliteness/0.1"
    respect_robots: bool = True
    robots_timeout: float = 5
    robots_max_bytes: int = 512_000

    # Delay
    default_delay_ms: int = DEFAULT_DELAY_MS
    ignore_robots_crawl_delay: bool = False
    schedules: tuple[DelaySchedule, ...] = ()  # first match wins
    scope: str = SCOPE_SITE  # "site" or "crawler"

    def __post_init__(self):
        if not isinstance(self.user_agent, str) or not self.user_agent.strip():
            raise ConfigError(f"user_agent must be a non-empty string: {self.user_agent!r}")
        for name in ("respect_robots", "ignore_robots_crawl_delay"):
            value = getattr(self, name)
            if not isinstance(value, bool):
                raise ConfigError(f"{name} must be true or false, got {value!r}")
        # bool is an int subclass
        for name, kinds in (("robots_max_bytes", int), ("default_delay_ms", (int, float)),
                            ("robots_timeout", (int, float))):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, kinds):
                raise ConfigError(f"{name} must be a number, got {value!r}")
        if self.robots_max_bytes <= 0:
            raise ConfigError(f"robots_max_bytes must be positive: {self.robots_max_bytes}")
        if not isinstance(self.schedules, tuple):
            raise ConfigError("schedules must be a tuple of DelaySchedule")
        if self.scope not in SCOPES:
            raise ConfigError(f"Unsupported delay scope {self.scope!r}, expected one of {SCOPES}")
        if self.default_delay_ms < 0:
            raise ConfigError(f"default_delay_ms cannot be negative: {self.default_delay_ms}")
        if self.robots_timeout <= 0:
            raise ConfigError(f"robots_timeout must be positive: {self.robots_timeout}")


def with_overrides(config: PolitenessConfig, **overrides) -> PolitenessConfig:
    """Return a new config with the given non-None overrides applied."""
    overrides = {k: v for k, v in overrides.items() if v is not None}
    if not overrides:
        return config
    # frozen dataclass: rebuild with overrides
    values = {f.name: getattr(config, f.name) for f in fields(config)}
    values.update(overrides)
    return PolitenessConfig(**values)


def config_from_dict(data: dict) -> PolitenessConfig:
    """Build a validated PolitenessConfig from a plain mapping.

    ``default_delay`` and schedule delays accept milliseconds or
    human durations ("5 seconds"). Raises ConfigError on any mistake.
    """
    if not isinstance(data, dict):
        raise ConfigError("Configuration must be a JSON object")
    known = {f.name for f in fields(PolitenessConfig)}
    values = {}
    for key, value in data.items():
        if key == "default_delay":
            values["default_delay_ms"] = parse_duration_ms(value)
        elif key == "schedules":
            if not isinstance(value, list):
                raise ConfigError("schedules must be a list")
            values["schedules"] = tuple(DelaySchedule.from_dict(s) for s in value)
        elif key == "default_delay_ms":
            values[key] = parse_duration_ms(value)
        elif key in known:
            values[key] = value
        else:
            raise ConfigError(f"Unknown configuration key: {key!r}")
    return PolitenessConfig(**values)


def load_config(path: Path) -> PolitenessConfig:
    path = Path(path)
    try:
        with open(path) as f:
            data = json.load(f)
    except OSError as e:
        raise ConfigError(f"Cannot read configuration {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in {path}: {e}") from e
    return config_from_dict(data)
