"""Time-window delay schedules with first-match lookup."""

import re
from dataclasses import dataclass
from datetime import datetime

from ..errors import ConfigError

_DAY_NAMES = ("mon", "tue", "wed", "thu", "fri", "sat", "sun")
_MINUTES_PER_DAY = 24 * 60

_DURATION_UNITS = {
    "ms": 1, "millis": 1, "millisecond": 1, "milliseconds": 1,
    "s": 1_000, "sec": 1_000, "secs": 1_000, "second": 1_000, "seconds": 1_000,
    "m": 60_000, "min": 60_000, "mins": 60_000, "minute": 60_000, "minutes": 60_000,
    "h": 3_600_000, "hour": 3_600_000, "hours": 3_600_000,
}
_DURATION_TOKEN = re.compile(r"(\d+(?:\.\d+)?)\s*([a-z]+)")
_DURATION_FULL = re.compile(r"(?:\d+(?:\.\d+)?\s*[a-z]+\s*)+")
_TIME_OF_DAY = re.compile(r"(\d{1,2})(?::(\d{2}))?")


def parse_duration_ms(value) -> int:
    """Parse a delay given as milliseconds or as a human duration.

    Accepts ints (``5000``), digit strings (``"5000"``) and English
    durations such as ``"5 seconds"``, ``"1m30s"`` or ``"2 minutes and 10 seconds"``.
    """
    if isinstance(value, bool):
        raise ConfigError(f"Invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        if value < 0:
            raise ConfigError(f"Duration cannot be negative: {value!r}")
        return int(value)
    if not isinstance(value, str):
        raise ConfigError(f"Invalid duration: {value!r}")

    text = value.strip().lower()
    if text.isdigit():
        return int(text)
    text = re.sub(r"\band\b|,", " ", text).strip()
    if not _DURATION_FULL.fullmatch(text):
        raise ConfigError(f"Invalid duration: {value!r}")

    total = 0.0
    for amount, unit in _DURATION_TOKEN.findall(text):
        if unit not in _DURATION_UNITS:
            raise ConfigError(f"Unknown duration unit {unit!r} in {value!r}")
        total += float(amount) * _DURATION_UNITS[unit]
    return int(total)


def _split_range(text: str) -> tuple[str, str]:
    """Normalize "from X to Y", "X to Y" and "X-Y" into (X, Y)."""
    out = text.strip().lower()
    out = re.sub(r"^from\s+", "", out)
    out = re.sub(r"\s+to\s+", "-", out)
    out = out.replace(" ", "")
    parts = out.split("-")
    if len(parts) != 2 or not all(parts):
        raise ConfigError(f"Invalid range format: {text!r}")
    return parts[0], parts[1]


@dataclass(frozen=True)
class DayRange:
    """Closed interval of day numbers. ``start > end`` wraps around."""

    start: int
    end: int

    def contains(self, value: int) -> bool:
        if self.start <= self.end:
            return self.start <= value <= self.end
        return value >= self.start or value <= self.end

    def __str__(self) -> str:
        return f"{self.start}-{self.end}"


@dataclass(frozen=True)
class TimeWindow:
    """Half-open [start, end) window in minutes since midnight.

    A window whose start is after its end spans midnight.
    """

    start_minute: int
    end_minute: int

    def contains(self, now: datetime) -> bool:
        minute = now.hour * 60 + now.minute
        if self.start_minute < self.end_minute:
            return self.start_minute <= minute < self.end_minute
        return minute >= self.start_minute or minute < self.end_minute

    def __str__(self) -> str:
        return "{:02d}:{:02d}-{:02d}:{:02d}".format(
            *divmod(self.start_minute, 60), *divmod(self.end_minute, 60))


def _to_weekday(token: str, source: str) -> int:
    if token.isdigit():
        day = int(token)
        if 1 <= day <= 7:
            return day
        raise ConfigError(f"Day of week out of range 1-7: {source!r}")
    if len(token) < 3 or token[:3] not in _DAY_NAMES:
        raise ConfigError(f"Invalid day of week {token!r} in {source!r}")
    return _DAY_NAMES.index(token[:3]) + 1


def _to_month_day(token: str, source: str) -> int:
    try:
        day = int(token)
    except ValueError:
        raise ConfigError(f"Invalid day of month {token!r} in {source!r}") from None
    if not 1 <= day <= 31:
        raise ConfigError(f"Day of month out of range 1-31: {source!r}")
    return day


def _to_minute(token: str, source: str, *, allow_end_of_day: bool) -> int:
    m = _TIME_OF_DAY.fullmatch(token)
    if not m:
        raise ConfigError(f"Invalid time {token!r} in {source!r}")
    hour, minute = int(m.group(1)), int(m.group(2) or 0)
    if minute > 59 or hour > 24:
        raise ConfigError(f"Invalid time {token!r} in {source!r}")
    total = hour * 60 + minute
    if total > _MINUTES_PER_DAY or (total == _MINUTES_PER_DAY and not allow_end_of_day):
        raise ConfigError(f"Invalid time {token!r} in {source!r}")
    return total


def parse_day_of_week_range(text: str) -> DayRange:
    """``"mon-fri"``, ``"from Saturday to Sunday"``, ``"1-5"``."""
    start, end = _split_range(text)
    return DayRange(_to_weekday(start, text), _to_weekday(end, text))


def parse_day_of_month_range(text: str) -> DayRange:
    start, end = _split_range(text)
    return DayRange(_to_month_day(start, text), _to_month_day(end, text))


def parse_time_window(text: str) -> TimeWindow:
    """``"09:00-17:00"``, ``"9-17"``, ``"from 22:00 to 06:00"``."""
    start, end = _split_range(text)
    window = TimeWindow(
        _to_minute(start, text, allow_end_of_day=False),
        _to_minute(end, text, allow_end_of_day=True),
    )
    if window.start_minute == window.end_minute:
        raise ConfigError(f"Empty time range: {text!r}")
    return window


# Each axis: how to read it from a schedule, and which component of "now" it tests.
_AXES = (
    (lambda s: s.day_of_week, lambda dt: dt.isoweekday()),
    (lambda s: s.day_of_month, lambda dt: dt.day),
    (lambda s: s.time_window, lambda dt: dt),
)

_SCHEDULE_KEYS = {
    "day_of_week": "day_of_week",
    "dayOfWeek": "day_of_week",
    "day_of_month": "day_of_month",
    "dayOfMonth": "day_of_month",
    "time": "time",
    "delay": "delay",
    "delay_ms": "delay",
    "delayMillis": "delay",
}


@dataclass(frozen=True)
class DelaySchedule:
    """A delay that applies while the local time falls in every given range.

    Absent ranges always match.
    """

    delay_ms: int
    day_of_week: DayRange | None = None
    day_of_month: DayRange | None = None
    time_window: TimeWindow | None = None

    @classmethod
    def parse(cls, delay, day_of_week: str | None = None,
              day_of_month: str | None = None,
              time: str | None = None) -> "DelaySchedule":
        """Build a schedule from its configuration strings. Raises ConfigError."""
        return cls(
            delay_ms=parse_duration_ms(delay),
            day_of_week=parse_day_of_week_range(day_of_week) if day_of_week else None,
            day_of_month=parse_day_of_month_range(day_of_month) if day_of_month else None,
            time_window=parse_time_window(time) if time else None,
        )

    @classmethod
    def from_dict(cls, data: dict) -> "DelaySchedule":
        if not isinstance(data, dict):
            raise ConfigError(f"Schedule must be a mapping, got {type(data).__name__}")
        kwargs = {}
        for key, value in data.items():
            if key not in _SCHEDULE_KEYS:
                raise ConfigError(f"Unknown schedule key: {key!r}")
            kwargs[_SCHEDULE_KEYS[key]] = value
        if "delay" not in kwargs:
            raise ConfigError(f"Schedule is missing its delay: {data!r}")
        return cls.parse(**kwargs)

    def matches(self, now: datetime) -> bool:
        for axis_of, component_of in _AXES:
            axis = axis_of(self)
            if axis is not None and not axis.contains(component_of(now)):
                return False
        return True

    def describe(self) -> str:
        parts = []
        if self.day_of_week:
            parts.append("dow " + "-".join(
                _DAY_NAMES[d - 1] for d in (self.day_of_week.start, self.day_of_week.end)))
        if self.day_of_month:
            parts.append(f"dom {self.day_of_month}")
        if self.time_window:
            parts.append(f"time {self.time_window}")
        return f"{' '.join(parts) or 'always'} -> {self.delay_ms}ms"


def find_delay(schedules, now: datetime) -> int | None:
    """Delay of the first schedule matching ``now``, or None."""
    for schedule in schedules:
        if schedule.matches(now):
            return schedule.delay_ms
    return None
