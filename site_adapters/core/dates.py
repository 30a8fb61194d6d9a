"""Date helpers shared by both adapters."""

import re
from datetime import date, datetime, timezone
from typing import Callable, Union

# date-fns tokens understood by format_date, longest first
_TOKENS = {
    "yyyy": "%Y",
    "MM": "%m",
    "dd": "%d",
    "HH": "%H",
    "mm": "%M",
    "ss": "%S",
}
_TOKEN_PATTERN = re.compile("|".join(_TOKENS))

DateFormatter = Callable[[Union[date, datetime], str], str]


def format_date(value: Union[date, datetime], pattern: str) -> str:
    """Format a date with a date-fns style pattern such as ``yyyy-MM-dd``."""
    strftime_pattern = _TOKEN_PATTERN.sub(lambda m: _TOKENS[m.group(0)], pattern.replace("%", "%%"))
    return value.strftime(strftime_pattern)


def utc_now() -> datetime:
    """Current time in UTC."""
    return datetime.now(timezone.utc)


def to_utc_iso(value: datetime) -> str:
    """Format an instant as UTC ISO 8601 with milliseconds and a ``Z`` suffix.

    Naive datetimes are taken as UTC.
    """
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.isoformat(timespec="milliseconds") + "Z"


def parse_date(value: str) -> datetime:
    """Parse an ISO date (``2024-05-01``) or datetime string.

    Dates without a time component resolve to the start of that day.
    """
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


def apply_time(value: datetime, time_of_day: str) -> datetime:
    """Set hours and minutes from an ``HH:MM[:SS]`` string."""
    parts = [int(part) for part in time_of_day.split(":")]
    hours = parts[0]
    minutes = parts[1] if len(parts) > 1 else 0
    return value.replace(hour=hours, minute=minutes, second=0, microsecond=0)
