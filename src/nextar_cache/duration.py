"""Duration parsing utilities."""

import re
from datetime import timedelta

from nextar_cache.types import Duration

_DURATION_PATTERN = re.compile(r"^(\d+)(ms|s|m|h|d)$")
_UNITS: dict[str, int] = {
    "ms": 1,
    "s": 1000,
    "m": 60_000,
    "h": 3_600_000,
    "d": 86_400_000,
}


def parse_duration(duration: Duration) -> int:
    """Parse a duration to milliseconds.

    Accepts ``"30s"``/``"5m"``/``"2h"`` style strings, ``timedelta`` objects
    and plain integers (already milliseconds). Purely numeric strings are
    read as milliseconds too, so values coming from environment variables
    such as ``CACHE_DEFAULT_TTL=300000`` parse as expected.
    """
    if isinstance(duration, bool):
        raise ValueError(f"Invalid duration: {duration!r}")
    if isinstance(duration, int):
        return duration
    if isinstance(duration, timedelta):
        return int(duration.total_seconds() * 1000)

    text = duration.strip()
    if text.isdigit():
        return int(text)

    match = _DURATION_PATTERN.match(text)
    if not match:
        raise ValueError(f"Invalid duration: {duration!r}")

    value, unit = match.groups()
    return int(value) * _UNITS[unit]
