# src/taskwindow/tasks/durations.py

from __future__ import annotations

"""
Compact human durations.

parse_duration("5min") -> 300000 (milliseconds)
parse_duration("1h30min") -> 5400000
format_duration(90500) -> "1m 30.5s"
"""

import re

from ..errors import DurationError

_MS_PER_UNIT = {
    "ms": 1,
    "msec": 1,
    "msecs": 1,
    "millisecond": 1,
    "milliseconds": 1,
    "s": 1_000,
    "sec": 1_000,
    "secs": 1_000,
    "second": 1_000,
    "seconds": 1_000,
    "m": 60_000,
    "min": 60_000,
    "mins": 60_000,
    "minute": 60_000,
    "minutes": 60_000,
    "h": 3_600_000,
    "hr": 3_600_000,
    "hrs": 3_600_000,
    "hour": 3_600_000,
    "hours": 3_600_000,
    "d": 86_400_000,
    "day": 86_400_000,
    "days": 86_400_000,
    "w": 604_800_000,
    "wk": 604_800_000,
    "week": 604_800_000,
    "weeks": 604_800_000,
}

_PART_RE = re.compile(r"(\d+(?:\.\d+)?)\s*([a-zA-Z]+)")
_FULL_RE = re.compile(r"(?:\s*\d+(?:\.\d+)?\s*[a-zA-Z]+)+\s*")


def parse_duration(text: str) -> int:
    """
    Parse a compact duration ("30s", "5min", "1.5h", "1h30min") into milliseconds.

    Units are case-insensitive. A bare number without a unit is rejected.
    """
    if not isinstance(text, str) or not _FULL_RE.fullmatch(text):
        raise DurationError(f"Can't parse duration: {text!r}")

    total = 0.0
    for amount, unit in _PART_RE.findall(text):
        factor = _MS_PER_UNIT.get(unit.lower())
        if factor is None:
            raise DurationError(f"Unknown duration unit {unit!r} in {text!r}")
        total += float(amount) * factor
    return int(round(total))


def format_duration(ms: int | float) -> str:
    """Render milliseconds for display: 250 -> "250ms", 3723000 -> "1h 2m 3s"."""
    ms = max(0.0, float(ms))
    if ms < 1_000:
        return f"{int(round(ms))}ms"

    # work in tenths of a second so rounding carries into minutes/hours
    tenths = int(round(ms / 100))
    days, rest = divmod(tenths, 864_000)
    hours, rest = divmod(rest, 36_000)
    minutes, rest = divmod(rest, 600)
    whole, frac = divmod(rest, 10)

    parts: list[str] = []
    if days:
        parts.append(f"{days}d")
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    if rest:
        parts.append(f"{whole}.{frac}s" if frac else f"{whole}s")
    return " ".join(parts)
