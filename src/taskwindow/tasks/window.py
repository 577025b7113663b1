# src/taskwindow/tasks/window.py

from __future__ import annotations

"""
Age-window specs.

Three forms are accepted, tried in order:
- "5min"           exact age: min_age == max_age
- "1h +/- 10min"   center +/- tolerance
- "30s - 2min"     explicit range
"""

import re
from dataclasses import dataclass

from ..errors import DurationError, WindowSpecError
from .durations import parse_duration

_DUR = r"\d+(?:\.\d+)?[a-zA-Z]+(?:\d+(?:\.\d+)?[a-zA-Z]+)*"

_EXACT_RE = re.compile(rf"^({_DUR})$")
_TOLERANCE_RE = re.compile(rf"^({_DUR})\s*\+/-\s*({_DUR})$")
_RANGE_RE = re.compile(rf"^({_DUR})\s*-\s*({_DUR})$")


@dataclass(slots=True, frozen=True)
class AgeWindow:
    id: str
    min_age: int
    max_age: int

    @property
    def span(self) -> int:
        return self.max_age - self.min_age


def parse_window_spec(task_id: str, spec: str) -> AgeWindow:
    """Parse a window spec into an AgeWindow (ages in milliseconds)."""
    text = spec.strip() if isinstance(spec, str) else ""

    try:
        if m := _EXACT_RE.match(text):
            age = parse_duration(m.group(1))
            return AgeWindow(id=task_id, min_age=age, max_age=age)

        if m := _TOLERANCE_RE.match(text):
            base = parse_duration(m.group(1))
            mod = parse_duration(m.group(2))
            if mod > base:
                raise WindowSpecError(f"Can't parse run spec: {spec!r} (tolerance exceeds base)")
            return AgeWindow(id=task_id, min_age=base - mod, max_age=base + mod)

        if m := _RANGE_RE.match(text):
            min_age = parse_duration(m.group(1))
            max_age = parse_duration(m.group(2))
            if min_age > max_age:
                raise WindowSpecError(f"Can't parse run spec: {spec!r} (min age above max age)")
            return AgeWindow(id=task_id, min_age=min_age, max_age=max_age)
    except DurationError as e:
        raise WindowSpecError(f"Can't parse run spec: {spec!r} ({e})") from e

    raise WindowSpecError(f"Can't parse run spec: {spec!r}")
