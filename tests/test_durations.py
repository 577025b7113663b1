# tests/test_durations.py

from __future__ import annotations

import pytest

from taskwindow.errors import DurationError
from taskwindow.tasks.durations import format_duration, parse_duration


@pytest.mark.parametrize(
    "text, expected",
    [
        ("250ms", 250),
        ("30s", 30_000),
        ("5min", 300_000),
        ("5m", 300_000),
        ("1.5h", 5_400_000),
        ("1h30min", 5_400_000),
        ("2d", 172_800_000),
        ("10 Seconds", 10_000),
    ],
)
def test_parse_duration(text: str, expected: int) -> None:
    assert parse_duration(text) == expected


@pytest.mark.parametrize("text", ["", "5", "min", "5 parsecs", "-5min", "5min!"])
def test_parse_duration_rejects_garbage(text: str) -> None:
    with pytest.raises(DurationError):
        parse_duration(text)


def test_format_duration() -> None:
    assert format_duration(0) == "0ms"
    assert format_duration(250) == "250ms"
    assert format_duration(2_000) == "2s"
    assert format_duration(90_500) == "1m 30.5s"
    assert format_duration(3_723_000) == "1h 2m 3s"
    assert format_duration(86_400_000) == "1d"
    assert format_duration(-5) == "0ms"
