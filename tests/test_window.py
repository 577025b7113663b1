# tests/test_window.py

from __future__ import annotations

import pytest

from taskwindow.errors import ConfigurationError, WindowSpecError
from taskwindow.tasks.window import AgeWindow, parse_window_spec

MIN = 60_000


def test_exact_age() -> None:
    assert parse_window_spec("a", "5min") == AgeWindow(id="a", min_age=5 * MIN, max_age=5 * MIN)


def test_center_plus_minus_tolerance() -> None:
    w = parse_window_spec("cleanup", "1h +/- 10min")
    assert (w.min_age, w.max_age) == (50 * MIN, 70 * MIN)
    assert w.span == 20 * MIN


def test_explicit_range() -> None:
    w = parse_window_spec("b", "30s - 2min")
    assert (w.min_age, w.max_age) == (30_000, 2 * MIN)


def test_tolerance_equal_to_base_is_allowed() -> None:
    w = parse_window_spec("c", "10min +/- 10min")
    assert (w.min_age, w.max_age) == (0, 20 * MIN)


def test_tolerance_above_base_is_rejected() -> None:
    with pytest.raises(WindowSpecError, match="tolerance"):
        parse_window_spec("d", "5min +/- 10min")


def test_inverted_range_is_rejected() -> None:
    with pytest.raises(WindowSpecError, match="min age"):
        parse_window_spec("e", "2h - 1h")


@pytest.mark.parametrize("spec", ["", "soon", "5min or so", "1h +/-", "- 5min", "5 min"])
def test_unparsable_specs_name_the_spec(spec: str) -> None:
    with pytest.raises(WindowSpecError) as ei:
        parse_window_spec("f", spec)
    assert repr(spec) in str(ei.value)


def test_unknown_unit_is_a_configuration_error() -> None:
    with pytest.raises(ConfigurationError, match="fortnight"):
        parse_window_spec("g", "1fortnight")
