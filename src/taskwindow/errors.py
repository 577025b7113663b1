# src/taskwindow/errors.py

from __future__ import annotations

"""
Exception hierarchy.

Configuration problems are fatal and surface through the startup barrier.
Store errors are raised by DocumentStore implementations and handled by the
scheduler at run/tick boundaries.
"""


class TaskWindowError(Exception):
    """Base class for all taskwindow errors."""


class ConfigurationError(TaskWindowError):
    """Invalid construction arguments, duplicate task ids, late registration."""


class DurationError(TaskWindowError, ValueError):
    """A duration string like "5min" could not be parsed."""


class WindowSpecError(ConfigurationError, ValueError):
    """An age-window spec like "1h +/- 10min" could not be parsed."""


class StartupError(TaskWindowError):
    """
    At least one registration failed before the scheduler could start.

    The first failure is available as ``original`` and is also chained as ``__cause__``.
    """

    def __init__(self, original: BaseException) -> None:
        super().__init__(f"Error on startup: {type(original).__name__}: {original}")
        self.original = original


class StoreError(TaskWindowError):
    """Base class for document store failures."""


class DocumentNotFound(StoreError, LookupError):
    """find_one() matched nothing."""


class DuplicateDocument(StoreError):
    """insert() was given an id that already exists."""
