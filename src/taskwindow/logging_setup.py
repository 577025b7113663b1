# src/taskwindow/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path

LOG_FILENAME = "taskwindow.log"
LOG_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s"

# Loggers that only reach the console at or above the given level.
_CONSOLE_FLOORS = {
    "taskwindow.tasks.events": logging.WARNING,
    "py.warnings": logging.ERROR,
}


class _ConsoleFilter(logging.Filter):
    """Event echoes and third-party chatter go to the file only."""

    def filter(self, record: logging.LogRecord) -> bool:
        floor = _CONSOLE_FLOORS.get(record.name)
        if floor is not None:
            return record.levelno >= floor
        if record.name.startswith("taskwindow."):
            return True
        return record.levelno >= logging.ERROR


def setup_logging(
    *,
    log_dir: str | Path = ".local/taskwindow",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> Path:
    """Send filtered logs to stderr and everything to <log_dir>/taskwindow.log. Returns the log file path."""
    log_file = Path(log_dir) / LOG_FILENAME
    log_file.parent.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.addFilter(_ConsoleFilter())

    to_file = logging.FileHandler(str(log_file), encoding="utf-8")
    to_file.setLevel(file_level)

    for handler in (console, to_file):
        handler.setFormatter(fmt)
        root.addHandler(handler)

    logging.captureWarnings(True)
    return log_file
