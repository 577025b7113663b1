# src/taskwindow/cli/main.py

"""
CLI entrypoint.

- `taskwindow report`: print every persisted task record
- `taskwindow parse SPEC`: show how an age-window spec is understood
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
import time
from dataclasses import replace
from datetime import datetime
from pathlib import Path

from ..config import Settings, get_settings
from ..errors import ConfigurationError
from ..logging_setup import setup_logging
from ..tasks.durations import format_duration
from ..tasks.task_models import TaskRecord
from ..tasks.task_scheduler import TaskScheduler
from ..tasks.window import parse_window_spec

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_USAGE = 2


def _fmt_ts(ts: float | None) -> str:
    if ts is None:
        return "-"
    return datetime.fromtimestamp(ts).isoformat(sep=" ", timespec="seconds")


def _fmt_next(ts: float, now: float) -> str:
    delta_ms = (ts - now) * 1000.0
    if delta_ms <= 0:
        return f"due ({format_duration(-delta_ms)} ago)"
    return f"in {format_duration(delta_ms)}"


def format_report(records: list[TaskRecord], *, now: float | None = None) -> str:
    if not records:
        return "No tasks."
    now = time.time() if now is None else now

    lines = []
    for r in records:
        lines.append(
            f"{r.id}: {r.status.value}, last {r.last_status} at {_fmt_ts(r.last)}"
            f" ({r.last_elapsed or '-'}), next {_fmt_next(r.next, now)}"
        )
        if r.last_error:
            first = r.last_error.strip().splitlines()[-1]
            lines.append(f"    error: {first}")
    return "\n".join(lines)


async def _report(settings: Settings) -> list[TaskRecord]:
    scheduler = TaskScheduler.from_settings(settings)
    try:
        return await scheduler.report()
    finally:
        await scheduler.stop()


def _cmd_report(args: argparse.Namespace, settings: Settings) -> int:
    if args.db:
        settings = replace(settings, db_path=Path(args.db).expanduser())

    level_name = str(settings.log_level).upper()
    setup_logging(log_dir=settings.data_dir, console_level=getattr(logging, level_name, logging.INFO))

    records = asyncio.run(_report(settings))
    if args.json:
        print(json.dumps([r.to_doc() for r in records], indent=2))
    else:
        print(format_report(records))
    return EXIT_OK


def _cmd_parse(args: argparse.Namespace, settings: Settings) -> int:
    window = parse_window_spec("cli", args.spec)
    print(
        f"min age {format_duration(window.min_age)} ({window.min_age} ms), "
        f"max age {format_duration(window.max_age)} ({window.max_age} ms)"
    )
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="taskwindow", description="Age-window task scheduler tools.")
    sub = parser.add_subparsers(dest="command", required=True)

    p_report = sub.add_parser("report", help="print every persisted task record")
    p_report.add_argument("--db", help="path to the task database (default: from settings)")
    p_report.add_argument("--json", action="store_true", help="print raw records as JSON")
    p_report.set_defaults(func=_cmd_report)

    p_parse = sub.add_parser("parse", help="parse an age-window spec like '1h +/- 10min'")
    p_parse.add_argument("spec")
    p_parse.set_defaults(func=_cmd_parse)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    try:
        return args.func(args, settings)
    except ConfigurationError as e:
        print(f"taskwindow: {e}", file=sys.stderr)
        return EXIT_USAGE


if __name__ == "__main__":
    sys.exit(main())
