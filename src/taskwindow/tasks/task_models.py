# src/taskwindow/tasks/task_models.py

from __future__ import annotations

import random
from dataclasses import asdict, dataclass
from enum import StrEnum
from typing import Any

from .window import AgeWindow


class TaskStatus(StrEnum):
    """
    Run guard persisted with every record.

    A record in RUNNING is never picked up by the poll loop and never re-entered by run().
    """

    WAITING = "waiting"
    RUNNING = "running"

    @classmethod
    def from_db(cls, raw: str | None) -> TaskStatus:
        if not raw:
            return cls.WAITING
        try:
            return cls(raw)
        except Exception:
            return cls.WAITING


class LastStatus(StrEnum):
    SUCCESS = "success"
    ERROR = "error"
    NO_INFO = "no prior run information"
    INTERRUPTED = "interrupted by program execution ending"


@dataclass(slots=True)
class TaskRecord:
    id: str
    min_age: int
    max_age: int
    status: TaskStatus
    next: float

    last: float | None = None
    last_status: str = LastStatus.NO_INFO
    last_error: str | None = None
    last_end: float | None = None
    last_elapsed: str | None = None
    last_result: str | None = None

    @classmethod
    def from_doc(cls, doc: dict[str, Any]) -> TaskRecord:
        return cls(
            id=str(doc["id"]),
            min_age=int(doc.get("min_age") or 0),
            max_age=int(doc.get("max_age") or 0),
            status=TaskStatus.from_db(doc.get("status")),
            next=float(doc.get("next") or 0.0),
            last=_opt_float(doc.get("last")),
            last_status=str(doc.get("last_status") or LastStatus.NO_INFO),
            last_error=doc.get("last_error"),
            last_end=_opt_float(doc.get("last_end")),
            last_elapsed=doc.get("last_elapsed"),
            last_result=doc.get("last_result"),
        )

    def to_doc(self) -> dict[str, Any]:
        doc = asdict(self)
        doc["status"] = self.status.value
        doc["last_status"] = str(self.last_status)
        return doc


@dataclass(slots=True, frozen=True)
class TaskContext:
    """What a handler is called with."""

    task: TaskRecord
    id: str


def _opt_float(raw: Any) -> float | None:
    return None if raw is None else float(raw)


def reconcile_record(
    window: AgeWindow,
    existing: dict[str, Any] | None,
    *,
    now: float,
    rng: random.Random,
) -> TaskRecord:
    """
    Merge a freshly declared window with whatever was persisted for the same id.

    Precedence:
    - min_age/max_age always come from the declaration
    - persisted history fields (last, last_status, last_error, ...) win when present
    - next is kept when present, otherwise placed at a random point inside the window span
    - a persisted RUNNING status with run history means the previous process died mid-run
    - status always ends up WAITING
    """
    existing = existing or {}

    nxt = existing.get("next")
    if not nxt:
        # Treat the task as already expired and spread first probes over the span.
        nxt = now + rng.random() * window.span / 1000.0

    last_status = existing.get("last_status") or LastStatus.NO_INFO
    last = existing.get("last")
    if existing.get("status") == TaskStatus.RUNNING and last is not None:
        last_status = LastStatus.INTERRUPTED

    return TaskRecord(
        id=window.id,
        min_age=window.min_age,
        max_age=window.max_age,
        status=TaskStatus.WAITING,
        next=float(nxt),
        last=_opt_float(last),
        last_status=str(last_status),
        last_error=existing.get("last_error"),
        last_end=_opt_float(existing.get("last_end")),
        last_elapsed=existing.get("last_elapsed"),
        last_result=existing.get("last_result"),
    )


def next_delay_ms(record: TaskRecord, rng: random.Random) -> int:
    """Delay until the task is due again, measured from run completion."""
    if record.min_age == record.max_age:
        return record.min_age
    return int(rng.random() * (record.max_age - record.min_age))
