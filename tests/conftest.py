# tests/conftest.py

from __future__ import annotations

import random

import pytest

from taskwindow.tasks.task_scheduler import TaskScheduler

from .fakes import EventRecorder, FakeClock, InMemoryStore


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture()
def scheduler(store: InMemoryStore, clock: FakeClock) -> TaskScheduler:
    """
    Scheduler wired with deterministic fakes.

    The event loop clock still drives the poll timer; the FakeClock only
    drives persisted timestamps.
    """
    return TaskScheduler(store=store, cooldown="50ms", clock=clock, rng=random.Random(7))


@pytest.fixture()
def recorder(scheduler: TaskScheduler) -> EventRecorder:
    return EventRecorder().attach(scheduler.events)
