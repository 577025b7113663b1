# tests/fakes.py

from __future__ import annotations

import asyncio
import copy
from functools import partial
from typing import Any

from taskwindow.errors import DocumentNotFound, StoreError
from taskwindow.tasks.events import ALL_EVENTS, EventBus
from taskwindow.tasks.task_store import match_document, upsert_seed


class FakeClock:
    """Manually advanced wall clock (POSIX seconds)."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class InMemoryStore:
    """
    In-memory DocumentStore used for scheduler unit tests.

    Uses the same query matcher as the SQLite store, so tests are purely about
    scheduling logic. Set fail_find/fail_update to simulate an unreachable
    backend; set gate to hold find_one() until the event is set.
    """

    def __init__(self, docs: list[dict[str, Any]] | None = None) -> None:
        self.docs: dict[str, dict[str, Any]] = {d["id"]: dict(d) for d in (docs or [])}
        self.fail_find = False
        self.fail_update = False
        self.gate: asyncio.Event | None = None
        self.updates: list[tuple[dict[str, Any], dict[str, Any]]] = []
        self.closed = False

    async def insert(self, doc: dict[str, Any]) -> dict[str, Any]:
        if doc["id"] in self.docs:
            raise StoreError("duplicate")
        self.docs[doc["id"]] = copy.deepcopy(doc)
        return doc

    async def find(self, query: dict[str, Any]) -> list[dict[str, Any]]:
        if self.fail_find:
            raise StoreError("store unreachable")
        return [copy.deepcopy(d) for d in self.docs.values() if match_document(d, query)]

    async def find_one(self, query: dict[str, Any]) -> dict[str, Any]:
        if self.gate is not None:
            await self.gate.wait()
        found = await self.find(query)
        if not found:
            raise DocumentNotFound(f"No document matches {query!r}")
        return found[0]

    async def update(self, query: dict[str, Any], fields: dict[str, Any], *, upsert: bool = False) -> int:
        if self.fail_update:
            raise StoreError("store unreachable")
        self.updates.append((dict(query), dict(fields)))
        matched = [d for d in self.docs.values() if match_document(d, query)]
        for d in matched:
            d.update(copy.deepcopy(fields))
        if not matched and upsert:
            doc = {**upsert_seed(query), **copy.deepcopy(fields)}
            self.docs[doc["id"]] = doc
            return 1
        return len(matched)

    async def close(self) -> None:
        self.closed = True


class EventRecorder:
    """Subscribes to every lifecycle event and keeps (name, args) in order."""

    def __init__(self) -> None:
        self.events: list[tuple[str, tuple[Any, ...]]] = []

    def attach(self, bus: EventBus) -> EventRecorder:
        for name in ALL_EVENTS:
            bus.subscribe(name, partial(self._record, name))
        return self

    def _record(self, name: str, *args: Any) -> None:
        self.events.append((name, args))

    def names(self) -> list[str]:
        return [n for n, _ in self.events]

    def of(self, name: str) -> list[tuple[Any, ...]]:
        return [args for n, args in self.events if n == name]
