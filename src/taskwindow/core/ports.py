# src/taskwindow/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the scheduler.

The scheduler depends on Protocols instead of concrete implementations.
This keeps the storage backend swappable and makes testing easier.
"""

from typing import Any, Awaitable, Callable, Protocol

Document = dict[str, Any]
# Query language: {"field": value}, {"field": {"$lt": v}}, {"field": {"$ne": v}}, ...
Query = dict[str, Any]

ResultSerializer = Callable[[Any], str]


class DocumentStore(Protocol):
    """
    Async document store keyed by "id".

    find_one() raises DocumentNotFound when nothing matches.
    update() sets the given fields on every match; with upsert=True a missing
    document is created from the query's exact-match fields plus the patch.
    """

    def insert(self, doc: Document) -> Awaitable[Document]: ...
    def find(self, query: Query) -> Awaitable[list[Document]]: ...
    def find_one(self, query: Query) -> Awaitable[Document]: ...
    def update(self, query: Query, fields: Document, *, upsert: bool = False) -> Awaitable[int]: ...
    def close(self) -> Awaitable[None]: ...


class EventListener(Protocol):
    def __call__(self, *args: Any) -> Any: ...
