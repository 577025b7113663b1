# src/taskwindow/tasks/events.py

from __future__ import annotations

"""
Lifecycle events.

Listeners may be plain callables or coroutine functions. A listener that fails
is logged and never affects the scheduler.
"""

import asyncio
import inspect
import logging
from typing import Any

from ..core.ports import EventListener

logger = logging.getLogger(__name__)

TASK_REGISTERED = "task-registered"
TASK_WILL_START = "task-will-start"
TASK_FIND_ERROR = "task-find-error"
TASK_CANCELLED = "task-cancelled"
TASK_START = "task-start"
TASK_SUCCESS = "task-success"
TASK_ERROR = "task-error"
TASK_END = "task-end"

ALL_EVENTS = (
    TASK_REGISTERED,
    TASK_WILL_START,
    TASK_FIND_ERROR,
    TASK_CANCELLED,
    TASK_START,
    TASK_SUCCESS,
    TASK_ERROR,
    TASK_END,
)


class EventBus:
    """Small synchronous pub/sub for scheduler lifecycle events."""

    def __init__(self) -> None:
        self._listeners: dict[str, list[EventListener]] = {}
        self._pending: set[asyncio.Future[Any]] = set()

    def subscribe(self, event: str, listener: EventListener) -> None:
        listeners = self._listeners.setdefault(event, [])
        if listener not in listeners:
            listeners.append(listener)

    def unsubscribe(self, event: str, listener: EventListener) -> None:
        listeners = self._listeners.get(event)
        if listeners and listener in listeners:
            listeners.remove(listener)

    def emit(self, event: str, *args: Any) -> None:
        logger.debug("event %s %s", event, args)
        for listener in list(self._listeners.get(event, ())):
            try:
                res = listener(*args)
            except Exception:
                logger.exception("Listener for %s failed", event)
                continue

            if inspect.isawaitable(res):
                fut = asyncio.ensure_future(res)
                self._pending.add(fut)
                fut.add_done_callback(self._listener_done)

    def _listener_done(self, fut: asyncio.Future[Any]) -> None:
        self._pending.discard(fut)
        if fut.cancelled():
            return
        exc = fut.exception()
        if exc is not None:
            logger.error("Async event listener failed", exc_info=exc)

    async def drain(self) -> None:
        """Wait for async listeners that are still running."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
