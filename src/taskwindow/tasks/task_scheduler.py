# src/taskwindow/tasks/task_scheduler.py

from __future__ import annotations

"""
Age-window task scheduler.

Each registered task declares how stale it may get ("1h +/- 10min"). The scheduler:
- reconciles every registration with the persisted record (crash recovery included),
- holds runs back until all registrations have completed (startup barrier),
- runs a task at most once at a time, guarded by the persisted status,
- records the outcome and the next due time after every run,
- polls the store every cooldown for due tasks and runs them without waiting.

Failures inside run()/tick() end up as events or log lines. Only a failed
startup barrier propagates to the caller.
"""

import asyncio
import inspect
import json
import logging
import random
import time
import traceback
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, Any

from ..core.ports import DocumentStore, ResultSerializer
from ..errors import ConfigurationError, DocumentNotFound, DurationError, StartupError
from . import events as ev
from .durations import format_duration, parse_duration
from .events import EventBus
from .task_models import LastStatus, TaskContext, TaskRecord, TaskStatus, next_delay_ms, reconcile_record
from .task_store import AsyncDocumentStore, TaskStore
from .window import AgeWindow, parse_window_spec

if TYPE_CHECKING:
    from ..config import Settings

logger = logging.getLogger(__name__)

USAGE = (
    "usage: TaskScheduler(db_path='/path/to/db-dir', cooldown='5min'); "
    "cooldown is optional, defaults to 60s"
)
DEFAULT_COOLDOWN = "60s"
DB_FILENAME = "tasks.sqlite3"

# Plain callables and coroutine functions are both accepted.
TaskHandler = Callable[[TaskContext], Any]


def json_result(result: Any) -> str:
    return json.dumps(result, indent=2, default=str)


def _cooldown_ms(cooldown: str | int | float | None) -> int:
    if cooldown is None:
        return parse_duration(DEFAULT_COOLDOWN)
    if isinstance(cooldown, (int, float)) and not isinstance(cooldown, bool):
        if cooldown <= 0:
            raise ConfigurationError(f"cooldown must be positive, got {cooldown!r}")
        return max(1, int(cooldown))
    if isinstance(cooldown, str):
        try:
            return parse_duration(cooldown)
        except DurationError as e:
            raise ConfigurationError(f"Bad cooldown {cooldown!r}. {USAGE}") from e
    raise ConfigurationError(USAGE)


class TaskScheduler:
    def __init__(
        self,
        db_path: str | Path | None = None,
        *,
        cooldown: str | int | float | None = DEFAULT_COOLDOWN,
        store: DocumentStore | None = None,
        clock: Callable[[], float] = time.time,
        rng: random.Random | None = None,
        result_serializer: ResultSerializer = json_result,
        log_debug: bool = True,
    ) -> None:
        if store is None and not db_path:
            raise ConfigurationError(USAGE)

        self._db_path = Path(db_path) if db_path else None
        self._store: DocumentStore | None = store
        self._store_task: asyncio.Task[DocumentStore] | None = None
        self._owns_store = store is None

        self._cooldown_ms = _cooldown_ms(cooldown)
        self._clock = clock
        self._rng = rng or random.Random()
        self._serialize = result_serializer
        self._log_debug = log_debug

        self._handlers: dict[str, TaskHandler] = {}
        self._pending: list[asyncio.Task[TaskRecord]] = []
        self._setup_task: asyncio.Task[None] | None = None
        self._setup_done = False

        self._timer: asyncio.TimerHandle | None = None
        self._tick_task: asyncio.Task[None] | None = None
        self._running: set[asyncio.Task[None]] = set()
        self._stopped = False

        self.events = EventBus()
        self._debug("Cooldown: %sms", self._cooldown_ms)

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs: Any) -> TaskScheduler:
        return cls(
            settings.db_path,
            cooldown=settings.cooldown,
            log_debug=settings.log_debug,
            **kwargs,
        )

    @property
    def cooldown_ms(self) -> int:
        return self._cooldown_ms

    def _debug(self, msg: str, *args: Any) -> None:
        if self._log_debug:
            logger.debug(msg, *args)

    # ---- store ----

    async def db(self) -> DocumentStore:
        """The document store, opened (and its directory created) on first use."""
        if self._store is not None:
            return self._store
        if self._store_task is None:
            self._store_task = asyncio.get_running_loop().create_task(self._open_store())
        return await self._store_task

    async def _open_store(self) -> DocumentStore:
        if self._db_path is None:
            raise ConfigurationError(USAGE)
        path = self._db_path if self._db_path.suffix else self._db_path / DB_FILENAME
        sync_store = await asyncio.to_thread(TaskStore, path)
        self._store = AsyncDocumentStore(sync_store)
        return self._store

    # ---- registration ----

    def schedule(self, task_id: str, window_spec: str, handler: TaskHandler) -> asyncio.Task[TaskRecord]:
        """
        Register a task. Must be called with a running event loop, before start().

        The returned asyncio.Task resolves to the reconciled record; failures are
        collected by finish_setup().
        """
        if self._setup_done or self._setup_task is not None:
            raise ConfigurationError(f"Task {task_id} scheduled after startup")

        loop = asyncio.get_running_loop()
        if task_id in self._handlers:
            coro = self._reject(ConfigurationError(f"Task {task_id} defined multiple times!"))
        else:
            self._handlers[task_id] = handler
            coro = self._register(task_id, window_spec)

        fut = loop.create_task(coro)
        self._pending.append(fut)
        return fut

    @staticmethod
    async def _reject(error: Exception) -> TaskRecord:
        raise error

    @staticmethod
    async def _parse(task_id: str, window_spec: str) -> AgeWindow:
        return parse_window_spec(task_id, window_spec)

    async def _register(self, task_id: str, window_spec: str) -> TaskRecord:
        store, window = await asyncio.gather(self.db(), self._parse(task_id, window_spec))

        try:
            existing = await store.find_one({"id": task_id})
        except DocumentNotFound:
            existing = {}

        record = reconcile_record(window, existing, now=self._clock(), rng=self._rng)
        await store.update({"id": task_id}, record.to_doc(), upsert=True)

        self._debug("Register %s", record)
        self.events.emit(ev.TASK_REGISTERED, record)
        return record

    async def finish_setup(self) -> None:
        """
        Startup barrier: wait for every registration issued so far.

        Passes once and stays passed. If a registration failed, every caller gets
        a StartupError wrapping the first failure.
        """
        if self._setup_done:
            return
        if self._setup_task is None:
            self._setup_task = asyncio.get_running_loop().create_task(self._await_registrations())
        await asyncio.shield(self._setup_task)

    async def _await_registrations(self) -> None:
        results = await asyncio.gather(*self._pending, return_exceptions=True)
        for res in results:
            if isinstance(res, BaseException):
                logger.error("Registration failed: %s", res)
                raise StartupError(res) from res
        self._pending.clear()
        self._setup_done = True

    # ---- execution ----

    async def run(self, task_id: str) -> None:
        """Run one task now, unless it is already running."""
        self._debug("Running task %s", task_id)
        await self.finish_setup()

        self.events.emit(ev.TASK_WILL_START, task_id)

        try:
            store = await self.db()
            record = TaskRecord.from_doc(await store.find_one({"id": task_id}))
        except Exception as e:
            logger.warning("Task %s lookup failed: %s", task_id, e)
            self.events.emit(ev.TASK_FIND_ERROR, task_id, e)
            return

        if record.status == TaskStatus.RUNNING:
            self.events.emit(ev.TASK_CANCELLED, record, "Already Running")
            return

        self.events.emit(ev.TASK_START, record)
        start = self._clock()
        try:
            await store.update(
                {"id": task_id},
                {"status": TaskStatus.RUNNING.value, "last": start, "last_end": None},
            )
            record = TaskRecord.from_doc(await store.find_one({"id": task_id}))
        except Exception:
            logger.exception("Task %s could not be marked running", task_id)
            self.events.emit(ev.TASK_END, task_id, record)
            return

        delay = next_delay_ms(record, self._rng)
        ctx = TaskContext(task=record, id=task_id)

        failure: Exception | None = None
        serialized: str | None = None
        try:
            handler = self._handlers.get(task_id)
            if handler is None:
                # left over from an earlier process; recorded like any failed run
                raise ConfigurationError(f"No handler registered for task {task_id}")
            result = handler(ctx)
            if inspect.isawaitable(result):
                result = await result
            serialized = self._serialize(result)
        except Exception as e:
            failure = e

        end = self._clock()
        outcome: dict[str, Any] = {
            "last_end": end,
            "last_elapsed": format_duration((end - start) * 1000.0),
            "next": end + delay / 1000.0,
            "status": TaskStatus.WAITING.value,
        }
        if failure is None:
            outcome.update(last_status=LastStatus.SUCCESS.value, last_error=None, last_result=serialized)
        else:
            logger.error("Task %s failed", task_id, exc_info=failure)
            outcome.update(
                last_status=LastStatus.ERROR.value,
                last_error="".join(traceback.format_exception(failure)),
                last_result=None,
            )

        try:
            await store.update({"id": task_id}, outcome)
            record = TaskRecord.from_doc(await store.find_one({"id": task_id}))
        except Exception:
            logger.exception("Task %s outcome could not be saved", task_id)
        else:
            if failure is None:
                self.events.emit(ev.TASK_SUCCESS, record)
            else:
                self.events.emit(ev.TASK_ERROR, record, failure)

        self.events.emit(ev.TASK_END, task_id, record)

    def _spawn(self, task_id: str) -> None:
        t = asyncio.get_running_loop().create_task(self._run_detached(task_id))
        self._running.add(t)
        t.add_done_callback(self._running.discard)

    async def _run_detached(self, task_id: str) -> None:
        try:
            await self.run(task_id)
        except Exception:
            logger.exception("Run of task %s failed", task_id)

    # ---- poll loop ----

    async def tick(self) -> None:
        """
        Run every due, non-running task without waiting for it, then arm the next tick.

        The next tick fires one cooldown after this one started.
        """
        loop = asyncio.get_running_loop()
        started = loop.time()
        self._debug("tick %s", self._clock())

        await self.finish_setup()

        try:
            store = await self.db()
            due = await store.find(
                {
                    "next": {"$lt": self._clock()},
                    "status": {"$ne": TaskStatus.RUNNING.value},
                    "id": {"$in": list(self._handlers)},
                }
            )
            for doc in due:
                self._spawn(str(doc["id"]))
        except Exception:
            logger.exception("Error while polling for due tasks")
        finally:
            self._arm(started + self._cooldown_ms / 1000.0)

    def _arm(self, when: float) -> None:
        if self._stopped:
            return
        if self._timer is not None:
            self._timer.cancel()
        self._timer = asyncio.get_running_loop().call_at(when, self._fire_tick)

    def _fire_tick(self) -> None:
        self._timer = None
        if self._stopped:
            return
        self._tick_task = asyncio.get_running_loop().create_task(self.tick())
        self._tick_task.add_done_callback(self._tick_done)

    @staticmethod
    def _tick_done(t: asyncio.Task[None]) -> None:
        if t.cancelled():
            return
        exc = t.exception()
        if exc is not None:
            logger.error("Poll loop stopped", exc_info=exc)

    async def start(self) -> None:
        """Open the store, pass the startup barrier, then tick on the next loop iteration."""
        self._debug("startup")
        self._stopped = False
        await self.db()
        await self.finish_setup()
        asyncio.get_running_loop().call_soon(self._fire_tick)

    async def stop(self) -> None:
        """Cancel the pending tick and wait for in-flight runs."""
        self._stopped = True
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._tick_task is not None and not self._tick_task.done():
            self._tick_task.cancel()
            await asyncio.gather(self._tick_task, return_exceptions=True)
        if self._running:
            await asyncio.gather(*list(self._running), return_exceptions=True)
        await self.events.drain()
        if self._owns_store and self._store is not None:
            await self._store.close()

    # ---- inspection ----

    async def report(self) -> list[TaskRecord]:
        """Every persisted task record, unfiltered."""
        await self.finish_setup()
        store = await self.db()
        return [TaskRecord.from_doc(d) for d in await store.find({})]
