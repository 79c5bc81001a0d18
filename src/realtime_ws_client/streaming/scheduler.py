"""Cancellable one-shot and repeating timers on the asyncio loop."""

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any, Optional, Protocol

from realtime_ws_client.telemetry.logger import get_logger

logger = get_logger(__name__)

Callback = Callable[[], Any]


class TimerHandle(Protocol):
    """Opaque cancellation token returned by a scheduler."""

    def cancel(self) -> None: ...


class Scheduler(ABC):
    """Schedules delayed and periodic callbacks."""

    @abstractmethod
    def schedule_once(self, delay: float, callback: Callback) -> TimerHandle:
        """Run ``callback`` once after ``delay`` seconds."""

    @abstractmethod
    def schedule_repeating(self, interval: float, callback: Callback) -> TimerHandle:
        """Run ``callback`` every ``interval`` seconds until cancelled."""

    def cancel(self, handle: Optional[TimerHandle]) -> None:
        if handle is not None:
            handle.cancel()



class _RepeatingHandle:
    """Re-arms itself after every fire until cancelled."""

    def __init__(self, loop: asyncio.AbstractEventLoop, interval: float, callback: Callback, invoke: Callable[[Callback], None]):
        self._loop = loop
        self._interval = interval
        self._callback = callback
        self._invoke = invoke
        self._cancelled = False
        self._handle = loop.call_later(interval, self._fire)

    def _fire(self) -> None:
        if self._cancelled:
            return
        self._handle = self._loop.call_later(self._interval, self._fire)
        self._invoke(self._callback)

    def cancel(self) -> None:
        self._cancelled = True
        self._handle.cancel()

    def cancelled(self) -> bool:
        return self._cancelled


class AsyncioScheduler(Scheduler):
    """Scheduler backed by ``loop.call_later``.

    The loop is resolved lazily so the scheduler can be built before the
    loop starts running. Coroutines returned by callbacks run as tasks the
    scheduler holds until they finish.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop
        self._tasks: set[asyncio.Task] = set()

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop or asyncio.get_running_loop()

    def schedule_once(self, delay: float, callback: Callback) -> TimerHandle:
        return self.loop.call_later(max(delay, 0.0), self._invoke, callback)

    def schedule_repeating(self, interval: float, callback: Callback) -> TimerHandle:
        if interval <= 0:
            raise ValueError("interval must be positive")
        return _RepeatingHandle(self.loop, interval, callback, self._invoke)

    def _invoke(self, callback: Callback) -> None:
        result = callback()
        if asyncio.iscoroutine(result):
            task = self.loop.create_task(result)
            self._tasks.add(task)
            task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        if exc := task.exception():
            logger.error("scheduled_callback_failed", error=str(exc), error_type=type(exc).__name__)
