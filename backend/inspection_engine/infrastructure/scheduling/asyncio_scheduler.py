"""Scheduler adapter on the running asyncio event loop."""

import asyncio
from collections.abc import Callable

from inspection_engine.application.interfaces import Scheduler, TimerHandle


class _AsyncioTimerHandle(TimerHandle):
    def __init__(self, handle: asyncio.TimerHandle):
        self._handle = handle

    def cancel(self) -> None:
        self._handle.cancel()


class AsyncioScheduler(Scheduler):
    """Schedules callbacks with ``loop.call_later`` on the current loop."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        loop = asyncio.get_running_loop()
        return _AsyncioTimerHandle(loop.call_later(delay, callback))
