"""Debounce timer — restartable single-shot timer over an injected Scheduler."""

from collections.abc import Callable

from inspection_engine.application.interfaces import Scheduler, TimerHandle


class DebounceTimer:
    """Fires ``callback`` once after ``delay`` seconds of quiet.

    Arming again before expiry cancels the pending shot and restarts the
    quiet period, so only the last edit of a burst triggers the callback.
    """

    def __init__(self, scheduler: Scheduler, delay: float, callback: Callable[[], None]):
        self._scheduler = scheduler
        self._delay = delay
        self._callback = callback
        self._handle: TimerHandle | None = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    @property
    def delay(self) -> float:
        return self._delay

    def arm(self) -> None:
        self.cancel()
        self._handle = self._scheduler.call_later(self._delay, self._expire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def fire(self) -> None:
        """Run the callback now, dropping any pending shot."""
        self.cancel()
        self._callback()

    def _expire(self) -> None:
        self._handle = None
        self._callback()
