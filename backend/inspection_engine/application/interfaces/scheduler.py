"""Abstract timer interface — lets the debounce logic run against a virtual clock."""

from abc import ABC, abstractmethod
from collections.abc import Callable


class TimerHandle(ABC):
    @abstractmethod
    def cancel(self) -> None:
        ...


class Scheduler(ABC):
    """Port — schedules a plain callback after a delay in seconds."""

    @abstractmethod
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        ...
