"""Abstract repository interfaces (ports) for Broadcaster and Program records."""

from abc import ABC, abstractmethod
from typing import Any

from inspection_engine.domain.entities import Broadcaster, EntityId, Program


class BroadcasterRepository(ABC):
    """Port for the backing store's broadcaster resource."""

    @abstractmethod
    async def list_all(self) -> list[Broadcaster]:
        ...

    @abstractmethod
    async def create(self, attributes: dict[str, Any]) -> Broadcaster:
        """Create a broadcaster. Not idempotent at the transport level."""
        ...


class ProgramRepository(ABC):
    """Port for the backing store's program resource and its broadcaster links."""

    @abstractmethod
    async def list_all(self) -> list[Program]:
        ...

    @abstractmethod
    async def create(self, attributes: dict[str, Any]) -> Program:
        """Create a program. Not idempotent at the transport level."""
        ...

    @abstractmethod
    async def add_broadcaster(self, program_id: EntityId, broadcaster_id: EntityId) -> None:
        """Link a broadcaster to a program (idempotent)."""
        ...

    @abstractmethod
    async def remove_broadcaster(self, program_id: EntityId, broadcaster_id: EntityId) -> None:
        """Unlink a broadcaster from a program (idempotent)."""
        ...
