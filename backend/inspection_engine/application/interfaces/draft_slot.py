"""Abstract interface (port) for the single, locally durable draft slot."""

from abc import ABC, abstractmethod

from inspection_engine.domain.entities import DraftSnapshot


class DraftSlot(ABC):
    """One well-known slot holding at most one snapshot."""

    @abstractmethod
    async def write(self, snapshot: DraftSnapshot) -> None:
        """Store the snapshot, replacing any previous content."""
        ...

    @abstractmethod
    async def take(self) -> DraftSnapshot | None:
        """Read the snapshot and clear the slot in the same operation."""
        ...

    @abstractmethod
    async def clear(self) -> None:
        ...
