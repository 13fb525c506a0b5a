"""Abstract repository interface (port) for Inspection persistence."""

from abc import ABC, abstractmethod
from typing import Any

from inspection_engine.domain.entities import EntityId, Inspection


class InspectionRepository(ABC):
    """Port for the backing store's inspection resource — implemented in the infrastructure layer.

    Implementations raise the ``BackingStoreError`` family
    (``NetworkError``, ``ValidationError``, ``NotFoundError``).
    """

    @abstractmethod
    async def get(self, inspection_id: EntityId) -> Inspection:
        """Fetch the current record."""
        ...

    @abstractmethod
    async def create(self, payload: dict[str, Any]) -> Inspection:
        """Create a record; the response carries the assigned identity."""
        ...

    @abstractmethod
    async def update(self, inspection_id: EntityId, payload: dict[str, Any]) -> Inspection:
        """Partial update: every key in ``payload`` is set to the given value."""
        ...
