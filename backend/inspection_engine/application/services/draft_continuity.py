"""Draft Continuity Manager — carries Step-1 edits across a side-flow excursion."""

import logging
from collections.abc import Mapping

from inspection_engine.application.interfaces import DraftSlot
from inspection_engine.domain.entities import (
    DraftSnapshot,
    EntityId,
    EntityKind,
    FieldValue,
    FieldValues,
)

logger = logging.getLogger(__name__)


class DraftContinuityManager:
    """The one producer and one consumer of the draft slot.

    ``stash`` replaces whatever the slot held; ``restore`` consumes it, so
    a second ``restore`` in the same lifetime yields nothing.
    """

    def __init__(self, slot: DraftSlot):
        self._slot = slot

    async def stash(
        self,
        fields: Mapping[str, FieldValue],
        inspection_id: EntityId | None = None,
    ) -> DraftSnapshot:
        snapshot = DraftSnapshot(fields=dict(fields), inspection_id=inspection_id)
        await self._slot.write(snapshot)
        logger.info("Stashed draft with %d field(s)", len(snapshot.fields))
        return snapshot

    async def restore(self) -> DraftSnapshot | None:
        snapshot = await self._slot.take()
        if snapshot is None:
            logger.debug("No draft to restore")
        else:
            logger.info("Restored draft with %d field(s)", len(snapshot.fields))
        return snapshot

    async def discard(self) -> None:
        """Drop a leftover snapshot that no excursion is coming back for."""
        await self._slot.clear()

    @staticmethod
    def merge_returned_entity(
        restored: Mapping[str, FieldValue],
        kind: EntityKind | None,
        name: str | None,
    ) -> FieldValues:
        """Layer the side flow's new entity name over the restored fields."""
        merged: FieldValues = dict(restored)
        if kind is not None and name:
            merged[kind.name_field] = name
        return merged
