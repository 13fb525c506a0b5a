"""Concrete DraftSlot implementation backed by SQLAlchemy."""

from datetime import timezone

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from inspection_engine.application.interfaces import DraftSlot
from inspection_engine.domain.entities import DraftSnapshot
from inspection_engine.infrastructure.database.models import DraftSnapshotModel


class SQLAlchemyDraftSlot(DraftSlot):
    """Implements the DraftSlot port as one row keyed by the slot name.

    Each operation runs in its own short transaction, so the snapshot
    survives a process restart between stash and restore.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], slot_key: str):
        self._session_factory = session_factory
        self._slot_key = slot_key

    def _to_entity(self, model: DraftSnapshotModel) -> DraftSnapshot:
        """Map ORM model → domain entity."""
        stashed_at = model.stashed_at
        if stashed_at.tzinfo is None:
            stashed_at = stashed_at.replace(tzinfo=timezone.utc)
        return DraftSnapshot(
            fields=dict(model.fields or {}),
            inspection_id=model.inspection_id,
            stashed_at=stashed_at,
        )

    def _to_model(self, entity: DraftSnapshot) -> DraftSnapshotModel:
        """Map domain entity → ORM model."""
        return DraftSnapshotModel(
            slot_key=self._slot_key,
            fields=dict(entity.fields),
            inspection_id=entity.inspection_id,
            stashed_at=entity.stashed_at,
        )

    async def write(self, snapshot: DraftSnapshot) -> None:
        async with self._session_factory() as session:
            await session.merge(self._to_model(snapshot))
            await session.commit()

    async def take(self) -> DraftSnapshot | None:
        async with self._session_factory() as session:
            model = await session.get(DraftSnapshotModel, self._slot_key)
            if model is None:
                return None
            snapshot = self._to_entity(model)
            await session.delete(model)
            await session.commit()
            return snapshot

    async def clear(self) -> None:
        async with self._session_factory() as session:
            model = await session.get(DraftSnapshotModel, self._slot_key)
            if model is not None:
                await session.delete(model)
                await session.commit()
