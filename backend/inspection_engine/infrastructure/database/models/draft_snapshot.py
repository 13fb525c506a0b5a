"""SQLAlchemy ORM model for the draft slot."""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from inspection_engine.infrastructure.database.base import Base


class DraftSnapshotModel(Base):
    """ORM model — maps to the 'draft_snapshots' table.

    Keyed by the slot name, so each slot holds at most one row.
    """

    __tablename__ = "draft_snapshots"

    slot_key: Mapped[str] = mapped_column(String(100), primary_key=True)
    fields: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    # JSON so an integer identity comes back as an integer.
    inspection_id: Mapped[Any] = mapped_column(JSON, nullable=True)
    stashed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<DraftSnapshotModel(slot_key='{self.slot_key}', fields={len(self.fields or {})})>"
