"""Domain entity — the single-slot draft snapshot."""

from dataclasses import dataclass, field
from datetime import datetime, timezone

from .inspection import EntityId, FieldValues


@dataclass
class DraftSnapshot:
    """In-progress Step-1 values carried across a side-flow excursion.

    At most one snapshot exists at a time; writing replaces it and
    reading consumes it.
    """

    fields: FieldValues
    inspection_id: EntityId | None = None
    stashed_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
