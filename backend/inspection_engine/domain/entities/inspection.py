"""Domain entity — the Inspection record built across the four wizard steps."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# Opaque identity assigned by the backing store.
EntityId = int | str

# Scalar field values collected by the wizard (strings and booleans).
FieldValue = str | bool
FieldValues = dict[str, FieldValue]


class InspectionStatus(str, Enum):
    """Lifecycle states of an inspection."""

    DRAFT = "draft"
    COMPLETED = "completed"


@dataclass
class Inspection:
    """An inspection as returned by the backing store.

    ``fields`` holds every non-top-level value the store returned; the
    wizard only ever reads the subset owned by the active step.
    """

    id: EntityId | None = None
    status: InspectionStatus = InspectionStatus.DRAFT
    inspection_date: str | None = None
    completed_at: str | None = None
    fields: dict[str, Any] = field(default_factory=dict)

    @property
    def is_completed(self) -> bool:
        return self.status == InspectionStatus.COMPLETED

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "Inspection":
        """Build an entity from a backing-store JSON body."""
        body = dict(data)
        raw_status = body.pop("status", InspectionStatus.DRAFT.value)
        try:
            status = InspectionStatus(raw_status)
        except ValueError:
            status = InspectionStatus.DRAFT
        return cls(
            id=body.pop("id", None),
            status=status,
            inspection_date=body.pop("inspection_date", None),
            completed_at=body.pop("completed_at", None),
            fields=body,
        )
