"""Domain entities for the reference records an inspection points at."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .inspection import EntityId


class EntityKind(str, Enum):
    """The two kinds of reference entity the wizard can resolve."""

    BROADCASTER = "broadcaster"
    PROGRAM = "program"

    @property
    def name_field(self) -> str:
        """The Step-1 field that holds the typed name for this kind."""
        return f"{self.value}_name"

    @property
    def reference_field(self) -> str:
        """The Step-1 payload key that holds the resolved identity."""
        return self.value


# Step-1 fields copied from a cached broadcaster when it is selected,
# and sent as attributes when a new broadcaster is created.
BROADCASTER_CONTACT_FIELDS: tuple[str, ...] = (
    "po_box",
    "postal_code",
    "town",
    "location",
    "street",
    "phone_numbers",
    "contact_name",
    "contact_address",
    "contact_phone",
    "contact_email",
)


@dataclass
class Broadcaster:
    """A broadcaster known to the backing store; unique by name."""

    id: EntityId
    name: str
    attributes: dict[str, Any] = field(default_factory=dict)

    @property
    def kind(self) -> EntityKind:
        return EntityKind.BROADCASTER

    def contact_details(self) -> dict[str, str]:
        """Contact fields, with missing values as empty strings."""
        return {
            key: str(self.attributes.get(key) or "")
            for key in BROADCASTER_CONTACT_FIELDS
        }

    def search_text(self) -> list[str]:
        return [self.name, str(self.attributes.get("town") or "")]

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "Broadcaster":
        body = dict(data)
        return cls(id=body.pop("id"), name=str(body.pop("name", "")), attributes=body)


@dataclass
class Program:
    """A program; may be linked to zero or more broadcasters."""

    id: EntityId
    name: str
    description: str = ""
    broadcaster_ids: list[EntityId] = field(default_factory=list)
    broadcaster_names: list[str] = field(default_factory=list)

    @property
    def kind(self) -> EntityKind:
        return EntityKind.PROGRAM

    def search_text(self) -> list[str]:
        return [self.name, self.description]

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "Program":
        return cls(
            id=data["id"],
            name=str(data.get("name", "")),
            description=str(data.get("description") or ""),
            broadcaster_ids=list(data.get("broadcasters") or []),
            broadcaster_names=[str(n) for n in data.get("broadcaster_names") or []],
        )


ReferenceEntity = Broadcaster | Program
