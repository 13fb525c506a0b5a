from .inspection import (
    EntityId,
    FieldValue,
    FieldValues,
    Inspection,
    InspectionStatus,
)
from .reference_entity import (
    BROADCASTER_CONTACT_FIELDS,
    Broadcaster,
    EntityKind,
    Program,
    ReferenceEntity,
)
from .session import (
    TOTAL_STEPS,
    Advisory,
    AutosaveStatus,
    Session,
    WizardStage,
)
from .draft import DraftSnapshot

__all__ = [
    "EntityId",
    "FieldValue",
    "FieldValues",
    "Inspection",
    "InspectionStatus",
    "BROADCASTER_CONTACT_FIELDS",
    "Broadcaster",
    "EntityKind",
    "Program",
    "ReferenceEntity",
    "TOTAL_STEPS",
    "Advisory",
    "AutosaveStatus",
    "Session",
    "WizardStage",
    "DraftSnapshot",
]
