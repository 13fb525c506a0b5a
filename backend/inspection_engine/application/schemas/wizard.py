"""Pydantic DTOs for the wizard HTTP surface."""

from datetime import datetime

from pydantic import BaseModel, Field

from inspection_engine.domain.entities import (
    AutosaveStatus,
    EntityKind,
    Program,
    ReferenceEntity,
    Session,
    WizardStage,
)

Identity = int | str


class StartWizardRequest(BaseModel):
    """Start a wizard — fresh, for an existing inspection, or back from a side flow."""

    inspection_id: Identity | None = None
    restore_draft: bool = False
    new_entity_kind: EntityKind | None = None
    new_entity_name: str | None = None


class FieldChangeRequest(BaseModel):
    """One or more field edits, applied in order."""

    fields: dict[str, str | bool] = Field(..., min_length=1, examples=[{"program_name": "Morning Show"}])


class SideReturnRequest(BaseModel):
    new_entity_kind: EntityKind | None = None
    new_entity_name: str | None = None


class CreateBroadcasterRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    attributes: dict[str, str] = Field(default_factory=dict)


class CreateProgramRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str = ""
    broadcaster_ids: list[Identity] = Field(default_factory=list)


class AdvisorySchema(BaseModel):
    level: str
    message: str
    field: str | None = None


class SessionResponse(BaseModel):
    """Read model of the wizard's current step."""

    wizard_id: str
    stage: WizardStage
    step: int
    inspection_id: Identity | None
    fields: dict[str, str | bool]
    derived_inputs: dict[str, str | bool]
    dirty: bool
    autosave_status: AutosaveStatus
    last_saved_at: datetime | None
    validation_errors: dict[str, list[str]]
    advisories: list[AdvisorySchema]
    in_side_flow: bool = False

    @classmethod
    def build(
        cls,
        wizard_id: str,
        stage: WizardStage,
        session: Session,
        inspection_id: Identity | None,
        in_side_flow: bool = False,
    ) -> "SessionResponse":
        return cls(
            wizard_id=wizard_id,
            stage=stage,
            step=session.step,
            inspection_id=session.inspection_id if session.inspection_id is not None else inspection_id,
            fields=session.fields,
            derived_inputs=session.derived_inputs,
            dirty=session.dirty,
            autosave_status=session.autosave_status,
            last_saved_at=session.last_saved_at,
            validation_errors=session.validation_errors,
            advisories=[
                AdvisorySchema(level=a.level, message=a.message, field=a.field)
                for a in session.advisories
            ],
            in_side_flow=in_side_flow,
        )


class ReferenceEntityResponse(BaseModel):
    id: Identity
    kind: EntityKind
    name: str
    description: str | None = None
    town: str | None = None
    broadcaster_names: list[str] = Field(default_factory=list)

    @classmethod
    def from_entity(cls, entity: ReferenceEntity) -> "ReferenceEntityResponse":
        if isinstance(entity, Program):
            return cls(
                id=entity.id,
                kind=entity.kind,
                name=entity.name,
                description=entity.description,
                broadcaster_names=list(entity.broadcaster_names),
            )
        return cls(
            id=entity.id,
            kind=entity.kind,
            name=entity.name,
            town=str(entity.attributes.get("town") or "") or None,
        )


class SideFlowResponse(BaseModel):
    """The record a side flow created, and step 1 as it looks after returning."""

    entity: ReferenceEntityResponse
    session: SessionResponse
