"""Domain value objects for the per-step editing session."""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum

from .inspection import EntityId, FieldValue, FieldValues

TOTAL_STEPS = 4


class AutosaveStatus(str, Enum):
    """Auto-save indicator states."""

    IDLE = "idle"
    SAVING = "saving"
    SAVED = "saved"
    ERROR = "error"


class WizardStage(str, Enum):
    """Positions in the wizard state machine.

    Strictly linear: step1 → step2 → step3 → step4 → {preview, completed}.
    """

    STEP1 = "step1"
    STEP2 = "step2"
    STEP3 = "step3"
    STEP4 = "step4"
    PREVIEW = "preview"
    COMPLETED = "completed"

    @classmethod
    def for_step(cls, step: int) -> "WizardStage":
        if not 1 <= step <= TOTAL_STEPS:
            raise ValueError(f"Step must be between 1 and {TOTAL_STEPS}, got {step}")
        return cls(f"step{step}")

    @property
    def step(self) -> int | None:
        """Step number for editing stages, None for preview/completed."""
        if self.value.startswith("step"):
            return int(self.value[4:])
        return None

    @property
    def is_editing(self) -> bool:
        return self.step is not None


@dataclass(frozen=True)
class Advisory:
    """A user-visible, non-blocking message produced by the engine."""

    level: str  # "info" | "warning" | "error"
    message: str
    field: str | None = None


@dataclass(frozen=True)
class Session:
    """Read model for one step of the wizard.

    Immutable: every controller operation returns a new Session built with
    the ``with_*`` / ``mark_*`` helpers, so a stale reference can never be
    mutated from elsewhere.
    """

    step: int
    inspection_id: EntityId | None = None
    fields: FieldValues = field(default_factory=dict)
    derived_inputs: FieldValues = field(default_factory=dict)
    dirty: bool = False
    autosave_status: AutosaveStatus = AutosaveStatus.IDLE
    last_saved_at: datetime | None = None
    validation_errors: dict[str, list[str]] = field(default_factory=dict)
    advisories: tuple[Advisory, ...] = ()
    revision: int = 0

    def with_field(self, name: str, value: FieldValue) -> "Session":
        """Record one user edit: mark dirty and bump the revision."""
        fields = dict(self.fields)
        fields[name] = value
        return replace(self, fields=fields, dirty=True, revision=self.revision + 1)

    def with_edits(self, updates: FieldValues) -> "Session":
        """Record several user edits at once."""
        fields = dict(self.fields)
        fields.update(updates)
        return replace(self, fields=fields, dirty=True, revision=self.revision + 1)

    def with_status_of(self, other: "Session") -> "Session":
        """Take over the save indicator of ``other``, adding its advisories to ours."""
        merged = self.advisories + tuple(a for a in other.advisories if a not in self.advisories)
        return replace(
            self,
            autosave_status=other.autosave_status,
            last_saved_at=other.last_saved_at,
            advisories=merged,
        )

    def with_fields(self, updates: FieldValues, *, dirty: bool | None = None) -> "Session":
        fields = dict(self.fields)
        fields.update(updates)
        return replace(
            self,
            fields=fields,
            dirty=self.dirty if dirty is None else dirty,
        )

    def with_derived_inputs(self, updates: FieldValues) -> "Session":
        inputs = dict(self.derived_inputs)
        inputs.update(updates)
        return replace(self, derived_inputs=inputs)

    def with_identity(self, inspection_id: EntityId | None) -> "Session":
        return replace(self, inspection_id=inspection_id)

    def with_validation_errors(self, errors: dict[str, list[str]]) -> "Session":
        return replace(self, validation_errors=dict(errors))

    def with_advisory(self, advisory: Advisory) -> "Session":
        return replace(self, advisories=self.advisories + (advisory,))

    def clear_advisories(self) -> "Session":
        return replace(self, advisories=())

    def mark_saving(self) -> "Session":
        return replace(self, autosave_status=AutosaveStatus.SAVING)

    def mark_saved(
        self,
        saved_at: datetime,
        inspection_id: EntityId | None,
        *,
        saved_revision: int,
    ) -> "Session":
        """Record a successful save.

        The session stays dirty when edits arrived after the saved revision
        was captured, so the next debounce cycle picks them up.
        """
        return replace(
            self,
            autosave_status=AutosaveStatus.SAVED,
            last_saved_at=saved_at,
            inspection_id=inspection_id if inspection_id is not None else self.inspection_id,
            dirty=self.revision > saved_revision,
            validation_errors={},
        )

    def mark_error(self, field_errors: dict[str, list[str]] | None = None) -> "Session":
        return replace(
            self,
            autosave_status=AutosaveStatus.ERROR,
            validation_errors=dict(field_errors or self.validation_errors),
        )
