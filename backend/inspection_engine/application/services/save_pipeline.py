"""Save pipeline — step-scoped persistence of an inspection.

Every call builds its payload through the FieldPartitioner, so a save
from one step can never reset another step's fields. Backing-store
errors stop here: they come back as a failed ``SaveResult`` carrying
field errors and advisories, never as exceptions.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any

from inspection_engine.application.interfaces import InspectionRepository
from inspection_engine.application.services.entity_resolution_service import (
    EntityResolutionService,
)
from inspection_engine.application.services.field_partitioner import FieldPartitioner
from inspection_engine.domain.entities import (
    Advisory,
    EntityId,
    Inspection,
    InspectionStatus,
)
from inspection_engine.domain.exceptions import (
    BackingStoreError,
    NetworkError,
    NotFoundError,
    ValidationError,
)
from inspection_engine.infrastructure.logging.wizard_logger import WizardLogger, WizardLogStage

wlog = WizardLogger("SavePipeline")

COMPLETION_STEP = 4


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class SaveResult:
    """Outcome of one save or completion call."""

    ok: bool
    inspection_id: EntityId | None = None
    saved_at: datetime | None = None
    record: Inspection | None = None
    field_errors: dict[str, list[str]] = field(default_factory=dict)
    advisories: list[Advisory] = field(default_factory=list)
    error: BackingStoreError | None = None

    @property
    def is_validation_failure(self) -> bool:
        return isinstance(self.error, ValidationError)


class SavePipeline:
    def __init__(
        self,
        inspections: InspectionRepository,
        resolver: EntityResolutionService,
        partitioner: FieldPartitioner | None = None,
        *,
        clock: Callable[[], datetime] = _utcnow,
        today: Callable[[], date] = date.today,
    ):
        self._inspections = inspections
        self._resolver = resolver
        self._partitioner = partitioner or FieldPartitioner()
        self._clock = clock
        self._today = today

    @property
    def partitioner(self) -> FieldPartitioner:
        return self._partitioner

    async def save(
        self,
        step: int,
        fields: Mapping[str, Any],
        inspection_id: EntityId | None,
    ) -> SaveResult:
        """Persist the fields owned by ``step``; creates the record when it has no identity."""
        advisories: list[Advisory] = []
        references = None

        if self._partitioner.schema(step).reference_fields:
            with wlog.timed_step(WizardLogStage.RESOLVE, "Resolving reference names", step=step):
                resolved = await self._resolver.resolve_references(fields)
            advisories.extend(resolved.advisories)
            references = resolved.as_payload()

        payload = self._partitioner.build_payload(
            step,
            fields,
            is_new=inspection_id is None,
            references=references,
            today=self._today(),
        )
        result = await self._persist(inspection_id, payload, step=step)
        result.advisories[:0] = advisories
        return result

    async def complete(
        self,
        fields: Mapping[str, Any],
        inspection_id: EntityId | None,
    ) -> SaveResult:
        """Send the Step-4 fields with ``status = completed``.

        Without an identity the record is created by a regular save
        first; the completion update only runs if that succeeded.
        """
        if inspection_id is None:
            created = await self.save(COMPLETION_STEP, fields, None)
            if not created.ok:
                return created
            inspection_id = created.inspection_id

        payload = self._partitioner.build_payload(COMPLETION_STEP, fields, is_new=False)
        completed_at = self._clock()
        payload["status"] = InspectionStatus.COMPLETED.value
        payload["completed_at"] = completed_at.isoformat()

        result = await self._persist(inspection_id, payload, step=COMPLETION_STEP)
        if result.ok:
            wlog.step_complete(WizardLogStage.COMPLETE, "Inspection completed", inspection_id=inspection_id)
        return result

    async def _persist(
        self,
        inspection_id: EntityId | None,
        payload: dict[str, Any],
        *,
        step: int,
    ) -> SaveResult:
        action = "Creating" if inspection_id is None else "Updating"
        wlog.step_start(
            WizardLogStage.PERSIST,
            f"{action} inspection from step {step}",
            inspection_id=inspection_id,
            keys=len(payload),
        )
        try:
            if inspection_id is None:
                record = await self._inspections.create(payload)
            else:
                record = await self._inspections.update(inspection_id, payload)
        except BackingStoreError as exc:
            wlog.step_error(WizardLogStage.PERSIST, f"Save from step {step} failed", error=exc)
            return self._failure(exc)

        saved_id = record.id if record.id is not None else inspection_id
        wlog.step_complete(WizardLogStage.PERSIST, f"Saved step {step}", inspection_id=saved_id)
        return SaveResult(
            ok=True,
            inspection_id=saved_id,
            saved_at=self._clock(),
            record=record,
        )

    @staticmethod
    def _failure(exc: BackingStoreError) -> SaveResult:
        if isinstance(exc, NetworkError):
            advisory = Advisory(
                level="error",
                message="Network error. Changes will be saved on the next auto-save.",
            )
            return SaveResult(ok=False, error=exc, advisories=[advisory])
        if isinstance(exc, ValidationError):
            advisory = Advisory(level="error", message="Validation error. Check the highlighted fields.")
            return SaveResult(
                ok=False,
                error=exc,
                field_errors=dict(exc.field_errors),
                advisories=[advisory],
            )
        if isinstance(exc, NotFoundError):
            return SaveResult(
                ok=False,
                error=exc,
                advisories=[Advisory(level="error", message="Inspection not found")],
            )
        return SaveResult(
            ok=False,
            error=exc,
            advisories=[Advisory(level="error", message=f"Save failed: {exc.message}")],
        )
