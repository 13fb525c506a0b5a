"""Session Controller — editing, debounced auto-save and navigation for one step.

One controller exists per visited step. All controllers of a wizard share
a ``WizardContext`` (inspection identity, carried-forward values, save
lock). Saves run as detached tasks; a completion only touches the
session if its controller is still the active one.
"""

import asyncio
from collections.abc import Coroutine
from dataclasses import dataclass, field
from typing import Any

from inspection_engine.application.interfaces import InspectionRepository, Scheduler
from inspection_engine.application.services.debounce_timer import DebounceTimer
from inspection_engine.application.services.entity_store import EntityStore
from inspection_engine.application.services.save_pipeline import SavePipeline, SaveResult
from inspection_engine.domain.entities import (
    Advisory,
    EntityId,
    EntityKind,
    FieldValue,
    FieldValues,
    Session,
)
from inspection_engine.domain.erp import DERIVED_FIELDS, ERP_INPUT_FIELDS, erp_field_values
from inspection_engine.domain.exceptions import BackingStoreError, NotFoundError, ReadOnlyFieldError
from inspection_engine.infrastructure.logging.wizard_logger import WizardLogger, WizardLogStage

wlog = WizardLogger("SessionController")

_AUTOFILL_STEP = 1


@dataclass
class WizardContext:
    """State shared by every step controller of one wizard."""

    inspection_id: EntityId | None = None
    carried: FieldValues = field(default_factory=dict)
    save_lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    active: "SessionController | None" = None


@dataclass
class NavigationOutcome:
    """Result of ``advance()``: whether the wizard may leave the step."""

    navigated: bool
    session: Session
    save_result: SaveResult | None = None


class SessionController:
    def __init__(
        self,
        step: int,
        pipeline: SavePipeline,
        inspections: InspectionRepository,
        store: EntityStore,
        scheduler: Scheduler,
        context: WizardContext | None = None,
        *,
        debounce_seconds: float = 10.0,
        advance_timeout_seconds: float = 5.0,
    ):
        self._partitioner = pipeline.partitioner
        self._partitioner.schema(step)  # rejects unknown steps
        self._step = step
        self._pipeline = pipeline
        self._inspections = inspections
        self._store = store
        self._context = context or WizardContext()
        self._advance_timeout = advance_timeout_seconds
        self._timer = DebounceTimer(scheduler, debounce_seconds, self._on_debounce_expired)
        self._tasks: set[asyncio.Task] = set()
        self._load_failed = False
        self._session = Session(step=step, inspection_id=self._context.inspection_id)

    # ── Read model ───────────────────────────────────────────────────

    @property
    def step(self) -> int:
        return self._step

    @property
    def session(self) -> Session:
        return self._session

    @property
    def context(self) -> WizardContext:
        return self._context

    @property
    def is_active(self) -> bool:
        return self._context.active is self

    @property
    def save_pending(self) -> bool:
        return self._timer.pending

    def activate(self) -> None:
        self._context.active = self

    # ── Hydrate ──────────────────────────────────────────────────────

    async def hydrate(self, inspection_id: EntityId | None = None, carry: Session | None = None) -> Session:
        """Populate the step from the stored record and the carried values.

        Unsaved carried values win over the stored record. ``carry`` passes
        the previous step's save status forward so the indicator survives
        navigation.
        """
        if inspection_id is not None:
            self._context.inspection_id = inspection_id
        inspection_id = self._context.inspection_id

        fields: FieldValues = {}
        derived_inputs: FieldValues = {}
        advisories: tuple[Advisory, ...] = carry.advisories if carry else ()

        if inspection_id is not None:
            wlog.step_start(WizardLogStage.HYDRATE, f"Loading step {self._step}", inspection_id=inspection_id)
            try:
                record = await self._inspections.get(inspection_id)
            except BackingStoreError as exc:
                wlog.step_error(WizardLogStage.HYDRATE, "Could not load inspection", error=exc)
                self._load_failed = True
                message = "Inspection not found" if isinstance(exc, NotFoundError) else exc.message
                advisories = advisories + (Advisory(level="error", message=message),)
            else:
                self._load_failed = False
                fields.update(self._partitioner.step_view(self._step, record.fields))
                derived_inputs.update(self._partitioner.read_only_inputs(self._step, record.fields))

        fields.update(self._partitioner.step_view(self._step, self._context.carried))
        derived_inputs.update(self._partitioner.read_only_inputs(self._step, self._context.carried))

        if self._step == _AUTOFILL_STEP:
            for kind in EntityKind:
                await self._store.ensure_fresh(kind)

        fields.update(self._derived_values(fields, derived_inputs))

        self._session = Session(
            step=self._step,
            inspection_id=inspection_id,
            fields=fields,
            derived_inputs=derived_inputs,
            autosave_status=carry.autosave_status if carry else self._session.autosave_status,
            last_saved_at=carry.last_saved_at if carry else None,
            advisories=advisories,
        )
        wlog.detail(f"Step {self._step} hydrated", fields=len(fields))
        return self._session

    def merge_fields(self, values: dict[str, FieldValue]) -> Session:
        """Lay externally supplied values (e.g. a restored draft) over the step as edits."""
        owned = self._partitioner.step_view(self._step, values)
        owned = {k: v for k, v in owned.items() if k not in DERIVED_FIELDS}
        if not owned:
            return self._session
        self._session = self._session.with_edits(owned)
        self._timer.arm()
        return self._session

    # ── Editing ──────────────────────────────────────────────────────

    def on_field_change(self, name: str, value: FieldValue) -> Session:
        """Record an edit and (re)arm the debounce timer."""
        if name in DERIVED_FIELDS:
            raise ReadOnlyFieldError(name)
        owner = self._partitioner.owner_of(name)
        if owner != self._step:
            raise ValueError(f"Field '{name}' does not belong to step {self._step}")

        session = self._session.with_field(name, value)
        if name in session.validation_errors:
            errors = dict(session.validation_errors)
            errors.pop(name)
            session = session.with_validation_errors(errors)

        if self._step == _AUTOFILL_STEP:
            session = self._autofill(session, name, value)
        if name in ERP_INPUT_FIELDS:
            session = session.with_fields(self._derived_values(session.fields, session.derived_inputs))

        self._session = session
        wlog.detail(f"Field changed on step {self._step}", field=name, revision=session.revision)
        self._timer.arm()
        return self._session

    def _autofill(self, session: Session, name: str, value: FieldValue) -> Session:
        if name == EntityKind.BROADCASTER.name_field:
            broadcaster = self._store.find_broadcaster(str(value))
            if broadcaster is not None:
                session = session.with_fields(broadcaster.contact_details())
        elif name == EntityKind.PROGRAM.name_field:
            program = self._store.find_program(str(value))
            if (
                program is not None
                and program.broadcaster_names
                and not session.fields.get(EntityKind.BROADCASTER.name_field)
            ):
                suggested = program.broadcaster_names[0]
                session = session.with_fields({EntityKind.BROADCASTER.name_field: suggested})
                broadcaster = self._store.find_broadcaster(suggested)
                if broadcaster is not None:
                    session = session.with_fields(broadcaster.contact_details())
        return session

    def _derived_values(self, fields: FieldValues, derived_inputs: FieldValues) -> FieldValues:
        if not DERIVED_FIELDS & self._partitioner.payload_keys(self._step):
            return {}
        values = erp_field_values({**derived_inputs, **fields})
        wlog.detail("ERP recomputed", **values)
        return values

    # ── Saving ───────────────────────────────────────────────────────

    def _on_debounce_expired(self) -> None:
        self._spawn(self.auto_save_tick())

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._reap)
        return task

    def _reap(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            wlog.step_error(WizardLogStage.ERROR, f"Save task on step {self._step} crashed", error=task.exception())

    async def auto_save_tick(self) -> SaveResult | None:
        """Debounce callback: save when dirty and something meaningful was entered."""
        if not self.is_active:
            return None
        if not self._session.dirty:
            return None
        if not self._partitioner.has_meaningful_values(self._step, self._session.fields):
            wlog.detail(f"Auto-save skipped on step {self._step}: no meaningful values")
            return None
        wlog.step_start(WizardLogStage.AUTOSAVE, f"Debounce expired on step {self._step}")
        return await self._run_save()

    async def save_now(self) -> SaveResult | None:
        """Explicit save; a brand-new record is still only created from meaningful values."""
        self._timer.cancel()
        if self._context.inspection_id is None and not self._partitioner.has_meaningful_values(
            self._step, self._session.fields
        ):
            return None
        return await self._run_save()

    async def _run_save(self) -> SaveResult:
        async with self._context.save_lock:
            inspection_id = self._context.inspection_id
            withheld = await self._withhold_unloaded()
            if withheld is not None:
                return withheld
            fields = dict(self._session.fields)
            revision = self._session.revision
            if self.is_active:
                self._session = self._session.mark_saving()
            result = await self._pipeline.save(self._step, fields, inspection_id)
            self._apply(result, revision)
        return result

    async def _withhold_unloaded(self) -> SaveResult | None:
        """Refuse an update from a step whose record never loaded, unless a reload now works.

        Such an update would blank every stored value of the step.
        """
        if not self._load_failed or self._context.inspection_id is None:
            return None
        error = await self._reload()
        if error is None:
            return None
        result = SaveResult(
            ok=False,
            error=error,
            advisories=[
                Advisory(
                    level="error",
                    message="Inspection could not be loaded. Saving is paused until it loads.",
                )
            ],
        )
        self._apply(result, self._session.revision)
        return result

    async def _reload(self) -> BackingStoreError | None:
        """Retry the failed load; stored values fill the fields the user left empty."""
        inspection_id = self._context.inspection_id
        try:
            record = await self._inspections.get(inspection_id)
        except BackingStoreError as exc:
            wlog.step_error(WizardLogStage.HYDRATE, "Inspection still unavailable, save withheld", error=exc)
            return exc

        self._load_failed = False
        stored = self._partitioner.step_view(self._step, record.fields)
        session = self._session.with_fields(
            {k: v for k, v in stored.items() if k not in DERIVED_FIELDS and not self._session.fields.get(k)}
        )
        session = session.with_derived_inputs(
            {
                k: v
                for k, v in self._partitioner.read_only_inputs(self._step, record.fields).items()
                if not session.derived_inputs.get(k)
            }
        )
        self._session = session.with_fields(self._derived_values(session.fields, session.derived_inputs))
        wlog.step_complete(WizardLogStage.HYDRATE, f"Step {self._step} reloaded", inspection_id=inspection_id)
        return None

    async def complete(self) -> SaveResult:
        """Send the completion update for this step's values."""
        self._timer.cancel()
        async with self._context.save_lock:
            withheld = await self._withhold_unloaded()
            if withheld is not None:
                return withheld
            revision = self._session.revision
            self._session = self._session.mark_saving()
            result = await self._pipeline.complete(dict(self._session.fields), self._context.inspection_id)
            self._apply(result, revision)
        return result

    def _apply(self, result: SaveResult, revision: int) -> None:
        if result.ok and result.inspection_id is not None and self._context.inspection_id is None:
            self._context.inspection_id = result.inspection_id

        if not self.is_active:
            # The step was left while the save was in flight: only the
            # wizard-wide indicator of the current step reflects it.
            active = self._context.active
            if active is not None and active._owns(result):
                late = self._outcome(active._session, result, revision=None)
                for name, messages in result.field_errors.items():
                    for message in messages:
                        late = late.with_advisory(
                            Advisory(level="error", message=f"Step {self._step}: {message}", field=name)
                        )
                updated = active._session.with_status_of(late)
                if updated.inspection_id is None:
                    updated = updated.with_identity(self._context.inspection_id)
                active._session = updated
            wlog.detail(f"Late save result for step {self._step}", ok=result.ok)
            return
        if not self._owns(result):
            wlog.step_warning(WizardLogStage.PERSIST, "Save result for another inspection ignored")
            return
        self._session = self._outcome(self._session, result, revision=revision)

    def _owns(self, result: SaveResult) -> bool:
        return (
            result.inspection_id is None
            or self._session.inspection_id is None
            or result.inspection_id == self._session.inspection_id
        )

    @staticmethod
    def _outcome(session: Session, result: SaveResult, *, revision: int | None) -> Session:
        session = session.clear_advisories()
        if result.ok:
            saved_revision = session.revision if revision is None else revision
            session = session.mark_saved(result.saved_at, result.inspection_id, saved_revision=saved_revision)
        else:
            session = session.mark_error(result.field_errors)
        for advisory in result.advisories:
            session = session.with_advisory(advisory)
        return session

    # ── Navigation ───────────────────────────────────────────────────

    async def advance(self) -> NavigationOutcome:
        """Save, then report whether the wizard may move on.

        Navigation waits for the save at most ``advance_timeout_seconds``;
        only a failed synchronous validation (or a store validation error
        on a blocking step) keeps the user here.
        """
        self._timer.cancel()
        blocking = self._partitioner.blocks_on_validation(self._step)

        if blocking:
            errors = self._partitioner.validate(self._step, self._session.fields)
            if errors:
                self._session = self._session.with_validation_errors(errors)
                wlog.step_warning(WizardLogStage.NAVIGATE, f"Step {self._step} has invalid fields", fields=list(errors))
                return NavigationOutcome(navigated=False, session=self._session)

        if not self._partitioner.has_meaningful_values(self._step, self._session.fields):
            wlog.detail(f"Nothing entered on step {self._step}, leaving without a save")
            self._carry_forward()
            return NavigationOutcome(navigated=True, session=self._session)

        task = self._spawn(self._run_save())
        done, _ = await asyncio.wait({task}, timeout=self._advance_timeout)
        result = task.result() if task in done else None

        if result is not None and blocking and result.is_validation_failure:
            wlog.step_warning(WizardLogStage.NAVIGATE, f"Store rejected step {self._step}")
            return NavigationOutcome(navigated=False, session=self._session, save_result=result)

        if result is None:
            wlog.step_warning(WizardLogStage.NAVIGATE, f"Leaving step {self._step} with save in flight")
        self._carry_forward()
        return NavigationOutcome(navigated=True, session=self._session, save_result=result)

    def retreat(self) -> Session:
        """Carry the current values back without a network save."""
        self._timer.cancel()
        self._carry_forward()
        return self._session

    def _carry_forward(self) -> None:
        self._context.carried.update(self._session.fields)

    async def drain(self) -> None:
        """Wait for every detached save of this controller to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    def close(self) -> None:
        self._timer.cancel()
        if self._context.active is self:
            self._context.active = None
