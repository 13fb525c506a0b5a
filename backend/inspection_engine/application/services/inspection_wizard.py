"""Inspection wizard — the four-step state machine around the session controllers.

    step1 → step2 → step3 → step4 → {preview, completed}

Strictly linear forward/backward. Step 1 additionally supports a side
exit to the Broadcaster/Program creation flows, carried through the
draft slot. ``completed`` is terminal.
"""

from collections.abc import Mapping, Sequence
from typing import Any

from inspection_engine.application.interfaces import InspectionRepository, Scheduler
from inspection_engine.application.services.draft_continuity import DraftContinuityManager
from inspection_engine.application.services.entity_store import EntityStore
from inspection_engine.application.services.reference_entity_service import ReferenceEntityService
from inspection_engine.application.services.save_pipeline import SavePipeline, SaveResult
from inspection_engine.application.services.session_controller import (
    SessionController,
    WizardContext,
)
from inspection_engine.domain.entities import (
    TOTAL_STEPS,
    Broadcaster,
    EntityId,
    EntityKind,
    FieldValue,
    Program,
    ReferenceEntity,
    Session,
    WizardStage,
)
from inspection_engine.domain.exceptions import WizardStateError
from inspection_engine.infrastructure.logging.wizard_logger import WizardLogger, WizardLogStage

wlog = WizardLogger("InspectionWizard")

_SIDE_FLOW_STEP = 1


class InspectionWizard:
    def __init__(
        self,
        pipeline: SavePipeline,
        inspections: InspectionRepository,
        store: EntityStore,
        scheduler: Scheduler,
        drafts: DraftContinuityManager,
        *,
        debounce_seconds: float = 10.0,
        advance_timeout_seconds: float = 5.0,
        wizard_id: str | None = None,
    ):
        self.wizard_id = wizard_id
        self._pipeline = pipeline
        self._inspections = inspections
        self._store = store
        self._scheduler = scheduler
        self._drafts = drafts
        self._references = ReferenceEntityService(store)
        self._debounce_seconds = debounce_seconds
        self._advance_timeout = advance_timeout_seconds
        self._context = WizardContext()
        self._controllers: list[SessionController] = []
        self._controller: SessionController | None = None
        self.stage = WizardStage.STEP1
        self.in_side_flow = False

    # ── Read model ───────────────────────────────────────────────────

    @property
    def controller(self) -> SessionController:
        if self._controller is None:
            raise WizardStateError("Wizard has not been started")
        return self._controller

    @property
    def session(self) -> Session:
        return self.controller.session

    @property
    def inspection_id(self) -> EntityId | None:
        return self._context.inspection_id

    # ── Lifecycle ────────────────────────────────────────────────────

    async def start(
        self,
        inspection_id: EntityId | None = None,
        *,
        restore_draft: bool = False,
        new_entity_kind: EntityKind | None = None,
        new_entity_name: str | None = None,
    ) -> Session:
        """Enter step 1, either fresh or coming back from a side flow."""
        if self._controller is not None:
            raise WizardStateError("Wizard already started")
        if restore_draft:
            return await self._return_from_side_flow(inspection_id, new_entity_kind, new_entity_name)

        await self._drafts.discard()
        return await self._enter(1, inspection_id=inspection_id)

    async def _enter(
        self,
        step: int,
        *,
        inspection_id: EntityId | None = None,
        carry: Session | None = None,
    ) -> Session:
        controller = SessionController(
            step,
            self._pipeline,
            self._inspections,
            self._store,
            self._scheduler,
            self._context,
            debounce_seconds=self._debounce_seconds,
            advance_timeout_seconds=self._advance_timeout,
        )
        controller.activate()
        self._controllers.append(controller)
        self._controller = controller
        self.stage = WizardStage.for_step(step)
        wlog.step_start(WizardLogStage.NAVIGATE, f"Entering step {step}", wizard=self.wizard_id)
        return await controller.hydrate(inspection_id, carry=carry)

    def _require_editing(self) -> SessionController:
        if not self.stage.is_editing or self.in_side_flow:
            raise WizardStateError(f"Fields cannot be edited in stage '{self.stage.value}'")
        return self.controller

    # ── Editing ──────────────────────────────────────────────────────

    def set_field(self, name: str, value: FieldValue) -> Session:
        return self._require_editing().on_field_change(name, value)

    def set_fields(self, updates: Mapping[str, FieldValue]) -> Session:
        controller = self._require_editing()
        for name, value in updates.items():
            controller.on_field_change(name, value)
        return controller.session

    async def save(self) -> SaveResult | None:
        return await self._require_editing().save_now()

    # ── Navigation ───────────────────────────────────────────────────

    async def advance(self) -> Session:
        controller = self._require_editing()
        outcome = await controller.advance()
        if not outcome.navigated:
            return outcome.session

        if controller.step < TOTAL_STEPS:
            controller.close()
            return await self._enter(controller.step + 1, carry=outcome.session)

        self.stage = WizardStage.PREVIEW
        wlog.step_complete(WizardLogStage.NAVIGATE, "Step 4 done, showing preview", wizard=self.wizard_id)
        return outcome.session

    async def retreat(self) -> Session:
        if self.stage is WizardStage.PREVIEW:
            self.stage = WizardStage.for_step(TOTAL_STEPS)
            return self.session
        controller = self._require_editing()
        if controller.step == 1:
            raise WizardStateError("Already at the first step")
        session = controller.retreat()
        controller.close()
        return await self._enter(controller.step - 1, carry=session)

    async def complete(self) -> Session:
        """Mark the inspection completed; only a successful save transitions."""
        if self.stage not in (WizardStage.for_step(TOTAL_STEPS), WizardStage.PREVIEW):
            raise WizardStateError(f"Cannot complete from stage '{self.stage.value}'")
        controller = self.controller
        result = await controller.complete()
        if result.ok:
            self.stage = WizardStage.COMPLETED
            controller.close()
            wlog.step_complete(WizardLogStage.COMPLETE, "Wizard completed", inspection_id=self.inspection_id)
        else:
            wlog.step_warning(WizardLogStage.COMPLETE, "Completion failed, staying on the current stage")
        return controller.session

    # ── Side flow ────────────────────────────────────────────────────

    async def side_exit(self) -> Session:
        """Stash step 1 and leave for a Broadcaster/Program creation flow."""
        if self.stage is not WizardStage.for_step(_SIDE_FLOW_STEP) or self.in_side_flow:
            raise WizardStateError("Side flows can only be entered from step 1")
        controller = self.controller
        controller.retreat()  # carries the values and stops the debounce
        controller.close()
        await self._drafts.stash(controller.session.fields, self._context.inspection_id)
        self.in_side_flow = True
        wlog.step_start(WizardLogStage.DRAFT, "Left step 1 for a side flow", wizard=self.wizard_id)
        return controller.session

    async def side_return(
        self,
        new_entity_kind: EntityKind | None = None,
        new_entity_name: str | None = None,
    ) -> Session:
        """Come back to step 1, restoring the stash under the new entity's name."""
        if not self.in_side_flow:
            raise WizardStateError("Wizard is not in a side flow")
        return await self._return_from_side_flow(None, new_entity_kind, new_entity_name)

    async def _return_from_side_flow(
        self,
        inspection_id: EntityId | None,
        kind: EntityKind | None,
        name: str | None,
    ) -> Session:
        snapshot = await self._drafts.restore()
        restored = snapshot.fields if snapshot else {}
        if inspection_id is None and snapshot is not None:
            inspection_id = snapshot.inspection_id

        if kind is not None:
            try:
                await self._store.refresh(kind)
            except Exception as exc:
                wlog.step_warning(WizardLogStage.DRAFT, f"Could not refresh {kind.value} cache: {exc}")

        self.in_side_flow = False
        await self._enter(_SIDE_FLOW_STEP, inspection_id=inspection_id)
        controller = self.controller
        controller.merge_fields(self._drafts.merge_returned_entity(restored, kind, name))
        if kind is not None and name:
            # Re-applied as an edit so the new record's details autofill.
            controller.on_field_change(kind.name_field, name)
        wlog.step_complete(
            WizardLogStage.DRAFT,
            "Returned to step 1",
            restored=len(restored),
            new_entity=name or "-",
        )
        return controller.session

    async def create_broadcaster(self, name: str, attributes: Mapping[str, Any] | None = None) -> Broadcaster:
        """Side flow: create a broadcaster, then return to step 1 with its name."""
        self._require_side_flow()
        broadcaster = await self._references.create_broadcaster(name, attributes)
        await self.side_return(EntityKind.BROADCASTER, broadcaster.name)
        return broadcaster

    async def create_program(
        self,
        name: str,
        description: str = "",
        broadcaster_ids: Sequence[EntityId] = (),
    ) -> Program:
        """Side flow: create a program (optionally linked), then return to step 1."""
        self._require_side_flow()
        program = await self._references.create_program(name, description, broadcaster_ids)
        await self.side_return(EntityKind.PROGRAM, program.name)
        return program

    async def unlink_broadcaster(self, program_id: EntityId, broadcaster_id: EntityId) -> Program:
        """Side flow: remove a broadcaster from a program; the wizard stays in the side flow."""
        self._require_side_flow()
        program = await self._references.unlink(program_id, broadcaster_id)
        wlog.step_complete(
            WizardLogStage.DRAFT,
            "Broadcaster removed from program",
            program=program_id,
            broadcaster=broadcaster_id,
        )
        return program

    def _require_side_flow(self) -> None:
        if not self.in_side_flow:
            raise WizardStateError("Reference records are created from a side flow")

    async def search_references(self, kind: EntityKind, query: str = "") -> list[ReferenceEntity]:
        await self._store.ensure_fresh(kind)
        return self._store.search(kind, query)

    # ── Shutdown ─────────────────────────────────────────────────────

    async def drain(self) -> None:
        """Wait for all detached saves issued by this wizard."""
        for controller in self._controllers:
            await controller.drain()

    def close(self) -> None:
        for controller in self._controllers:
            controller.close()
