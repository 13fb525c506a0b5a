"""Shared in-memory fakes for the application ports."""

import asyncio
from collections.abc import Callable
from typing import Any

import pytest

from inspection_engine.application.interfaces import (
    BroadcasterRepository,
    DraftSlot,
    InspectionRepository,
    ProgramRepository,
    Scheduler,
    TimerHandle,
)
from inspection_engine.application.services import (
    DraftContinuityManager,
    EntityResolutionService,
    EntityStore,
    FieldPartitioner,
    InspectionWizard,
    SavePipeline,
    SessionController,
    WizardContext,
)
from inspection_engine.domain.entities import (
    Broadcaster,
    DraftSnapshot,
    EntityId,
    Inspection,
    Program,
)
from inspection_engine.domain.exceptions import NotFoundError


# ── Fakes ──


class FakeInspectionRepository(InspectionRepository):
    """In-memory backing store for inspections.

    ``errors`` is a queue of exceptions raised by the next calls;
    ``gate`` (when set) holds every write until it is opened.
    """

    def __init__(self):
        self.records: dict[int, dict[str, Any]] = {}
        self.calls: list[tuple[str, EntityId | None, dict[str, Any]]] = []
        self.errors: list[Exception] = []
        self.gate: asyncio.Event | None = None
        self._next_id = 1

    def _maybe_fail(self) -> None:
        if self.errors:
            raise self.errors.pop(0)

    async def get(self, inspection_id: EntityId) -> Inspection:
        self.calls.append(("get", inspection_id, {}))
        self._maybe_fail()
        if inspection_id not in self.records:
            raise NotFoundError("Inspection", inspection_id)
        return Inspection.from_payload({"id": inspection_id, **self.records[inspection_id]})

    async def create(self, payload: dict[str, Any]) -> Inspection:
        self.calls.append(("create", None, dict(payload)))
        if self.gate is not None:
            await self.gate.wait()
        self._maybe_fail()
        inspection_id = self._next_id
        self._next_id += 1
        self.records[inspection_id] = dict(payload)
        return Inspection.from_payload({"id": inspection_id, **payload})

    async def update(self, inspection_id: EntityId, payload: dict[str, Any]) -> Inspection:
        self.calls.append(("update", inspection_id, dict(payload)))
        if self.gate is not None:
            await self.gate.wait()
        self._maybe_fail()
        self.records.setdefault(inspection_id, {}).update(payload)
        return Inspection.from_payload({"id": inspection_id, **self.records[inspection_id]})

    @property
    def writes(self) -> list[tuple[str, EntityId | None, dict[str, Any]]]:
        return [call for call in self.calls if call[0] != "get"]


class FakeBroadcasterRepository(BroadcasterRepository):
    def __init__(self, broadcasters: list[Broadcaster] | None = None):
        self.broadcasters = list(broadcasters or [])
        self.created: list[dict[str, Any]] = []
        self.list_calls = 0
        self.create_error: Exception | None = None
        self.list_error: Exception | None = None
        self._next_id = 100

    async def list_all(self) -> list[Broadcaster]:
        self.list_calls += 1
        if self.list_error is not None:
            raise self.list_error
        return list(self.broadcasters)

    async def create(self, attributes: dict[str, Any]) -> Broadcaster:
        self.created.append(dict(attributes))
        if self.create_error is not None:
            raise self.create_error
        body = dict(attributes)
        broadcaster = Broadcaster(id=self._next_id, name=body.pop("name"), attributes=body)
        self._next_id += 1
        self.broadcasters.append(broadcaster)
        return broadcaster


class FakeProgramRepository(ProgramRepository):
    def __init__(self, programs: list[Program] | None = None):
        self.programs = list(programs or [])
        self.created: list[dict[str, Any]] = []
        self.links: set[tuple[EntityId, EntityId]] = set()
        self.link_calls: list[tuple[str, EntityId, EntityId]] = []
        self.list_calls = 0
        self.create_error: Exception | None = None
        self.link_error: Exception | None = None
        self._next_id = 500

    async def list_all(self) -> list[Program]:
        self.list_calls += 1
        return list(self.programs)

    async def create(self, attributes: dict[str, Any]) -> Program:
        self.created.append(dict(attributes))
        if self.create_error is not None:
            raise self.create_error
        program = Program(
            id=self._next_id,
            name=attributes["name"],
            description=attributes.get("description", ""),
        )
        self._next_id += 1
        self.programs.append(program)
        return program

    async def add_broadcaster(self, program_id: EntityId, broadcaster_id: EntityId) -> None:
        self.link_calls.append(("add", program_id, broadcaster_id))
        if self.link_error is not None:
            raise self.link_error
        self.links.add((program_id, broadcaster_id))

    async def remove_broadcaster(self, program_id: EntityId, broadcaster_id: EntityId) -> None:
        self.link_calls.append(("remove", program_id, broadcaster_id))
        self.links.discard((program_id, broadcaster_id))


class FakeDraftSlot(DraftSlot):
    def __init__(self):
        self.snapshot: DraftSnapshot | None = None
        self.writes = 0

    async def write(self, snapshot: DraftSnapshot) -> None:
        self.writes += 1
        self.snapshot = snapshot

    async def take(self) -> DraftSnapshot | None:
        snapshot, self.snapshot = self.snapshot, None
        return snapshot

    async def clear(self) -> None:
        self.snapshot = None


class _VirtualHandle(TimerHandle):
    def __init__(self, due: float, callback: Callable[[], None]):
        self.due = due
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class VirtualScheduler(Scheduler):
    """Scheduler on a virtual clock: nothing fires until ``advance()``."""

    def __init__(self):
        self.now = 0.0
        self._handles: list[_VirtualHandle] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        handle = _VirtualHandle(self.now + delay, callback)
        self._handles.append(handle)
        return handle

    @property
    def pending(self) -> int:
        return sum(1 for h in self._handles if not h.cancelled)

    def advance(self, seconds: float) -> int:
        """Move the clock forward and run every callback that became due."""
        self.now += seconds
        fired = 0
        for handle in sorted(self._handles, key=lambda h: h.due):
            if not handle.cancelled and handle.due <= self.now:
                handle.cancelled = True
                handle.callback()
                fired += 1
        self._handles = [h for h in self._handles if not h.cancelled]
        return fired


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


# ── Fixtures ──


@pytest.fixture
def inspections() -> FakeInspectionRepository:
    return FakeInspectionRepository()


@pytest.fixture
def broadcasters() -> FakeBroadcasterRepository:
    return FakeBroadcasterRepository(
        [
            Broadcaster(
                id=1,
                name="Radio Kaya",
                attributes={"town": "Lilongwe", "contact_email": "info@kaya.fm", "po_box": "P.O. Box 12"},
            ),
        ]
    )


@pytest.fixture
def programs() -> FakeProgramRepository:
    return FakeProgramRepository(
        [
            Program(
                id=7,
                name="Morning Show",
                description="Breakfast programme",
                broadcaster_ids=[1],
                broadcaster_names=["Radio Kaya"],
            ),
        ]
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(broadcasters, programs, clock) -> EntityStore:
    return EntityStore(broadcasters, programs, ttl_seconds=300, clock=clock)


@pytest.fixture
def scheduler() -> VirtualScheduler:
    return VirtualScheduler()


@pytest.fixture
def draft_slot() -> FakeDraftSlot:
    return FakeDraftSlot()


@pytest.fixture
def drafts(draft_slot) -> DraftContinuityManager:
    return DraftContinuityManager(draft_slot)


@pytest.fixture
def pipeline(inspections, store) -> SavePipeline:
    return SavePipeline(inspections, EntityResolutionService(store), FieldPartitioner())


@pytest.fixture
def make_controller(pipeline, inspections, store, scheduler):
    """Build an active controller for one step, optionally sharing a context."""

    def _make(step: int, context: WizardContext | None = None, **kwargs) -> SessionController:
        controller = SessionController(
            step,
            pipeline,
            inspections,
            store,
            scheduler,
            context or WizardContext(),
            debounce_seconds=kwargs.pop("debounce_seconds", 10.0),
            advance_timeout_seconds=kwargs.pop("advance_timeout_seconds", 5.0),
        )
        controller.activate()
        return controller

    return _make


@pytest.fixture
def wizard(pipeline, inspections, store, scheduler, drafts) -> InspectionWizard:
    return InspectionWizard(
        pipeline,
        inspections,
        store,
        scheduler,
        drafts,
        debounce_seconds=10.0,
        advance_timeout_seconds=5.0,
        wizard_id="w-test",
    )
