"""Unit tests for the in-process WizardRegistry."""

import asyncio

import pytest

from inspection_engine.application.services import InspectionWizard, WizardRegistry
from inspection_engine.domain.exceptions import EntityNotFoundError


@pytest.fixture
def registry(pipeline, inspections, store, scheduler, drafts) -> WizardRegistry:
    def factory(wizard_id: str) -> InspectionWizard:
        return InspectionWizard(pipeline, inspections, store, scheduler, drafts, wizard_id=wizard_id)

    return WizardRegistry(factory)


def test_create_and_get(registry):
    wizard = registry.create()

    assert registry.get(wizard.wizard_id) is wizard
    assert len(registry) == 1


def test_unknown_wizard(registry):
    with pytest.raises(EntityNotFoundError):
        registry.get("nope")
    with pytest.raises(EntityNotFoundError):
        registry.discard("nope")


@pytest.mark.asyncio
async def test_shutdown_waits_for_in_flight_saves(registry, scheduler, inspections):
    inspections.gate = asyncio.Event()
    wizard = registry.create()
    await wizard.start()
    wizard.set_field("program_name", "Morning Show")
    scheduler.advance(10)
    for _ in range(5):
        await asyncio.sleep(0)

    asyncio.get_running_loop().call_later(0.01, inspections.gate.set)
    await registry.shutdown()

    assert len(registry) == 0
    assert 1 in inspections.records
