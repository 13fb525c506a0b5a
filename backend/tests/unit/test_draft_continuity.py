"""Unit tests for the single-slot draft continuity manager."""

import pytest

from inspection_engine.application.services import DraftContinuityManager
from inspection_engine.domain.entities import EntityKind


@pytest.mark.asyncio
async def test_stash_then_restore_round_trip(drafts):
    await drafts.stash({"program_name": "Morning Show", "other_telecoms_operator": True}, 12)

    snapshot = await drafts.restore()

    assert snapshot.fields == {"program_name": "Morning Show", "other_telecoms_operator": True}
    assert snapshot.inspection_id == 12


@pytest.mark.asyncio
async def test_restore_consumes_the_snapshot(drafts):
    await drafts.stash({"town": "Zomba"})

    assert await drafts.restore() is not None
    assert await drafts.restore() is None


@pytest.mark.asyncio
async def test_stash_replaces_previous_snapshot(drafts, draft_slot):
    await drafts.stash({"town": "Zomba"})
    await drafts.stash({"town": "Mzuzu"})

    snapshot = await drafts.restore()
    assert snapshot.fields == {"town": "Mzuzu"}
    assert draft_slot.writes == 2


@pytest.mark.asyncio
async def test_discard_empties_the_slot(drafts):
    await drafts.stash({"town": "Zomba"})
    await drafts.discard()

    assert await drafts.restore() is None


def test_returned_entity_name_wins_over_restored_value():
    merged = DraftContinuityManager.merge_returned_entity(
        {"broadcaster_name": "Old", "town": "Zomba"},
        EntityKind.BROADCASTER,
        "New FM",
    )

    assert merged == {"broadcaster_name": "New FM", "town": "Zomba"}


def test_merge_without_entity_keeps_restored_values():
    restored = {"program_name": "Morning Show"}

    assert DraftContinuityManager.merge_returned_entity(restored, None, None) == restored
    assert DraftContinuityManager.merge_returned_entity(restored, EntityKind.PROGRAM, "") == restored
