"""Unit tests for the EntityStore cache."""

import pytest

from inspection_engine.application.services import EntityStore
from inspection_engine.domain.entities import Broadcaster, EntityKind, Program
from inspection_engine.domain.exceptions import NetworkError


@pytest.mark.asyncio
async def test_ensure_fresh_fetches_once_within_ttl(store, broadcasters, clock):
    await store.ensure_fresh(EntityKind.BROADCASTER)
    clock.now = 299
    await store.ensure_fresh(EntityKind.BROADCASTER)

    assert broadcasters.list_calls == 1


@pytest.mark.asyncio
async def test_stale_cache_is_refetched(store, broadcasters, clock):
    await store.ensure_fresh(EntityKind.BROADCASTER)
    clock.now = 301
    await store.ensure_fresh(EntityKind.BROADCASTER)

    assert broadcasters.list_calls == 2


@pytest.mark.asyncio
async def test_failed_refresh_keeps_serving_old_cache(store, broadcasters, clock):
    await store.ensure_fresh(EntityKind.BROADCASTER)
    broadcasters.list_error = NetworkError("down")
    clock.now = 400

    await store.ensure_fresh(EntityKind.BROADCASTER)

    assert store.find_broadcaster("Radio Kaya") is not None


@pytest.mark.asyncio
async def test_exact_name_lookup_ignores_surrounding_whitespace(store):
    await store.refresh(EntityKind.BROADCASTER)

    assert store.find_broadcaster("  Radio Kaya ").id == 1
    assert store.find_broadcaster("radio kaya") is None
    assert store.find_broadcaster("") is None


@pytest.mark.asyncio
async def test_case_insensitive_matching_can_be_enabled(broadcasters, programs):
    store = EntityStore(broadcasters, programs, case_sensitive=False)
    await store.refresh(EntityKind.BROADCASTER)

    assert store.find_broadcaster("RADIO KAYA").id == 1


@pytest.mark.asyncio
async def test_refresh_keeps_locally_added_records(store, broadcasters):
    await store.refresh(EntityKind.BROADCASTER)
    store.add(Broadcaster(id=55, name="Not Listed Yet"))

    await store.refresh(EntityKind.BROADCASTER)

    assert store.find_broadcaster("Not Listed Yet").id == 55


@pytest.mark.asyncio
async def test_search_matches_name_and_town(store):
    await store.refresh(EntityKind.BROADCASTER)
    store.add(Broadcaster(id=2, name="Zodiak", attributes={"town": "Blantyre"}))

    assert [b.id for b in store.search(EntityKind.BROADCASTER, "kaya")] == [1]
    assert [b.id for b in store.search(EntityKind.BROADCASTER, "BLANT")] == [2]
    assert len(store.search(EntityKind.BROADCASTER, "")) == 2


@pytest.mark.asyncio
async def test_search_matches_program_description(store):
    await store.refresh(EntityKind.PROGRAM)

    assert [p.id for p in store.search(EntityKind.PROGRAM, "breakfast")] == [7]


@pytest.mark.asyncio
async def test_link_and_unlink_update_program(store):
    await store.refresh(EntityKind.BROADCASTER)
    await store.refresh(EntityKind.PROGRAM)
    zodiak = Broadcaster(id=2, name="Zodiak")
    store.add(zodiak)

    store.link(7, zodiak)
    program = store.find_program("Morning Show")
    assert isinstance(program, Program)
    assert program.broadcaster_names == ["Radio Kaya", "Zodiak"]

    store.unlink(7, 2)
    assert program.broadcaster_ids == [1]
    assert program.broadcaster_names == ["Radio Kaya"]
