"""Unit tests for the backing store REST client and HTTP repositories."""

import json

import httpx
import pytest

from inspection_engine.application.services import EntityResolutionService, SavePipeline
from inspection_engine.domain.exceptions import (
    BackingStoreError,
    NetworkError,
    NotFoundError,
    ValidationError,
)
from inspection_engine.infrastructure.backing_store import (
    BackingStoreClient,
    HttpBroadcasterRepository,
    HttpInspectionRepository,
    HttpProgramRepository,
    parse_field_errors,
    unwrap_list,
)


# ── Helpers ──


def _client(handler, token: str = "secret") -> BackingStoreClient:
    """Build a client whose requests are answered by ``handler``."""
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return BackingStoreClient("https://store.test/api/", token=token, http_client=http_client)


def _recorder(status_code: int, **kwargs):
    """Handler that records every request and answers with a fresh response."""
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(status_code, **kwargs)

    return handler, seen


# ── Client ──


@pytest.mark.asyncio
async def test_request_sends_token_and_decodes_json():
    handler, seen = _recorder(200, json={"id": 3})

    body = await _client(handler).request("GET", "/inspections/inspections/3/")

    assert body == {"id": 3}
    assert str(seen[0].url) == "https://store.test/api/inspections/inspections/3/"
    assert seen[0].headers["Authorization"] == "Token secret"


@pytest.mark.asyncio
async def test_no_authorization_header_without_token():
    handler, seen = _recorder(204)

    body = await _client(handler, token="").request("POST", "/x/")

    assert body is None
    assert "Authorization" not in seen[0].headers


@pytest.mark.asyncio
async def test_transport_failure_becomes_network_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(NetworkError):
        await _client(handler).request("GET", "/inspections/inspections/")


@pytest.mark.asyncio
async def test_404_becomes_not_found():
    handler, _ = _recorder(404, json={"detail": "Not found."})

    with pytest.raises(NotFoundError) as exc_info:
        await _client(handler).request("GET", "/i/9/", entity_type="Inspection", entity_id=9)

    assert exc_info.value.entity_id == 9


@pytest.mark.asyncio
async def test_400_becomes_validation_error_with_field_map():
    handler, _ = _recorder(400, json={"contact_email": ["Enter a valid email address."], "detail": "Bad"})

    with pytest.raises(ValidationError) as exc_info:
        await _client(handler).request("POST", "/i/")

    assert exc_info.value.field_errors == {
        "contact_email": ["Enter a valid email address."],
        "non_field_errors": ["Bad"],
    }


@pytest.mark.asyncio
async def test_server_error_becomes_backing_store_error():
    handler, _ = _recorder(500, text="upstream exploded")

    with pytest.raises(BackingStoreError) as exc_info:
        await _client(handler).request("PUT", "/i/1/")

    assert exc_info.value.status_code == 500
    assert not isinstance(exc_info.value, (ValidationError, NetworkError, NotFoundError))


@pytest.mark.asyncio
async def test_non_json_success_body_becomes_backing_store_error():
    handler, _ = _recorder(200, text="<html>proxy</html>")

    with pytest.raises(BackingStoreError) as exc_info:
        await _client(handler).request("PUT", "/inspections/inspections/1/", entity_type="Inspection")

    assert exc_info.value.status_code == 200
    assert "not JSON" in exc_info.value.message


def test_parse_field_errors_shapes():
    assert parse_field_errors(["one", "two"]) == {"non_field_errors": ["one", "two"]}
    assert parse_field_errors("plain") == {"non_field_errors": ["plain"]}
    assert parse_field_errors("") == {}
    assert parse_field_errors({"town": "Required"}) == {"town": ["Required"]}


def test_unwrap_list_envelopes():
    assert unwrap_list([{"id": 1}]) == [{"id": 1}]
    assert unwrap_list({"results": [{"id": 2}]}) == [{"id": 2}]
    assert unwrap_list({"data": [{"id": 3}]}) == [{"id": 3}]
    assert unwrap_list({"detail": "nope"}) == []
    assert unwrap_list([{"id": 1}, {"name": "no id"}, "junk"]) == [{"id": 1}]


# ── Repositories ──


@pytest.mark.asyncio
async def test_inspection_update_uses_put_on_item_path():
    handler, seen = _recorder(200, json={"id": 4, "status": "completed", "tower_type": "Guyed"})
    repo = HttpInspectionRepository(_client(handler))

    record = await repo.update(4, {"tower_type": "Guyed"})

    assert seen[0].method == "PUT"
    assert seen[0].url.path == "/api/inspections/inspections/4/"
    assert json.loads(seen[0].content) == {"tower_type": "Guyed"}
    assert record.is_completed
    assert record.fields == {"tower_type": "Guyed"}


@pytest.mark.asyncio
async def test_inspection_create_posts_to_collection():
    handler, seen = _recorder(201, json={"id": 11, "status": "draft"})
    repo = HttpInspectionRepository(_client(handler))

    record = await repo.create({"status": "draft"})

    assert seen[0].method == "POST"
    assert seen[0].url.path == "/api/inspections/inspections/"
    assert record.id == 11


@pytest.mark.asyncio
async def test_broadcaster_listing_accepts_paginated_body():
    handler, _ = _recorder(200, json={"results": [{"id": 1, "name": "Radio Kaya", "town": "Lilongwe"}]})
    repo = HttpBroadcasterRepository(_client(handler))

    broadcasters = await repo.list_all()

    assert broadcasters[0].name == "Radio Kaya"
    assert broadcasters[0].attributes == {"town": "Lilongwe"}


@pytest.mark.asyncio
async def test_program_link_posts_broadcaster_id():
    handler, seen = _recorder(200, json={"status": "ok"})
    repo = HttpProgramRepository(_client(handler))

    await repo.add_broadcaster(7, 1)
    await repo.remove_broadcaster(7, 1)

    assert [r.url.path for r in seen] == [
        "/api/broadcasters/programs/7/add_broadcaster/",
        "/api/broadcasters/programs/7/remove_broadcaster/",
    ]
    assert json.loads(seen[0].content) == {"broadcaster_id": 1}


@pytest.mark.asyncio
async def test_program_listing_reads_linked_broadcasters():
    handler, _ = _recorder(
        200,
        json=[{"id": 7, "name": "Morning Show", "broadcasters": [1], "broadcaster_names": ["Radio Kaya"]}],
    )
    repo = HttpProgramRepository(_client(handler))

    programs = await repo.list_all()

    assert programs[0].broadcaster_ids == [1]
    assert programs[0].broadcaster_names == ["Radio Kaya"]


@pytest.mark.asyncio
async def test_create_without_a_record_is_a_store_failure():
    handler, _ = _recorder(201)

    with pytest.raises(BackingStoreError):
        await HttpBroadcasterRepository(_client(handler)).create({"name": "New FM"})
    with pytest.raises(BackingStoreError):
        await HttpProgramRepository(_client(handler)).create({"name": "Evening News"})
    with pytest.raises(BackingStoreError):
        await HttpInspectionRepository(_client(handler)).create({"status": "draft"})


@pytest.mark.asyncio
async def test_garbled_store_reply_fails_the_save_instead_of_raising(store):
    handler, _ = _recorder(200, text="<html>proxy</html>")
    pipeline = SavePipeline(HttpInspectionRepository(_client(handler)), EntityResolutionService(store))

    result = await pipeline.save(2, {"tower_type": "Guyed"}, 4)

    assert not result.ok
    assert isinstance(result.error, BackingStoreError)
    assert result.advisories[0].message == "Save failed: Inspection response is not JSON"
