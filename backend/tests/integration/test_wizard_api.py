"""Integration tests for the wizard endpoints over in-memory fakes."""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from inspection_engine.application.services import InspectionWizard, WizardRegistry
from inspection_engine.infrastructure.dependencies import get_wizard_registry
from inspection_engine.main import app


@pytest.fixture
def registry(pipeline, inspections, store, scheduler, drafts) -> WizardRegistry:
    def factory(wizard_id: str) -> InspectionWizard:
        return InspectionWizard(pipeline, inspections, store, scheduler, drafts, wizard_id=wizard_id)

    return WizardRegistry(factory)


@pytest_asyncio.fixture
async def client(registry):
    app.dependency_overrides[get_wizard_registry] = lambda: registry
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


async def _start(client) -> str:
    response = await client.post("/api/v1/wizards", json={})
    assert response.status_code == 201
    return response.json()["wizard_id"]


@pytest.mark.asyncio
async def test_start_returns_step_one(client, registry):
    response = await client.post("/api/v1/wizards", json={})

    assert response.status_code == 201
    data = response.json()
    assert data["stage"] == "step1"
    assert data["step"] == 1
    assert data["inspection_id"] is None
    assert data["autosave_status"] == "idle"
    assert len(registry) == 1


@pytest.mark.asyncio
async def test_field_edits_show_in_read_model(client):
    wizard_id = await _start(client)

    response = await client.patch(
        f"/api/v1/wizards/{wizard_id}/fields",
        json={"fields": {"broadcaster_name": "Radio Kaya", "other_telecoms_operator": True}},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["dirty"] is True
    assert data["fields"]["town"] == "Lilongwe"
    assert data["fields"]["other_telecoms_operator"] is True


@pytest.mark.asyncio
async def test_rejected_field_edits(client):
    wizard_id = await _start(client)

    derived = await client.patch(
        f"/api/v1/wizards/{wizard_id}/fields", json={"fields": {"effective_radiated_power": "1"}}
    )
    foreign = await client.patch(f"/api/v1/wizards/{wizard_id}/fields", json={"fields": {"tower_type": "Guyed"}})
    empty = await client.patch(f"/api/v1/wizards/{wizard_id}/fields", json={"fields": {}})

    assert derived.status_code == 422
    assert foreign.status_code == 422
    assert empty.status_code == 422


@pytest.mark.asyncio
async def test_advance_saves_and_moves_on(client, inspections):
    wizard_id = await _start(client)
    await client.patch(f"/api/v1/wizards/{wizard_id}/fields", json={"fields": {"program_name": "Morning Show"}})

    response = await client.post(f"/api/v1/wizards/{wizard_id}/advance")

    assert response.status_code == 200
    data = response.json()
    assert data["stage"] == "step2"
    assert data["inspection_id"] == 1
    assert data["autosave_status"] == "saved"
    assert inspections.records[1]["program"] == 7


@pytest.mark.asyncio
async def test_invalid_step_one_stays_put(client, inspections):
    wizard_id = await _start(client)
    await client.patch(f"/api/v1/wizards/{wizard_id}/fields", json={"fields": {"air_status": "off_air"}})

    response = await client.post(f"/api/v1/wizards/{wizard_id}/advance")

    data = response.json()
    assert response.status_code == 200
    assert data["stage"] == "step1"
    assert "off_air_reason" in data["validation_errors"]
    assert inspections.writes == []


@pytest.mark.asyncio
async def test_illegal_transitions_are_conflicts(client):
    wizard_id = await _start(client)

    assert (await client.post(f"/api/v1/wizards/{wizard_id}/retreat")).status_code == 409
    assert (await client.post(f"/api/v1/wizards/{wizard_id}/complete")).status_code == 409
    assert (await client.post(f"/api/v1/wizards/{wizard_id}/side-return", json={})).status_code == 409


@pytest.mark.asyncio
async def test_save_now_persists_immediately(client, inspections):
    wizard_id = await _start(client)
    await client.patch(f"/api/v1/wizards/{wizard_id}/fields", json={"fields": {"station_type": "FM"}})

    response = await client.post(f"/api/v1/wizards/{wizard_id}/save")

    assert response.json()["inspection_id"] == 1
    assert inspections.records[1]["station_type"] == "FM"


@pytest.mark.asyncio
async def test_side_flow_creates_broadcaster_and_returns(client, broadcasters):
    wizard_id = await _start(client)
    await client.patch(f"/api/v1/wizards/{wizard_id}/fields", json={"fields": {"program_name": "Evening News"}})

    exited = await client.post(f"/api/v1/wizards/{wizard_id}/side-exit")
    assert exited.json()["in_side_flow"] is True

    response = await client.post(
        f"/api/v1/wizards/{wizard_id}/side-flow/broadcasters",
        json={"name": "New FM", "attributes": {"town": "Zomba"}},
    )

    assert response.status_code == 201
    data = response.json()
    assert data["entity"]["id"] == 100
    assert data["entity"]["kind"] == "broadcaster"
    assert data["session"]["in_side_flow"] is False
    assert data["session"]["fields"]["program_name"] == "Evening News"
    assert data["session"]["fields"]["broadcaster_name"] == "New FM"
    assert data["session"]["fields"]["town"] == "Zomba"


@pytest.mark.asyncio
async def test_side_flow_removes_program_broadcaster(client, programs):
    wizard_id = await _start(client)
    path = f"/api/v1/wizards/{wizard_id}/side-flow/programs/7/broadcasters/1"

    outside = await client.delete(path)
    assert outside.status_code == 409

    await client.post(f"/api/v1/wizards/{wizard_id}/side-exit")
    response = await client.delete(path)

    assert response.status_code == 200
    data = response.json()
    assert data["id"] == 7
    assert data["broadcaster_names"] == []
    assert programs.link_calls == [("remove", 7, 1)]
    missing = await client.delete(f"/api/v1/wizards/{wizard_id}/side-flow/programs/999/broadcasters/1")
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_reference_search(client):
    wizard_id = await _start(client)

    response = await client.get(f"/api/v1/wizards/{wizard_id}/references/broadcaster", params={"q": "lilong"})

    assert response.status_code == 200
    assert [item["name"] for item in response.json()] == ["Radio Kaya"]


@pytest.mark.asyncio
async def test_unknown_and_discarded_wizards(client):
    assert (await client.get("/api/v1/wizards/missing")).status_code == 404

    wizard_id = await _start(client)
    assert (await client.delete(f"/api/v1/wizards/{wizard_id}")).status_code == 204
    assert (await client.get(f"/api/v1/wizards/{wizard_id}")).status_code == 404
