"""Broadcaster and Program repository adapters over the backing store's REST API."""

from typing import Any

from inspection_engine.application.interfaces import BroadcasterRepository, ProgramRepository
from inspection_engine.domain.entities import Broadcaster, EntityId, Program
from inspection_engine.infrastructure.backing_store.http_client import (
    BackingStoreClient,
    expect_record,
    unwrap_list,
)


class HttpBroadcasterRepository(BroadcasterRepository):
    resource_path = "/broadcasters/broadcasters/"

    def __init__(self, client: BackingStoreClient):
        self._client = client

    async def list_all(self) -> list[Broadcaster]:
        body = await self._client.request("GET", self.resource_path, entity_type="Broadcaster")
        return [Broadcaster.from_payload(item) for item in unwrap_list(body)]

    async def create(self, attributes: dict[str, Any]) -> Broadcaster:
        body = await self._client.request("POST", self.resource_path, json=attributes, entity_type="Broadcaster")
        return Broadcaster.from_payload(expect_record(body, "Broadcaster"))


class HttpProgramRepository(ProgramRepository):
    resource_path = "/broadcasters/programs/"

    def __init__(self, client: BackingStoreClient):
        self._client = client

    async def list_all(self) -> list[Program]:
        body = await self._client.request("GET", self.resource_path, entity_type="Program")
        return [Program.from_payload(item) for item in unwrap_list(body)]

    async def create(self, attributes: dict[str, Any]) -> Program:
        body = await self._client.request("POST", self.resource_path, json=attributes, entity_type="Program")
        return Program.from_payload(expect_record(body, "Program"))

    async def add_broadcaster(self, program_id: EntityId, broadcaster_id: EntityId) -> None:
        await self._link("add_broadcaster", program_id, broadcaster_id)

    async def remove_broadcaster(self, program_id: EntityId, broadcaster_id: EntityId) -> None:
        await self._link("remove_broadcaster", program_id, broadcaster_id)

    async def _link(self, action: str, program_id: EntityId, broadcaster_id: EntityId) -> None:
        await self._client.request(
            "POST",
            f"{self.resource_path}{program_id}/{action}/",
            json={"broadcaster_id": broadcaster_id},
            entity_type="Program",
            entity_id=program_id,
        )
