"""InspectionRepository adapter over the backing store's REST API."""

from typing import Any

from inspection_engine.application.interfaces import InspectionRepository
from inspection_engine.domain.entities import EntityId, Inspection
from inspection_engine.infrastructure.backing_store.http_client import (
    BackingStoreClient,
    expect_record,
)


class HttpInspectionRepository(InspectionRepository):
    resource_path = "/inspections/inspections/"

    def __init__(self, client: BackingStoreClient):
        self._client = client

    def _item_path(self, inspection_id: EntityId) -> str:
        return f"{self.resource_path}{inspection_id}/"

    @staticmethod
    def _record(body: Any, inspection_id: EntityId) -> Inspection:
        if not isinstance(body, dict):
            body = {}
        return Inspection.from_payload({**body, "id": body.get("id") or inspection_id})

    async def get(self, inspection_id: EntityId) -> Inspection:
        body = await self._client.request(
            "GET", self._item_path(inspection_id), entity_type="Inspection", entity_id=inspection_id
        )
        return self._record(body, inspection_id)

    async def create(self, payload: dict[str, Any]) -> Inspection:
        body = await self._client.request("POST", self.resource_path, json=payload, entity_type="Inspection")
        return Inspection.from_payload(expect_record(body, "Inspection"))

    async def update(self, inspection_id: EntityId, payload: dict[str, Any]) -> Inspection:
        body = await self._client.request(
            "PUT",
            self._item_path(inspection_id),
            json=payload,
            entity_type="Inspection",
            entity_id=inspection_id,
        )
        return self._record(body, inspection_id)
