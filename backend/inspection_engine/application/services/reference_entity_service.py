"""Side-flow creation of Broadcaster and Program records, and program links."""

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from inspection_engine.application.services.entity_store import EntityStore
from inspection_engine.domain.entities import (
    Broadcaster,
    EntityId,
    EntityKind,
    Program,
)
from inspection_engine.domain.exceptions import EntityNotFoundError

logger = logging.getLogger(__name__)


class ReferenceEntityService:
    """Creates reference records outside the wizard's own save cycle.

    Store errors propagate: the side flow is an explicit user action and
    reports its own failures.
    """

    def __init__(self, store: EntityStore):
        self._store = store

    async def create_broadcaster(self, name: str, attributes: Mapping[str, Any] | None = None) -> Broadcaster:
        name = name.strip()
        existing = await self._existing(EntityKind.BROADCASTER, name)
        if isinstance(existing, Broadcaster):
            return existing
        broadcaster = await self._store.broadcaster_repository.create({**(attributes or {}), "name": name})
        await self._remember(broadcaster)
        return broadcaster

    async def create_program(
        self,
        name: str,
        description: str = "",
        broadcaster_ids: Sequence[EntityId] = (),
    ) -> Program:
        name = name.strip()
        program = await self._existing(EntityKind.PROGRAM, name)
        if not isinstance(program, Program):
            program = await self._store.program_repository.create(
                {"name": name, "description": description}
            )
            await self._remember(program)
        for broadcaster_id in broadcaster_ids:
            await self.link(program.id, broadcaster_id)
        return program

    async def link(self, program_id: EntityId, broadcaster_id: EntityId) -> None:
        await self._store.ensure_fresh(EntityKind.BROADCASTER)
        broadcaster = self._broadcaster(broadcaster_id)
        await self._store.program_repository.add_broadcaster(program_id, broadcaster_id)
        self._store.link(program_id, broadcaster)

    async def unlink(self, program_id: EntityId, broadcaster_id: EntityId) -> Program:
        """Remove a broadcaster from a program and return the program as cached afterwards."""
        await self._store.ensure_fresh(EntityKind.PROGRAM)
        program = self._program(program_id)
        await self._store.program_repository.remove_broadcaster(program_id, broadcaster_id)
        self._store.unlink(program_id, broadcaster_id)
        return program

    async def _existing(self, kind: EntityKind, name: str):
        if not name:
            raise ValueError(f"A {kind.value} needs a name")
        await self._store.ensure_fresh(kind)
        return self._store.find_by_name(kind, name)

    async def _remember(self, entity: Broadcaster | Program) -> None:
        logger.info("Side flow created %s '%s' → %s", entity.kind.value, entity.name, entity.id)
        self._store.add(entity)
        try:
            await self._store.refresh(entity.kind)
        except Exception as exc:
            logger.warning("Refresh after creating %s failed: %s", entity.kind.value, exc)

    def _program(self, program_id: EntityId) -> Program:
        for entity in self._store.all(EntityKind.PROGRAM):
            if entity.id == program_id and isinstance(entity, Program):
                return entity
        raise EntityNotFoundError("Program", program_id)

    def _broadcaster(self, broadcaster_id: EntityId) -> Broadcaster:
        for entity in self._store.all(EntityKind.BROADCASTER):
            if entity.id == broadcaster_id and isinstance(entity, Broadcaster):
                return entity
        raise EntityNotFoundError("Broadcaster", broadcaster_id)
