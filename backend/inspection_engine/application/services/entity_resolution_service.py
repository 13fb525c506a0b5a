"""Entity Resolution Service — find-or-create for typed Broadcaster and Program names."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from inspection_engine.application.services.entity_store import EntityStore
from inspection_engine.domain.entities import (
    BROADCASTER_CONTACT_FIELDS,
    Advisory,
    Broadcaster,
    EntityId,
    EntityKind,
    Program,
    ReferenceEntity,
)
from inspection_engine.domain.exceptions import AssociationWarning, BackingStoreError

logger = logging.getLogger(__name__)


@dataclass
class ResolvedReferences:
    """Outcome of resolving the Step-1 reference names for one save cycle."""

    program_id: EntityId | None = None
    broadcaster_id: EntityId | None = None
    created: list[EntityKind] = field(default_factory=list)
    advisories: list[Advisory] = field(default_factory=list)

    def as_payload(self) -> dict[str, EntityId | None]:
        return {
            EntityKind.PROGRAM.reference_field: self.program_id,
            EntityKind.BROADCASTER.reference_field: self.broadcaster_id,
        }


class EntityResolutionService:
    """Turns free-text names into identities without duplicating known names.

    Creation calls are sequenced (program, then broadcaster, then the
    link) so the creation order is deterministic.
    """

    def __init__(self, store: EntityStore):
        self._store = store

    async def resolve(
        self,
        kind: EntityKind,
        name: str,
        attributes: Mapping[str, Any] | None = None,
    ) -> EntityId:
        """Return the identity for ``name``, creating the record if it is unknown."""
        entity, _ = await self._find_or_create(kind, name, attributes or {})
        return entity.id

    async def _find_or_create(
        self,
        kind: EntityKind,
        name: str,
        attributes: Mapping[str, Any],
    ) -> tuple[ReferenceEntity, bool]:
        name = name.strip()
        if not name:
            raise ValueError(f"Cannot resolve an empty {kind.value} name")

        await self._store.ensure_fresh(kind)
        existing = self._store.find_by_name(kind, name)
        if existing is not None:
            logger.debug("Resolved %s '%s' from cache → %s", kind.value, name, existing.id)
            return existing, False

        body = {**attributes, "name": name}
        if kind is EntityKind.BROADCASTER:
            created: ReferenceEntity = await self._store.broadcaster_repository.create(body)
        else:
            created = await self._store.program_repository.create(body)
        logger.info("Created %s '%s' → %s", kind.value, name, created.id)

        self._store.add(created)
        try:
            await self._store.refresh(kind)
        except Exception as exc:
            logger.warning("Refresh after creating %s failed: %s", kind.value, exc)
        return created, True

    async def resolve_references(self, fields: Mapping[str, Any]) -> ResolvedReferences:
        """Resolve the typed program and broadcaster names of a Step-1 form.

        Creation failures leave the reference unresolved and add an
        advisory; a failed link becomes an ``AssociationWarning``
        advisory. Nothing here aborts the inspection save.
        """
        result = ResolvedReferences()
        program_name = str(fields.get(EntityKind.PROGRAM.name_field) or "").strip()
        broadcaster_name = str(fields.get(EntityKind.BROADCASTER.name_field) or "").strip()

        program: ReferenceEntity | None = None
        broadcaster: ReferenceEntity | None = None

        if program_name:
            attributes = {
                "description": f"Program for {broadcaster_name or 'inspection'}",
            }
            program = await self._resolve_softly(EntityKind.PROGRAM, program_name, attributes, result)
            if program is not None:
                result.program_id = program.id

        if broadcaster_name:
            attributes = {
                key: str(fields.get(key) or "") for key in BROADCASTER_CONTACT_FIELDS
            }
            broadcaster = await self._resolve_softly(
                EntityKind.BROADCASTER, broadcaster_name, attributes, result
            )
            if broadcaster is not None:
                result.broadcaster_id = broadcaster.id

        if (
            isinstance(program, Program)
            and isinstance(broadcaster, Broadcaster)
            and result.created
        ):
            await self._associate(program, broadcaster, result)

        return result

    async def _resolve_softly(
        self,
        kind: EntityKind,
        name: str,
        attributes: Mapping[str, Any],
        result: ResolvedReferences,
    ) -> ReferenceEntity | None:
        try:
            entity, created = await self._find_or_create(kind, name, attributes)
        except BackingStoreError as exc:
            logger.warning("Could not create %s '%s': %s", kind.value, name, exc)
            result.advisories.append(
                Advisory(
                    level="warning",
                    message=f"Could not create {kind.value} '{name}': {exc.message}",
                    field=kind.name_field,
                )
            )
            return None
        if created:
            result.created.append(kind)
        return entity

    async def _associate(
        self,
        program: Program,
        broadcaster: Broadcaster,
        result: ResolvedReferences,
    ) -> None:
        try:
            await self._store.program_repository.add_broadcaster(program.id, broadcaster.id)
        except BackingStoreError as exc:
            warning = AssociationWarning(program.id, broadcaster.id, cause=exc)
            logger.warning("%s", warning)
            result.advisories.append(Advisory(level="warning", message=str(warning)))
            return
        self._store.link(program.id, broadcaster)
        logger.info("Linked broadcaster %s to program %s", broadcaster.id, program.id)
