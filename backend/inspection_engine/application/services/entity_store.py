"""Entity Store — client-side cache of known Broadcaster and Program records."""

import logging
import time
from collections.abc import Callable

from inspection_engine.application.interfaces import BroadcasterRepository, ProgramRepository
from inspection_engine.domain.entities import (
    Broadcaster,
    EntityKind,
    Program,
    ReferenceEntity,
)

logger = logging.getLogger(__name__)


class EntityStore:
    """Caches both reference kinds and answers exact-name lookups.

    The cache is refreshed by re-fetching after every creation and
    whenever it is older than ``ttl_seconds``. Nothing invalidates it
    across processes; that staleness is accepted.
    """

    def __init__(
        self,
        broadcaster_repo: BroadcasterRepository,
        program_repo: ProgramRepository,
        *,
        ttl_seconds: float = 300.0,
        case_sensitive: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._broadcaster_repo = broadcaster_repo
        self._program_repo = program_repo
        self._ttl = ttl_seconds
        self._case_sensitive = case_sensitive
        self._clock = clock
        self._entities: dict[EntityKind, list[ReferenceEntity]] = {
            EntityKind.BROADCASTER: [],
            EntityKind.PROGRAM: [],
        }
        self._fetched_at: dict[EntityKind, float | None] = {
            EntityKind.BROADCASTER: None,
            EntityKind.PROGRAM: None,
        }

    @property
    def program_repository(self) -> ProgramRepository:
        return self._program_repo

    @property
    def broadcaster_repository(self) -> BroadcasterRepository:
        return self._broadcaster_repo

    def name_key(self, name: str) -> str:
        """Normalise a name for matching: surrounding whitespace never counts."""
        key = name.strip()
        return key if self._case_sensitive else key.casefold()

    # ── Refresh ──────────────────────────────────────────────────────

    def is_stale(self, kind: EntityKind) -> bool:
        fetched_at = self._fetched_at[kind]
        if fetched_at is None:
            return True
        return self._clock() - fetched_at > self._ttl

    async def refresh(self, kind: EntityKind) -> list[ReferenceEntity]:
        """Re-fetch one kind from the backing store, replacing the cache."""
        if kind is EntityKind.BROADCASTER:
            fetched: list[ReferenceEntity] = list(await self._broadcaster_repo.list_all())
        else:
            fetched = list(await self._program_repo.list_all())

        # Keep locally inserted records the listing does not show yet.
        fetched_ids = {entity.id for entity in fetched}
        pending = [e for e in self._entities[kind] if e.id not in fetched_ids]
        self._entities[kind] = fetched + pending
        self._fetched_at[kind] = self._clock()
        logger.debug("Refreshed %s cache: %d entries", kind.value, len(self._entities[kind]))
        return list(self._entities[kind])

    async def ensure_fresh(self, kind: EntityKind) -> None:
        """Refresh when stale; a failed refresh keeps serving the old cache."""
        if not self.is_stale(kind):
            return
        try:
            await self.refresh(kind)
        except Exception as exc:
            logger.warning("Could not refresh %s cache: %s", kind.value, exc)

    # ── Lookup ───────────────────────────────────────────────────────

    def all(self, kind: EntityKind) -> list[ReferenceEntity]:
        return list(self._entities[kind])

    def find_by_name(self, kind: EntityKind, name: str) -> ReferenceEntity | None:
        key = self.name_key(name)
        if not key:
            return None
        for entity in self._entities[kind]:
            if self.name_key(entity.name) == key:
                return entity
        return None

    def find_broadcaster(self, name: str) -> Broadcaster | None:
        entity = self.find_by_name(EntityKind.BROADCASTER, name)
        return entity if isinstance(entity, Broadcaster) else None

    def find_program(self, name: str) -> Program | None:
        entity = self.find_by_name(EntityKind.PROGRAM, name)
        return entity if isinstance(entity, Program) else None

    def search(self, kind: EntityKind, query: str, limit: int = 20) -> list[ReferenceEntity]:
        """Case-insensitive substring search for pickers (broadcaster: name/town, program: name/description)."""
        needle = query.strip().casefold()
        entities = self._entities[kind]
        if not needle:
            return entities[:limit]
        matches = [
            entity
            for entity in entities
            if any(needle in text.casefold() for text in entity.search_text() if text)
        ]
        return matches[:limit]

    # ── Mutation ─────────────────────────────────────────────────────

    def add(self, entity: ReferenceEntity) -> None:
        """Insert or replace one record by id."""
        entities = self._entities[entity.kind]
        for index, existing in enumerate(entities):
            if existing.id == entity.id:
                entities[index] = entity
                return
        entities.append(entity)

    def link(self, program_id, broadcaster: Broadcaster) -> None:
        """Reflect a successful program/broadcaster link in the cache."""
        for entity in self._entities[EntityKind.PROGRAM]:
            if entity.id == program_id and isinstance(entity, Program):
                if broadcaster.id not in entity.broadcaster_ids:
                    entity.broadcaster_ids.append(broadcaster.id)
                if broadcaster.name not in entity.broadcaster_names:
                    entity.broadcaster_names.append(broadcaster.name)
                return

    def unlink(self, program_id, broadcaster_id) -> None:
        broadcaster = next(
            (b for b in self._entities[EntityKind.BROADCASTER] if b.id == broadcaster_id),
            None,
        )
        for entity in self._entities[EntityKind.PROGRAM]:
            if entity.id == program_id and isinstance(entity, Program):
                if broadcaster_id in entity.broadcaster_ids:
                    entity.broadcaster_ids.remove(broadcaster_id)
                if broadcaster is not None and broadcaster.name in entity.broadcaster_names:
                    entity.broadcaster_names.remove(broadcaster.name)
                return
