"""FastAPI dependency injection — wires infrastructure to the application layer."""

from functools import lru_cache

from inspection_engine.application.services import (
    DraftContinuityManager,
    EntityResolutionService,
    EntityStore,
    FieldPartitioner,
    InspectionWizard,
    SavePipeline,
    WizardRegistry,
)
from inspection_engine.config import get_settings
from inspection_engine.infrastructure.backing_store import (
    BackingStoreClient,
    HttpBroadcasterRepository,
    HttpInspectionRepository,
    HttpProgramRepository,
)
from inspection_engine.infrastructure.database.repositories import SQLAlchemyDraftSlot
from inspection_engine.infrastructure.database.session import async_session_factory
from inspection_engine.infrastructure.scheduling import AsyncioScheduler


@lru_cache
def get_backing_store_client() -> BackingStoreClient:
    settings = get_settings()
    return BackingStoreClient(
        base_url=settings.backing_store_url,
        token=settings.backing_store_token,
        timeout=settings.backing_store_timeout,
    )


@lru_cache
def get_entity_store() -> EntityStore:
    """One cache of reference records shared by every wizard."""
    settings = get_settings()
    client = get_backing_store_client()
    return EntityStore(
        HttpBroadcasterRepository(client),
        HttpProgramRepository(client),
        ttl_seconds=settings.entity_cache_ttl_seconds,
        case_sensitive=settings.entity_name_case_sensitive,
    )


@lru_cache
def get_draft_manager() -> DraftContinuityManager:
    settings = get_settings()
    return DraftContinuityManager(SQLAlchemyDraftSlot(async_session_factory, settings.draft_slot_key))


def _build_wizard(wizard_id: str) -> InspectionWizard:
    settings = get_settings()
    store = get_entity_store()
    inspections = HttpInspectionRepository(get_backing_store_client())
    pipeline = SavePipeline(inspections, EntityResolutionService(store), FieldPartitioner())
    return InspectionWizard(
        pipeline,
        inspections,
        store,
        AsyncioScheduler(),
        get_draft_manager(),
        debounce_seconds=settings.autosave_debounce_seconds,
        advance_timeout_seconds=settings.advance_save_timeout_seconds,
        wizard_id=wizard_id,
    )


@lru_cache
def get_wizard_registry() -> WizardRegistry:
    """Provides the process-wide WizardRegistry."""
    return WizardRegistry(_build_wizard)
