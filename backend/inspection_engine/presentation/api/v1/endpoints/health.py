"""Health check endpoint — reports the service and its in-memory wizards."""

from fastapi import APIRouter, Depends

from inspection_engine.application.services import WizardRegistry
from inspection_engine.config import get_settings
from inspection_engine.infrastructure.dependencies import get_wizard_registry

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check(registry: WizardRegistry = Depends(get_wizard_registry)) -> dict:
    """Returns the current application health status.

    The backing store is not probed; it is listed so a misconfigured URL
    is easy to spot.
    """
    settings = get_settings()
    return {
        "status": "healthy",
        "version": settings.app_version,
        "environment": settings.app_env,
        "backing_store": settings.backing_store_url,
        "active_wizards": len(registry),
    }
