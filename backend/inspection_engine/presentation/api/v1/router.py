"""V1 API router — aggregates all v1 endpoint routers."""

from fastapi import APIRouter

from inspection_engine.presentation.api.v1.endpoints.health import router as health_router
from inspection_engine.presentation.api.v1.endpoints.wizards import router as wizards_router

router = APIRouter(prefix="/v1")
router.include_router(health_router)
router.include_router(wizards_router)
