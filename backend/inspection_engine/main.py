"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from inspection_engine.config import get_settings
from inspection_engine.infrastructure.database.session import create_tables, engine
from inspection_engine.infrastructure.dependencies import get_wizard_registry
from inspection_engine.infrastructure.logging.log_config import setup_logging
from inspection_engine.presentation.api.router import router as api_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan — prepare the draft store, drain wizards on shutdown."""
    setup_logging()

    await create_tables(engine)
    logger.info("Draft store ready at %s", engine.url)

    yield

    # Shutdown: let in-flight saves complete before the loop goes away
    await get_wizard_registry().shutdown()
    await engine.dispose()


def create_app() -> FastAPI:
    """Factory function that builds and configures the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_title,
        version=settings.app_version,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "inspection_engine.main:app",
        host="0.0.0.0",
        port=8020,
        reload=True,
    )
