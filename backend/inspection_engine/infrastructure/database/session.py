"""SQLAlchemy engine and session factory for the local draft store."""

from pathlib import Path

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from inspection_engine.config import get_settings
from inspection_engine.infrastructure.database.base import Base
from inspection_engine.infrastructure.database.models import DraftSnapshotModel  # noqa: F401


def _get_async_url(url: str) -> str:
    """Convert a sync SQLAlchemy URL to an async one."""
    if url.startswith("sqlite:///"):
        return url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
    return url


def build_engine(url: str, *, echo: bool = False) -> AsyncEngine:
    return create_async_engine(_get_async_url(url), echo=echo, future=True)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def create_tables(engine: AsyncEngine) -> None:
    """Create the draft tables; SQLite gets its parent directory created first."""
    database = engine.url.database
    if engine.url.get_backend_name() == "sqlite" and database and database != ":memory:":
        Path(database).parent.mkdir(parents=True, exist_ok=True)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


settings = get_settings()

engine = build_engine(settings.draft_database_url)

async_session_factory = build_session_factory(engine)
