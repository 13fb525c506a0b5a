import logging
from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings

_config_logger = logging.getLogger(__name__)

_BACKEND_DIR = Path(__file__).resolve().parents[1]
_ENV_FILES = (
    _BACKEND_DIR / ".env",
    ".env",
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    app_title: str = "Inspection Session Engine"
    app_version: str = "0.1.0"
    app_env: str = "development"
    cors_origins: list[str] = ["http://localhost:3000"]

    # Backing store (REST)
    backing_store_url: str = "http://127.0.0.1:8000/api"
    backing_store_token: str = ""
    backing_store_timeout: float = 30.0

    # Auto-save and navigation
    autosave_debounce_seconds: float = 10.0
    advance_save_timeout_seconds: float = 5.0

    # Entity store
    entity_cache_ttl_seconds: float = 300.0
    entity_name_case_sensitive: bool = True

    # Draft snapshot slot (single, locally durable)
    draft_database_url: str = "sqlite:///data/drafts.db"
    draft_slot_key: str = "inspection_draft"

    # Logging: per-category log levels (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    log_level: str = "INFO"                  # Root / app-wide
    log_level_sql: str = "WARNING"           # sqlalchemy.engine, draft slot queries
    log_level_http: str = "WARNING"          # httpx / httpcore, outbound HTTP
    log_level_uvicorn: str = "INFO"          # uvicorn.access / uvicorn.error
    log_level_autosave: str = "INFO"         # session controller + save pipeline
    log_level_backing_store: str = "INFO"    # REST gateway

    model_config = {
        "env_file": _ENV_FILES,
        "env_file_encoding": "utf-8",
    }

    def model_post_init(self, __context: object) -> None:
        """Clamp timing settings that would otherwise disable auto-save."""
        if self.autosave_debounce_seconds <= 0:
            _config_logger.warning(
                "autosave_debounce_seconds=%s is not positive; using 10.0",
                self.autosave_debounce_seconds,
            )
            object.__setattr__(self, "autosave_debounce_seconds", 10.0)


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance — reads .env once."""
    return Settings()
