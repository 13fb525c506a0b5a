"""Unit tests for application settings configuration."""

from pathlib import Path

from inspection_engine.config import Settings


def test_settings_uses_backend_env_file_independent_of_cwd():
    """Settings should always include backend/.env as an env source."""
    env_files = Settings.model_config.get("env_file")
    assert env_files is not None

    normalized = {str(Path(item)) for item in env_files}
    expected_backend_env = str(Path(__file__).resolve().parents[2] / ".env")

    assert expected_backend_env in normalized
    assert str(Path(".env")) in normalized


def test_defaults_match_the_observed_timings(monkeypatch):
    monkeypatch.delenv("AUTOSAVE_DEBOUNCE_SECONDS", raising=False)
    monkeypatch.delenv("ENTITY_CACHE_TTL_SECONDS", raising=False)
    settings = Settings(_env_file=None)

    assert settings.autosave_debounce_seconds == 10.0
    assert settings.entity_cache_ttl_seconds == 300.0
    assert settings.draft_slot_key == "inspection_draft"
    assert settings.entity_name_case_sensitive is True


def test_non_positive_debounce_falls_back_to_default():
    settings = Settings(_env_file=None, autosave_debounce_seconds=0)
    assert settings.autosave_debounce_seconds == 10.0


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("BACKING_STORE_URL", "https://store.example/api")
    monkeypatch.setenv("AUTOSAVE_DEBOUNCE_SECONDS", "2.5")
    settings = Settings(_env_file=None)

    assert settings.backing_store_url == "https://store.example/api"
    assert settings.autosave_debounce_seconds == 2.5
