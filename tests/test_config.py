"""Tests for configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from message_actions.core.config import load_app_settings


@pytest.fixture(autouse=True)
def clear_settings_cache() -> None:
    """Ensure each test sees a fresh settings instance."""

    load_app_settings.cache_clear()


def test_defaults_loaded_without_env_file() -> None:
    """Default values should be returned when no overrides are present."""

    settings = load_app_settings(include_environment=False)
    assert settings.service.endpoint == "/api/analyze-message"
    assert settings.service.enabled is True
    assert settings.cache.ttl_seconds == 300
    assert settings.cache.stale_grace_seconds == 0


def test_env_file_overrides(tmp_path: Path) -> None:
    """Values defined in an env file should override defaults."""

    env_file = tmp_path / "test.env"
    env_file.write_text(
        "MESSAGE_ACTIONS_SERVICE__BASE_URL=https://analysis.example.com\n"
        "MESSAGE_ACTIONS_SERVICE__ENABLED=false\n"
        "MESSAGE_ACTIONS_CACHE__TTL_SECONDS=60\n",
        encoding="utf-8",
    )

    settings = load_app_settings(env_file=env_file, include_environment=False)
    assert settings.service.base_url == "https://analysis.example.com"
    assert settings.service.enabled is False
    assert settings.cache.ttl_seconds == 60


def test_environment_wins_over_env_file(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    env_file = tmp_path / "test.env"
    env_file.write_text("MESSAGE_ACTIONS_CACHE__MAX_ENTRIES=10\n", encoding="utf-8")
    monkeypatch.setenv("MESSAGE_ACTIONS_CACHE__MAX_ENTRIES", "25")

    settings = load_app_settings(env_file=env_file)
    assert settings.cache.max_entries == 25
