"""Shared test fixtures for agentstream.

Provides common fixtures used across unit tests.
"""

from collections.abc import Generator

import pytest

from agentstream.settings import Settings, get_settings


@pytest.fixture(autouse=True)
def _reset_settings_cache() -> Generator[None, None, None]:
    """Drop cached settings so env overrides in one test don't leak."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def test_settings(monkeypatch: pytest.MonkeyPatch) -> Settings:
    """Provide settings with test-friendly values via the environment."""
    monkeypatch.setenv("AGENTSTREAM_ENVIRONMENT", "testing")
    monkeypatch.setenv("AGENTSTREAM_THROTTLE_DELAY_SECONDS", "0.05")
    monkeypatch.setenv("AGENTSTREAM_LOG_ARGS_PREVIEW_CHARS", "20")
    return get_settings()
