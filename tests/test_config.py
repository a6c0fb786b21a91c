"""Tests for environment-driven settings."""
from __future__ import annotations

import pytest

from src.config import DEFAULT_BASE_URL, Settings

_ENV_KEYS = (
    "OPENAI_API_KEY",
    "OPENAI_BASE_URL",
    "OPENAI_MODEL",
    "BATCH_CHUNK_SIZE",
    "BATCH_CHUNK_DELAY_SECONDS",
    "BATCH_MAX_ATTEMPTS",
    "RETRY_BASE_DELAY_SECONDS",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_defaults():
    settings = Settings.from_env()
    assert settings.openai_api_key is None
    assert settings.openai_base_url == DEFAULT_BASE_URL
    assert settings.chunk_size == 5
    assert settings.chunk_delay_seconds == 0.3
    assert settings.batch_max_attempts == 2
    assert settings.retry_base_delay_seconds == 0.5
    assert settings.openai_timeout_seconds == 300.0


def test_env_parsing_valid(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("OPENAI_BASE_URL", "https://proxy.local/v1")
    monkeypatch.setenv("BATCH_CHUNK_SIZE", "3")
    monkeypatch.setenv("BATCH_CHUNK_DELAY_SECONDS", "0")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = Settings.from_env()

    assert settings.openai_api_key == "sk-test"
    assert settings.openai_base_url == "https://proxy.local/v1"
    assert settings.chunk_size == 3
    assert settings.chunk_delay_seconds == 0.0
    assert settings.log_level == "DEBUG"


@pytest.mark.parametrize(
    "key, value, attr, default",
    [
        ("BATCH_CHUNK_SIZE", "not-an-int", "chunk_size", 5),
        ("BATCH_CHUNK_SIZE", "0", "chunk_size", 5),
        ("BATCH_MAX_ATTEMPTS", "-2", "batch_max_attempts", 2),
        ("RETRY_BASE_DELAY_SECONDS", "soon", "retry_base_delay_seconds", 0.5),
        ("BATCH_CHUNK_DELAY_SECONDS", "-1", "chunk_delay_seconds", 0.3),
    ],
)
def test_env_parsing_invalid_falls_back(monkeypatch, caplog, key, value, attr, default):
    monkeypatch.setenv(key, value)
    with caplog.at_level("WARNING"):
        settings = Settings.from_env()
    assert getattr(settings, attr) == default
    assert key in caplog.text
