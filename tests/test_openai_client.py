"""Tests for the OpenAI provider."""
from __future__ import annotations

import sys
from types import ModuleType, SimpleNamespace

import pytest

from src import openai_client as oc
from src.config import Settings
from src.exceptions import (
    UpstreamAuthError,
    UpstreamError,
    UpstreamRateLimitError,
    UpstreamTimeoutError,
)


class _APIError(Exception):
    pass


class _AuthenticationError(_APIError):
    pass


class _RateLimitError(_APIError):
    pass


class _APIConnectionError(_APIError):
    pass


class _APITimeoutError(_APIConnectionError):
    pass


class _FakeCompletions:
    """Records calls and returns (or raises) a preset *outcome*."""

    def __init__(self, outcome):
        self.outcome = outcome
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if isinstance(self.outcome, BaseException):
            raise self.outcome
        return self.outcome


def _completion(*contents):
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=c)) for c in contents]
    )


def _client(outcome):
    completions = _FakeCompletions(outcome)
    return SimpleNamespace(chat=SimpleNamespace(completions=completions)), completions


@pytest.fixture()
def fake_openai(monkeypatch):
    """Insert a fake ``openai`` module into ``sys.modules``."""

    module = ModuleType("openai")
    module.APIError = _APIError  # type: ignore[attr-defined]
    module.AuthenticationError = _AuthenticationError  # type: ignore[attr-defined]
    module.RateLimitError = _RateLimitError  # type: ignore[attr-defined]
    module.APITimeoutError = _APITimeoutError  # type: ignore[attr-defined]
    module.constructed = []  # type: ignore[attr-defined]

    class _OpenAI:
        def __init__(self, **kwargs):
            module.constructed.append(kwargs)  # type: ignore[attr-defined]

    module.OpenAI = _OpenAI  # type: ignore[attr-defined]
    monkeypatch.setitem(sys.modules, "openai", module)
    return module


def test_missing_api_key_raises(fake_openai):
    """get_openai_client should raise if no API key is configured."""

    with pytest.raises(oc.OpenAIClientError):
        oc.get_openai_client(Settings(openai_api_key=None))
    assert fake_openai.constructed == []


def test_client_configured_from_settings(fake_openai):
    settings = Settings(
        openai_api_key="test-key",
        openai_base_url="https://proxy.example/v1",
        openai_org="org-1",
        openai_timeout_seconds=12.5,
        openai_max_retries=4,
    )

    oc.get_openai_client(settings)

    assert fake_openai.constructed == [
        {
            "api_key": "test-key",
            "base_url": "https://proxy.example/v1",
            "organization": "org-1",
            "timeout": 12.5,
            "max_retries": 4,
        }
    ]


def test_from_settings_uses_configured_model(fake_openai):
    provider = oc.OpenAIProvider.from_settings(
        Settings(openai_api_key="k", openai_model="gpt-4o-mini")
    )
    assert provider.model == "gpt-4o-mini"


def test_chat_completion_forwards_arguments(fake_openai):
    client, completions = _client(_completion('{"sentiment": "positive"}'))
    provider = oc.OpenAIProvider(client, model="gpt-4o")

    content = provider.chat_completion(
        [{"role": "user", "content": "Hello"}],
        response_format={"type": "json_object"},
        max_completion_tokens=1024,
    )

    assert content == '{"sentiment": "positive"}'
    call = completions.calls[0]
    assert call["model"] == "gpt-4o"
    assert call["messages"][0]["content"] == "Hello"
    assert call["response_format"] == {"type": "json_object"}
    assert call["max_completion_tokens"] == 1024


def test_chat_completion_without_choices_returns_none(fake_openai):
    client, _ = _client(_completion())
    assert oc.OpenAIProvider(client).chat_completion([]) is None


@pytest.mark.parametrize(
    "raised, expected",
    [
        (_AuthenticationError("bad key"), UpstreamAuthError),
        (_RateLimitError("slow down"), UpstreamRateLimitError),
        (_APITimeoutError("too slow"), UpstreamTimeoutError),
        (_APIConnectionError("no route"), UpstreamError),
        (_APIError("boom"), UpstreamError),
    ],
)
def test_sdk_errors_are_translated(fake_openai, raised, expected):
    client, _ = _client(raised)
    with pytest.raises(expected) as excinfo:
        oc.OpenAIProvider(client).chat_completion([])
    assert excinfo.value.__cause__ is raised


def test_unrelated_errors_propagate(fake_openai):
    client, _ = _client(KeyError("not an API error"))
    with pytest.raises(KeyError):
        oc.OpenAIProvider(client).chat_completion([])
