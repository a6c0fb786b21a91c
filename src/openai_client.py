"""OpenAI chat-completion provider.

Centralises API-key handling and SDK error translation so the rest of the
codebase only deals with a small capability:

    provider = OpenAIProvider.from_settings(settings)
    content = provider.chat_completion(messages, max_completion_tokens=1024)

The provider is built explicitly and handed to its callers, which lets tests
pass any object with a compatible ``chat_completion`` method instead.
"""
from __future__ import annotations

import importlib
import logging
import types
from typing import Any, Dict, List, Optional, Protocol

from src.config import DEFAULT_MODEL, Settings
from src.exceptions import (
    UpstreamAuthError,
    UpstreamError,
    UpstreamRateLimitError,
    UpstreamTimeoutError,
)

logger = logging.getLogger(__name__)

Message = Dict[str, str]


class OpenAIClientError(RuntimeError):
    """Raised when client configuration is invalid (e.g., missing API key)."""


class CompletionProvider(Protocol):
    """Anything that can turn chat messages into the model's text reply."""

    def chat_completion(self, messages: List[Message], **kwargs: Any) -> Optional[str]:
        ...


def _load_openai() -> types.ModuleType:
    """Import ``openai`` lazily.

    Loading is deferred so that unit tests can inject a stub into
    ``sys.modules`` before this function runs.
    """

    return importlib.import_module("openai")


def _ensure_api_key_present(settings: Settings) -> str:
    """Return the configured API key or raise.

    Raises
    ------
    OpenAIClientError
        If ``OPENAI_API_KEY`` was missing or empty.
    """

    if not settings.openai_api_key:
        raise OpenAIClientError("OPENAI_API_KEY environment variable is not set.")
    return settings.openai_api_key


def get_openai_client(settings: Settings) -> Any:
    """Build an ``openai.OpenAI`` client configured from *settings*."""

    api_key = _ensure_api_key_present(settings)
    openai = _load_openai()
    return openai.OpenAI(
        api_key=api_key,
        base_url=settings.openai_base_url,
        organization=settings.openai_org,
        timeout=settings.openai_timeout_seconds,
        max_retries=settings.openai_max_retries,
    )


class OpenAIProvider:
    """:class:`CompletionProvider` backed by the OpenAI chat completions API."""

    def __init__(self, client: Any, *, model: str = DEFAULT_MODEL) -> None:
        self._client = client
        self.model = model

    @classmethod
    def from_settings(cls, settings: Settings) -> "OpenAIProvider":
        return cls(get_openai_client(settings), model=settings.openai_model)

    def chat_completion(self, messages: List[Message], **kwargs: Any) -> Optional[str]:
        """Send *messages* and return the first choice's content.

        ``None`` means the provider answered without content. SDK failures
        are re-raised as :class:`~src.exceptions.UpstreamError` subclasses.
        Extra keyword arguments are forwarded to
        ``chat.completions.create``.
        """

        openai = _load_openai()
        try:
            completion = self._client.chat.completions.create(
                model=self.model, messages=messages, **kwargs
            )
        except openai.AuthenticationError as exc:
            raise UpstreamAuthError() from exc
        except openai.RateLimitError as exc:
            raise UpstreamRateLimitError() from exc
        # Must precede APIError: the timeout error is one of its subclasses.
        except openai.APITimeoutError as exc:
            raise UpstreamTimeoutError() from exc
        except openai.APIError as exc:
            logger.debug("OpenAI API error: %s", exc)
            raise UpstreamError() from exc

        if not completion.choices:
            return None
        return completion.choices[0].message.content
