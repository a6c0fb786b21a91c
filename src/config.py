"""Runtime configuration read from the environment.

Values come from ``os.environ`` (populated from ``.env`` by ``python-dotenv``
when the app starts). Invalid numeric values are logged and replaced by the
default instead of aborting startup.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.openai.com/v1"
DEFAULT_MODEL = "gpt-4o"

# Upper bound of feedbacks accepted by one batch request
MAX_BATCH_ITEMS: int = 100

# Length limits of a single feedback text
MIN_FEEDBACK_CHARS: int = 1
MAX_FEEDBACK_CHARS: int = 5000


def _get_int_from_env(name: str, default: int, *, minimum: int = 0) -> int:
    raw_val = os.getenv(name)
    if not raw_val:
        return default
    try:
        parsed = int(raw_val)
    except ValueError:
        logger.warning("Invalid %s value '%s'; must be integer.", name, raw_val)
        return default
    if parsed < minimum:
        logger.warning("Ignoring %s=%s (must be >= %d)", name, raw_val, minimum)
        return default
    return parsed


def _get_float_from_env(name: str, default: float) -> float:
    raw_val = os.getenv(name)
    if not raw_val:
        return default
    try:
        parsed = float(raw_val)
    except ValueError:
        logger.warning("Invalid %s value '%s'; must be a number.", name, raw_val)
        return default
    if parsed < 0:
        logger.warning("Ignoring %s=%s (must be non-negative)", name, raw_val)
        return default
    return parsed


@dataclass(frozen=True)
class Settings:
    """All tunables of the service in one immutable object."""

    openai_api_key: Optional[str] = None
    openai_base_url: str = DEFAULT_BASE_URL
    openai_org: Optional[str] = None
    openai_model: str = DEFAULT_MODEL
    openai_timeout_seconds: float = 300.0
    openai_max_retries: int = 2

    # Batch pipeline
    chunk_size: int = 5
    chunk_delay_seconds: float = 0.3
    batch_max_attempts: int = 2

    # Single-item endpoint
    single_max_attempts: int = 3

    retry_base_delay_seconds: float = 0.5

    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 5000

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            openai_base_url=os.getenv("OPENAI_BASE_URL") or DEFAULT_BASE_URL,
            openai_org=os.getenv("OPENAI_ORG") or None,
            openai_model=os.getenv("OPENAI_MODEL") or DEFAULT_MODEL,
            openai_timeout_seconds=_get_float_from_env("OPENAI_TIMEOUT_SECONDS", 300.0),
            openai_max_retries=_get_int_from_env("OPENAI_MAX_RETRIES", 2),
            chunk_size=_get_int_from_env("BATCH_CHUNK_SIZE", 5, minimum=1),
            chunk_delay_seconds=_get_float_from_env("BATCH_CHUNK_DELAY_SECONDS", 0.3),
            batch_max_attempts=_get_int_from_env("BATCH_MAX_ATTEMPTS", 2, minimum=1),
            single_max_attempts=_get_int_from_env("SINGLE_MAX_ATTEMPTS", 3, minimum=1),
            retry_base_delay_seconds=_get_float_from_env(
                "RETRY_BASE_DELAY_SECONDS", 0.5
            ),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            host=os.getenv("HOST", "0.0.0.0"),
            port=_get_int_from_env("PORT", 5000, minimum=1),
        )
