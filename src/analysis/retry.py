"""Bounded retry with linear backoff around analysis calls.

Two flavours share one loop:

* :func:`retry_call` re-raises the last error once the budget is spent, so
  the single-item endpoint can map it to a status code.
* :func:`analyze_with_retry` swallows the final error and returns ``None``;
  the batch pipeline records that as a per-item soft failure.
"""
from __future__ import annotations

import logging
import time
from typing import Callable, Optional, Tuple, Type, TypeVar

from src.analysis.models import AnalysisResult

_logger = logging.getLogger(__name__)

T = TypeVar("T")

ExcTypes = Tuple[Type[BaseException], ...]


def retry_call(
    func: Callable[[], T],
    *,
    attempts: int = 2,
    base_delay: float = 0.5,
    retry_on: ExcTypes = (Exception,),
    give_up_on: ExcTypes = (),
    sleep: Callable[[float], None] = time.sleep,
    label: str = "Analysis",
) -> T:
    """Call *func* up to *attempts* times.

    Waits ``attempt * base_delay`` seconds after failed attempt number
    ``attempt``. Errors in *give_up_on* are raised at once, errors outside
    *retry_on* are never caught.
    """

    if attempts < 1:
        raise ValueError("attempts must be at least 1")

    attempt = 0
    while True:
        attempt += 1
        try:
            return func()
        except give_up_on:
            raise
        except retry_on as exc:
            _logger.warning("%s attempt %d/%d failed: %s", label, attempt, attempts, exc)
            if attempt >= attempts:
                raise
            sleep(attempt * base_delay)


def analyze_with_retry(
    text: str,
    analyze: Callable[[str], AnalysisResult],
    *,
    attempts: int = 2,
    base_delay: float = 0.5,
    sleep: Callable[[float], None] = time.sleep,
) -> Optional[AnalysisResult]:
    """Run ``analyze(text)`` with retries; ``None`` once every attempt failed."""

    try:
        return retry_call(
            lambda: analyze(text),
            attempts=attempts,
            base_delay=base_delay,
            sleep=sleep,
        )
    except Exception as exc:  # noqa: BLE001 – soft failure is the contract
        _logger.warning("Analysis failed after %d attempt(s): %s", attempts, exc)
        return None
