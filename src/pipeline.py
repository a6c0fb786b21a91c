"""Wire provider, analysis, retries, scheduling and aggregation together.

The HTTP layer only calls :func:`analyze_single` and :func:`run_batch`;
everything they need is passed in explicitly.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from src.analysis.models import AnalysisResult, FeedbackItem
from src.analysis.retry import analyze_with_retry, retry_call
from src.analysis.sentiment import BATCH_PROFILE, SINGLE_PROFILE, analyze_feedback
from src.batch.scheduler import BatchScheduler
from src.config import Settings
from src.exceptions import AnalysisError, UpstreamAuthError
from src.openai_client import CompletionProvider
from src.reporting.aggregator import summarize_batch
from src.reporting.models import BatchSummary

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BatchReport:
    items: List[FeedbackItem]
    summary: BatchSummary

    def to_dict(self) -> Dict[str, Any]:
        return {
            "items": [item.to_dict() for item in self.items],
            "summary": self.summary.to_dict(),
        }


def analyze_single(
    text: str, provider: CompletionProvider, settings: Settings
) -> AnalysisResult:
    """Analyse one text, surfacing the final error with its specific cause.

    Transient failures are retried; rejected credentials fail immediately.
    """

    return retry_call(
        lambda: analyze_feedback(text, provider, profile=SINGLE_PROFILE),
        attempts=settings.single_max_attempts,
        base_delay=settings.retry_base_delay_seconds,
        retry_on=(AnalysisError,),
        give_up_on=(UpstreamAuthError,),
        label="Single analysis",
    )


def run_batch(
    feedbacks: Sequence[str],
    provider: CompletionProvider,
    settings: Settings,
) -> BatchReport:
    """Analyse every feedback and summarise the batch.

    Items whose retries run out are reported with status ``error``; they never
    make this function raise.
    """

    def analyze_item(text: str) -> Optional[AnalysisResult]:
        return analyze_with_retry(
            text,
            lambda t: analyze_feedback(t, provider, profile=BATCH_PROFILE),
            attempts=settings.batch_max_attempts,
            base_delay=settings.retry_base_delay_seconds,
        )

    scheduler = BatchScheduler(
        analyze_item,
        chunk_size=settings.chunk_size,
        chunk_delay=settings.chunk_delay_seconds,
    )

    outcome = scheduler.run(feedbacks)
    return BatchReport(items=outcome.items, summary=summarize_batch(outcome.items))
