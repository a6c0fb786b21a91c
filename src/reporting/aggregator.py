"""Aggregate the items of a finished batch into a :class:`BatchSummary`."""

from __future__ import annotations

import logging
import math
from collections import Counter
from typing import Dict, List, Sequence

from src.analysis.models import (
    AnalysisResult,
    FeedbackItem,
    ItemStatus,
    Recommendation,
    Sentiment,
    UrgencyLevel,
)
from src.reporting.models import BatchSummary, EmotionCount, UrgencyBreakdown

logger = logging.getLogger(__name__)

MAX_TOP_EMOTIONS = 5
MAX_COMMON_THEMES = 10
MAX_RECOMMENDATIONS = 5
# A key phrase becomes a theme once this many completed items mention it
MIN_THEME_ITEMS = 2


def _completed_results(items: Sequence[FeedbackItem]) -> List[AnalysisResult]:
    return [
        item.result
        for item in items
        if item.status is ItemStatus.COMPLETED and item.result is not None
    ]


def _rounded_mean(values: Sequence[float]) -> int:
    """Arithmetic mean rounded half-up; 0 for no values."""
    if not values:
        return 0
    return int(math.floor(sum(values) / len(values) + 0.5))


def _top_emotions(results: Sequence[AnalysisResult]) -> List[EmotionCount]:
    counts: Counter[str] = Counter()
    for result in results:
        for emotion in result.emotions:
            counts[emotion.name] += 1
    # most_common keeps first-seen order among equal counts
    return [
        EmotionCount(name=name, count=count)
        for name, count in counts.most_common(MAX_TOP_EMOTIONS)
    ]


def _urgency_breakdown(results: Sequence[AnalysisResult]) -> UrgencyBreakdown:
    counts = Counter(result.urgency_level for result in results)
    return UrgencyBreakdown(
        critical=counts[UrgencyLevel.CRITICAL],
        high=counts[UrgencyLevel.HIGH],
        medium=counts[UrgencyLevel.MEDIUM],
        low=counts[UrgencyLevel.LOW],
    )


def _common_themes(results: Sequence[AnalysisResult]) -> List[str]:
    counts: Counter[str] = Counter()
    for result in results:
        # count each phrase once per item
        phrases = dict.fromkeys(kp.phrase.strip().lower() for kp in result.key_phrases)
        counts.update(phrase for phrase in phrases if phrase)
    themes = [phrase for phrase, count in counts.most_common() if count >= MIN_THEME_ITEMS]
    return themes[:MAX_COMMON_THEMES]


def _overall_recommendations(results: Sequence[AnalysisResult]) -> List[Recommendation]:
    representatives: Dict[str, Recommendation] = {}
    counts: Counter[str] = Counter()
    for result in results:
        for rec in result.recommendations:
            key = rec.title.lower()
            representatives.setdefault(key, rec)
            counts[key] += 1
    return [representatives[key] for key, _ in counts.most_common(MAX_RECOMMENDATIONS)]


def summarize_batch(items: Sequence[FeedbackItem]) -> BatchSummary:
    """Compute the :class:`BatchSummary` of a finished batch.

    The function is read-only; it does not mutate *items*. Failed items count
    towards ``total_count`` but are excluded from every other statistic,
    including the denominators of the averages.
    """

    results = _completed_results(items)
    sentiments = Counter(result.sentiment for result in results)

    summary = BatchSummary(
        total_count=len(items),
        positive_count=sentiments[Sentiment.POSITIVE],
        negative_count=sentiments[Sentiment.NEGATIVE],
        neutral_count=sentiments[Sentiment.NEUTRAL],
        average_sentiment_score=_rounded_mean([r.sentiment_score for r in results]),
        average_confidence=_rounded_mean([r.confidence for r in results]),
        top_emotions=_top_emotions(results),
        urgency_breakdown=_urgency_breakdown(results),
        common_themes=_common_themes(results),
        overall_recommendations=_overall_recommendations(results),
    )
    logger.debug(
        "Summarised batch: total=%d completed=%d", summary.total_count, len(results)
    )
    return summary
