"""Data structures for batch reporting."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List

from src.analysis.models import Recommendation


@dataclass(frozen=True)
class EmotionCount:
    name: str
    count: int

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "count": self.count}


@dataclass(frozen=True)
class UrgencyBreakdown:
    critical: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "critical": self.critical,
            "high": self.high,
            "medium": self.medium,
            "low": self.low,
        }


@dataclass(frozen=True)
class BatchSummary:
    """Statistics over one batch.

    ``total_count`` includes failed items; every other figure is computed
    over completed items only.
    """

    total_count: int
    positive_count: int = 0
    negative_count: int = 0
    neutral_count: int = 0
    average_sentiment_score: int = 0
    average_confidence: int = 0
    top_emotions: List[EmotionCount] = field(default_factory=list)
    urgency_breakdown: UrgencyBreakdown = field(default_factory=UrgencyBreakdown)
    common_themes: List[str] = field(default_factory=list)
    overall_recommendations: List[Recommendation] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalCount": self.total_count,
            "positiveCount": self.positive_count,
            "negativeCount": self.negative_count,
            "neutralCount": self.neutral_count,
            "averageSentimentScore": self.average_sentiment_score,
            "averageConfidence": self.average_confidence,
            "topEmotions": [e.to_dict() for e in self.top_emotions],
            "urgencyBreakdown": self.urgency_breakdown.to_dict(),
            "commonThemes": list(self.common_themes),
            "overallRecommendations": [r.to_dict() for r in self.overall_recommendations],
        }
