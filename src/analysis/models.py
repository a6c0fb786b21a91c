"""Typed values produced by the feedback analysis.

Wire names are camelCase (``sentimentScore``, ``keyPhrases`` …); the
``to_dict`` helpers produce exactly that JSON shape.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from src.exceptions import InvalidTransitionError


class Sentiment(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class UrgencyLevel(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class RecommendationCategory(str, Enum):
    CUSTOMER_SERVICE = "customer_service"
    PRODUCT = "product"
    PROCESS = "process"
    COMMUNICATION = "communication"
    TECHNICAL = "technical"


class Timeframe(str, Enum):
    IMMEDIATE = "immediate"
    SHORT_TERM = "short_term"
    LONG_TERM = "long_term"


@dataclass(frozen=True)
class Emotion:
    name: str
    intensity: float = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "intensity": self.intensity}


@dataclass(frozen=True)
class KeyPhrase:
    phrase: str
    sentiment: Sentiment = Sentiment.NEUTRAL

    def to_dict(self) -> Dict[str, Any]:
        return {"phrase": self.phrase, "sentiment": self.sentiment.value}


@dataclass(frozen=True)
class Insight:
    text: str
    priority: Priority = Priority.MEDIUM

    def to_dict(self) -> Dict[str, Any]:
        return {"text": self.text, "priority": self.priority.value}


@dataclass(frozen=True)
class Recommendation:
    title: str
    description: str = ""
    category: RecommendationCategory = RecommendationCategory.CUSTOMER_SERVICE
    impact: Priority = Priority.MEDIUM
    timeframe: Timeframe = Timeframe.SHORT_TERM

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "category": self.category.value,
            "impact": self.impact.value,
            "timeframe": self.timeframe.value,
        }


@dataclass(frozen=True)
class AnalysisResult:
    """Structured analysis of one feedback text.

    Defaults are the values used when the model omits or garbles a field.
    Scores are kept in ``[0, 100]``.
    """

    sentiment: Sentiment = Sentiment.NEUTRAL
    sentiment_score: float = 50
    confidence: float = 0
    urgency_level: UrgencyLevel = UrgencyLevel.MEDIUM
    customer_intent: str = ""
    emotions: Tuple[Emotion, ...] = ()
    key_phrases: Tuple[KeyPhrase, ...] = ()
    insights: Tuple[Insight, ...] = ()
    recommendations: Tuple[Recommendation, ...] = ()
    summary: str = ""
    detailed_analysis: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sentiment": self.sentiment.value,
            "sentimentScore": self.sentiment_score,
            "confidence": self.confidence,
            "urgencyLevel": self.urgency_level.value,
            "customerIntent": self.customer_intent,
            "emotions": [e.to_dict() for e in self.emotions],
            "keyPhrases": [k.to_dict() for k in self.key_phrases],
            "insights": [i.to_dict() for i in self.insights],
            "recommendations": [r.to_dict() for r in self.recommendations],
            "summary": self.summary,
            "detailedAnalysis": self.detailed_analysis,
        }


class ItemStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


@dataclass
class FeedbackItem:
    """One entry of a batch and its lifecycle.

    ``pending → processing → completed | error``. ``result`` is only set once
    completed and ``error`` only once failed.
    """

    id: str
    feedback: str
    status: ItemStatus = ItemStatus.PENDING
    result: Optional[AnalysisResult] = field(default=None)
    error: Optional[str] = field(default=None)

    def start(self) -> None:
        if self.status is not ItemStatus.PENDING:
            raise InvalidTransitionError(
                f"Item {self.id} cannot start processing from '{self.status.value}'."
            )
        self.status = ItemStatus.PROCESSING

    def complete(self, result: AnalysisResult) -> None:
        self._ensure_processing(ItemStatus.COMPLETED)
        self.result = result
        self.status = ItemStatus.COMPLETED

    def fail(self, message: str) -> None:
        self._ensure_processing(ItemStatus.ERROR)
        self.error = message
        self.status = ItemStatus.ERROR

    @property
    def is_terminal(self) -> bool:
        return self.status in (ItemStatus.COMPLETED, ItemStatus.ERROR)

    def _ensure_processing(self, target: ItemStatus) -> None:
        if self.status is not ItemStatus.PROCESSING:
            raise InvalidTransitionError(
                f"Item {self.id} cannot move to '{target.value}' from '{self.status.value}'."
            )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "feedback": self.feedback,
            "status": self.status.value,
        }
        if self.result is not None:
            data["result"] = self.result.to_dict()
        if self.error is not None:
            data["error"] = self.error
        return data
