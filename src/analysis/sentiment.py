"""Customer feedback analysis using an OpenAI chat model.

This module exposes ``analyze_feedback`` which sends one feedback text to the
provider and returns a fully populated :class:`AnalysisResult`.

The prompt asks the model to respond *only* with a JSON object (and the
request enables JSON mode). Every field of that object is then normalised on
its own: a missing or malformed field falls back to its default instead of
failing the whole analysis.
"""
from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional, Tuple, Type, TypeVar

from src.analysis.models import (
    AnalysisResult,
    Emotion,
    Insight,
    KeyPhrase,
    Priority,
    Recommendation,
    RecommendationCategory,
    Sentiment,
    Timeframe,
    UrgencyLevel,
)
from src.exceptions import EmptyResponseError, MalformedResponseError
from src.openai_client import CompletionProvider

_logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Enum)
T = TypeVar("T")


@dataclass(frozen=True)
class PromptProfile:
    """System prompt plus output budget for one analysis mode."""

    name: str
    system_prompt: str
    max_tokens: int


SINGLE_PROFILE = PromptProfile(
    name="single",
    system_prompt=(
        "Sentiment analysis AI. Return JSON: "
        '{sentiment:"positive|negative|neutral",sentimentScore:0-100,'
        'confidence:0-100,urgencyLevel:"critical|high|medium|low",'
        'customerIntent:"string",emotions:[{name,intensity:0-100}],'
        "keyPhrases:[{phrase,sentiment}],"
        'insights:[{text,priority:"high|medium|low"}],'
        "recommendations:[{title,description,"
        'category:"customer_service|product|process|communication|technical",'
        'impact:"high|medium|low",timeframe:"immediate|short_term|long_term"}],'
        'summary:"1-2 sentences",detailedAnalysis:"2-3 paragraphs"}'
    ),
    max_tokens=1500,
)

BATCH_PROFILE = PromptProfile(
    name="batch",
    system_prompt=(
        "Analyze customer feedback. Return compact JSON:\n"
        '{"sentiment":"positive|negative|neutral","sentimentScore":0-100,'
        '"confidence":0-100,"urgencyLevel":"critical|high|medium|low",'
        '"customerIntent":"brief intent",'
        '"emotions":[{"name":"emotion","intensity":0-100}],'
        '"keyPhrases":[{"phrase":"text","sentiment":"positive|negative|neutral"}],'
        '"insights":[{"text":"insight","priority":"high|medium|low"}],'
        '"recommendations":[{"title":"title","description":"desc",'
        '"category":"customer_service|product|process|communication|technical",'
        '"impact":"high|medium|low","timeframe":"immediate|short_term|long_term"}],'
        '"summary":"1 sentence","detailedAnalysis":"1 paragraph"}'
    ),
    max_tokens=1024,
)


# ---------------------------------------------------------------------------
# Field normalisation
# ---------------------------------------------------------------------------
def _score(raw: Any, default: float) -> float:
    """Return *raw* as a number clamped to ``[0, 100]`` or *default*."""

    if isinstance(raw, bool):
        return default
    if isinstance(raw, str):
        try:
            raw = float(raw.strip())
        except ValueError:
            return default
    if isinstance(raw, int):
        # Compared as int; huge values must not go through float().
        return max(0, min(100, raw))
    if not isinstance(raw, float) or math.isnan(raw):
        return default

    value = max(0, min(100, raw))
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _choice(raw: Any, enum_cls: Type[E], default: E) -> E:
    if not isinstance(raw, str):
        return default
    token = raw.strip().lower().replace("-", "_").replace(" ", "_")
    try:
        return enum_cls(token)
    except ValueError:
        return default


def _text(raw: Any) -> str:
    return raw.strip() if isinstance(raw, str) else ""


def _entries(raw: Any, build: Callable[[Dict[str, Any]], Optional[T]]) -> Tuple[T, ...]:
    """Build typed entries from a JSON list, skipping unusable ones."""

    if not isinstance(raw, list):
        return ()
    built = (build(entry) for entry in raw if isinstance(entry, dict))
    return tuple(item for item in built if item is not None)


def _emotion(entry: Dict[str, Any]) -> Optional[Emotion]:
    name = _text(entry.get("name"))
    if not name:
        return None
    return Emotion(name=name, intensity=_score(entry.get("intensity"), 0))


def _key_phrase(entry: Dict[str, Any]) -> Optional[KeyPhrase]:
    phrase = _text(entry.get("phrase"))
    if not phrase:
        return None
    return KeyPhrase(
        phrase=phrase,
        sentiment=_choice(entry.get("sentiment"), Sentiment, Sentiment.NEUTRAL),
    )


def _insight(entry: Dict[str, Any]) -> Optional[Insight]:
    text = _text(entry.get("text"))
    if not text:
        return None
    return Insight(
        text=text, priority=_choice(entry.get("priority"), Priority, Priority.MEDIUM)
    )


def _recommendation(entry: Dict[str, Any]) -> Optional[Recommendation]:
    title = _text(entry.get("title"))
    if not title:
        return None
    return Recommendation(
        title=title,
        description=_text(entry.get("description")),
        category=_choice(
            entry.get("category"),
            RecommendationCategory,
            RecommendationCategory.CUSTOMER_SERVICE,
        ),
        impact=_choice(entry.get("impact"), Priority, Priority.MEDIUM),
        timeframe=_choice(entry.get("timeframe"), Timeframe, Timeframe.SHORT_TERM),
    )


def normalize_result(payload: Dict[str, Any]) -> AnalysisResult:
    """Build an :class:`AnalysisResult` from the decoded model *payload*.

    Never raises: each field degrades to its default independently.
    """

    return AnalysisResult(
        sentiment=_choice(payload.get("sentiment"), Sentiment, Sentiment.NEUTRAL),
        sentiment_score=_score(payload.get("sentimentScore"), 50),
        confidence=_score(payload.get("confidence"), 0),
        urgency_level=_choice(
            payload.get("urgencyLevel"), UrgencyLevel, UrgencyLevel.MEDIUM
        ),
        customer_intent=_text(payload.get("customerIntent")),
        emotions=_entries(payload.get("emotions"), _emotion),
        key_phrases=_entries(payload.get("keyPhrases"), _key_phrase),
        insights=_entries(payload.get("insights"), _insight),
        recommendations=_entries(payload.get("recommendations"), _recommendation),
        summary=_text(payload.get("summary")),
        detailed_analysis=_text(payload.get("detailedAnalysis")),
    )


def _parse_response(content: str) -> AnalysisResult:
    """Decode the model's raw *content* into a normalised result."""

    try:
        payload: Any = json.loads(content)
    except json.JSONDecodeError as exc:
        raise MalformedResponseError() from exc

    if not isinstance(payload, dict):
        raise MalformedResponseError()

    return normalize_result(payload)


def analyze_feedback(
    text: str,
    provider: CompletionProvider,
    *,
    profile: PromptProfile = BATCH_PROFILE,
) -> AnalysisResult:
    """Analyse one feedback *text* with a single call to *provider*.

    Raises
    ------
    EmptyResponseError
        If the provider returned no content.
    MalformedResponseError
        If the content is not a JSON object.
    UpstreamError
        Propagated unchanged from the provider.
    """

    messages = [
        {"role": "system", "content": profile.system_prompt},
        {"role": "user", "content": text},
    ]

    content = provider.chat_completion(
        messages,
        response_format={"type": "json_object"},
        max_completion_tokens=profile.max_tokens,
    )
    if not content or not content.strip():
        _logger.debug("Empty %s response from provider", profile.name)
        raise EmptyResponseError()

    return _parse_response(content)
