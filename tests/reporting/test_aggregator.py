"""Unit tests for reporting.aggregator."""

from __future__ import annotations

import json

from src.analysis.models import (
    AnalysisResult,
    Emotion,
    FeedbackItem,
    KeyPhrase,
    Recommendation,
    Sentiment,
    UrgencyLevel,
)
from src.reporting.aggregator import summarize_batch


def _completed(idx: int, **fields) -> FeedbackItem:
    item = FeedbackItem(id=f"feedback-{idx}", feedback=f"text {idx}")
    item.start()
    item.complete(AnalysisResult(**fields))
    return item


def _failed(idx: int) -> FeedbackItem:
    item = FeedbackItem(id=f"feedback-{idx}", feedback=f"text {idx}")
    item.start()
    item.fail("Analysis failed after retries")
    return item


def _emotions(*names):
    return tuple(Emotion(name=n, intensity=50) for n in names)


def _phrases(*phrases):
    return tuple(KeyPhrase(phrase=p) for p in phrases)


def test_counts_and_averages_only_over_completed_items():
    items = [
        _completed(1, sentiment=Sentiment.POSITIVE, sentiment_score=90, confidence=80),
        _failed(2),
        _completed(3, sentiment=Sentiment.NEGATIVE, sentiment_score=11, confidence=71),
        _completed(4, sentiment=Sentiment.NEUTRAL, sentiment_score=50, confidence=60),
        _failed(5),
    ]

    summary = summarize_batch(items)

    assert summary.total_count == 5
    assert (summary.positive_count, summary.negative_count, summary.neutral_count) == (1, 1, 1)
    assert summary.average_sentiment_score == 50  # 151 / 3 = 50.33
    assert summary.average_confidence == 70  # 211 / 3 = 70.33


def test_average_rounds_half_up():
    items = [
        _completed(1, sentiment_score=50, confidence=0),
        _completed(2, sentiment_score=51, confidence=1),
    ]
    summary = summarize_batch(items)
    assert summary.average_sentiment_score == 51
    assert summary.average_confidence == 1


def test_all_failed_batch_has_zeroed_statistics():
    summary = summarize_batch([_failed(i) for i in range(1, 5)])

    assert summary.to_dict() == {
        "totalCount": 4,
        "positiveCount": 0,
        "negativeCount": 0,
        "neutralCount": 0,
        "averageSentimentScore": 0,
        "averageConfidence": 0,
        "topEmotions": [],
        "urgencyBreakdown": {"critical": 0, "high": 0, "medium": 0, "low": 0},
        "commonThemes": [],
        "overallRecommendations": [],
    }


def test_top_emotions_capped_and_ties_keep_first_seen_order():
    items = [
        _completed(1, emotions=_emotions("calm", "joy", "anger")),
        _completed(2, emotions=_emotions("joy", "trust", "fear", "surprise")),
        _completed(3, emotions=_emotions("anger", "sadness")),
    ]

    top = summarize_batch(items).top_emotions

    assert [(e.name, e.count) for e in top] == [
        ("joy", 2),
        ("anger", 2),
        ("calm", 1),
        ("trust", 1),
        ("fear", 1),
    ]


def test_urgency_breakdown():
    items = [
        _completed(1, urgency_level=UrgencyLevel.CRITICAL),
        _completed(2, urgency_level=UrgencyLevel.HIGH),
        _completed(3, urgency_level=UrgencyLevel.HIGH),
        _completed(4),
        _failed(5),
    ]
    assert summarize_batch(items).urgency_breakdown.to_dict() == {
        "critical": 1,
        "high": 2,
        "medium": 1,
        "low": 0,
    }


def test_common_themes_need_two_items_and_ignore_case():
    items = [
        _completed(1, key_phrases=_phrases("Slow Shipping", "refund", "refund")),
        _completed(2, key_phrases=_phrases("slow shipping", "great app")),
        _completed(3, key_phrases=_phrases("Great App", "SLOW SHIPPING")),
    ]

    assert summarize_batch(items).common_themes == ["slow shipping", "great app"]


def test_common_themes_capped_at_ten():
    phrases = [f"phrase {n}" for n in range(12)]
    items = [_completed(i, key_phrases=_phrases(*phrases)) for i in range(1, 3)]

    themes = summarize_batch(items).common_themes

    assert themes == phrases[:10]


def test_recommendations_grouped_by_title():
    first = Recommendation(title="Faster Shipping", description="first body")
    items = [
        _completed(1, recommendations=(Recommendation(title="Train staff"), first)),
        _completed(2, recommendations=(Recommendation(title="faster shipping", description="other"),)),
        _completed(
            3,
            recommendations=tuple(
                Recommendation(title=t) for t in ("A", "B", "C", "D", "FASTER SHIPPING")
            ),
        ),
    ]

    recs = summarize_batch(items).overall_recommendations

    assert len(recs) == 5
    assert recs[0] is first
    assert [r.title for r in recs[1:]] == ["Train staff", "A", "B", "C"]


def test_summary_is_deterministic_and_does_not_mutate_items():
    items = [
        _completed(
            1,
            sentiment=Sentiment.POSITIVE,
            emotions=_emotions("joy", "trust"),
            key_phrases=_phrases("support", "speed"),
            recommendations=(Recommendation(title="Keep it up"),),
        ),
        _failed(2),
        _completed(
            3,
            emotions=_emotions("trust", "joy"),
            key_phrases=_phrases("Speed", "Support"),
            recommendations=(Recommendation(title="keep it up"),),
        ),
    ]
    before = [item.to_dict() for item in items]

    first = json.dumps(summarize_batch(items).to_dict())
    second = json.dumps(summarize_batch(items).to_dict())

    assert first == second
    assert [item.to_dict() for item in items] == before


def test_empty_item_list():
    summary = summarize_batch([])
    assert summary.total_count == 0
    assert summary.average_sentiment_score == 0
