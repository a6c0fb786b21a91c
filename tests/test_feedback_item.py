"""Tests for the FeedbackItem lifecycle and wire format."""
from __future__ import annotations

import pytest

from src.analysis.models import AnalysisResult, FeedbackItem, ItemStatus
from src.exceptions import InvalidTransitionError


def _item() -> FeedbackItem:
    return FeedbackItem(id="feedback-1", feedback="Loved it")


def test_happy_path_transitions():
    item = _item()
    item.start()
    assert item.status is ItemStatus.PROCESSING
    assert item.result is None and item.error is None

    result = AnalysisResult(sentiment_score=90)
    item.complete(result)
    assert item.status is ItemStatus.COMPLETED
    assert item.result is result
    assert item.error is None
    assert item.is_terminal


def test_failure_records_message_only():
    item = _item()
    item.start()
    item.fail("Analysis failed after retries")
    assert item.status is ItemStatus.ERROR
    assert item.error == "Analysis failed after retries"
    assert item.result is None


def test_cannot_complete_without_processing():
    with pytest.raises(InvalidTransitionError):
        _item().complete(AnalysisResult())


def test_terminal_items_never_reenter_processing():
    item = _item()
    item.start()
    item.fail("nope")
    with pytest.raises(InvalidTransitionError):
        item.start()
    with pytest.raises(InvalidTransitionError):
        item.complete(AnalysisResult())


def test_to_dict_omits_absent_fields():
    item = _item()
    assert item.to_dict() == {"id": "feedback-1", "feedback": "Loved it", "status": "pending"}

    item.start()
    item.complete(AnalysisResult())
    data = item.to_dict()
    assert data["status"] == "completed"
    assert data["result"]["sentiment"] == "neutral"
    assert "error" not in data
