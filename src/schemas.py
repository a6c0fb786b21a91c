from typing import Annotated, List

from pydantic import BaseModel, Field

from src.config import MAX_BATCH_ITEMS, MAX_FEEDBACK_CHARS, MIN_FEEDBACK_CHARS

FeedbackText = Annotated[
    str, Field(min_length=MIN_FEEDBACK_CHARS, max_length=MAX_FEEDBACK_CHARS)
]


class AnalyzeRequest(BaseModel):
    feedback: FeedbackText


class BatchAnalyzeRequest(BaseModel):
    feedbacks: List[FeedbackText] = Field(..., min_length=1, max_length=MAX_BATCH_ITEMS)


# Sample feedback for quick testing
SAMPLE_FEEDBACKS = [
    "The product arrived quickly and exceeded my expectations. Great quality and "
    "the customer service team was very helpful when I had questions.",
    "I've been waiting 3 weeks for my order. No tracking updates, no response from "
    "support. This is completely unacceptable.",
    "The quality is okay for the price, but shipping took longer than expected. "
    "Would consider buying again if delivery improves.",
]
