"""Chunked concurrent analysis of a feedback batch.

The scheduler walks the batch in fixed-size chunks. All items of a chunk are
analysed concurrently on a thread pool and the chunk is joined before the
next one starts; a short pause between chunks keeps the request rate to the
provider bounded.

Per-item failures are expected: the item callable returns ``None`` once its
retries are exhausted and the item is marked ``error`` while its siblings
carry on. Only exceptions escaping the item callable (bugs, broken
infrastructure) abort the batch, after the current chunk has joined; the
offending item is marked ``error`` before the exception propagates.
"""
from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from src.analysis.models import AnalysisResult, FeedbackItem, ItemStatus

logger = logging.getLogger(__name__)

SOFT_FAILURE_MESSAGE = "Analysis failed after retries"
UNEXPECTED_FAILURE_MESSAGE = "Analysis aborted by an unexpected error"

ItemAnalyzer = Callable[[str], Optional[AnalysisResult]]


def build_items(feedbacks: Sequence[str]) -> List[FeedbackItem]:
    """Create pending items with ids ``feedback-1`` … ``feedback-N``."""
    return [
        FeedbackItem(id=f"feedback-{index}", feedback=text)
        for index, text in enumerate(feedbacks, start=1)
    ]


@dataclass
class BatchOutcome:
    """Items of a finished batch, in input order."""

    items: List[FeedbackItem]

    @property
    def results(self) -> List[AnalysisResult]:
        """Results of the completed items, in input order."""
        return [
            item.result
            for item in self.items
            if item.status is ItemStatus.COMPLETED and item.result is not None
        ]

    @property
    def failed_count(self) -> int:
        return sum(1 for item in self.items if item.status is ItemStatus.ERROR)


class BatchScheduler:
    """Run *analyze_item* over a batch, one chunk at a time."""

    def __init__(
        self,
        analyze_item: ItemAnalyzer,
        *,
        chunk_size: int = 5,
        chunk_delay: float = 0.3,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if chunk_size < 1:
            raise ValueError("chunk_size must be at least 1")
        if chunk_delay < 0:
            raise ValueError("chunk_delay must be non-negative")
        self._analyze_item = analyze_item
        self._chunk_size = chunk_size
        self._chunk_delay = chunk_delay
        self._sleep = sleep

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def run(self, feedbacks: Sequence[str]) -> BatchOutcome:
        """Analyse every text in *feedbacks* and return all items."""
        return self.run_items(build_items(feedbacks))

    def run_items(self, items: List[FeedbackItem]) -> BatchOutcome:
        """Drive already-built pending *items* through analysis in chunks."""

        total = len(items)
        chunk_count = -(-total // self._chunk_size)
        logger.info(
            "Starting batch of %d item(s) in %d chunk(s) of up to %d",
            total,
            chunk_count,
            self._chunk_size,
        )

        with ThreadPoolExecutor(
            max_workers=self._chunk_size, thread_name_prefix="batch"
        ) as executor:
            for number, start in enumerate(range(0, total, self._chunk_size), start=1):
                chunk = items[start : start + self._chunk_size]
                self._run_chunk(executor, chunk)
                logger.debug("Chunk %d/%d finished", number, chunk_count)

                if number < chunk_count and self._chunk_delay:
                    self._sleep(self._chunk_delay)

        outcome = BatchOutcome(items=items)
        logger.info(
            "Batch finished: %d completed, %d failed",
            total - outcome.failed_count,
            outcome.failed_count,
        )
        return outcome

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _run_chunk(self, executor: ThreadPoolExecutor, chunk: List[FeedbackItem]) -> None:
        for item in chunk:
            item.start()
        futures = [executor.submit(self._process, item) for item in chunk]
        # Barrier: every item of the chunk reaches a terminal state first.
        wait(futures)
        for future in futures:
            future.result()

    def _process(self, item: FeedbackItem) -> None:
        try:
            result = self._analyze_item(item.feedback)
        except Exception:
            # Keep the chunk terminal even on the abort path.
            item.fail(UNEXPECTED_FAILURE_MESSAGE)
            logger.error("Item %s aborted the batch", item.id, exc_info=True)
            raise
        if result is None:
            item.fail(SOFT_FAILURE_MESSAGE)
        else:
            item.complete(result)
