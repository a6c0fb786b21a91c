"""Turn uploaded JSON / CSV / plain-text files into a list of feedback strings.

The feedback column or field is detected heuristically: well-known names such
as ``feedback``, ``comment`` or ``review`` win, otherwise the longest text
value is taken. Only the first :data:`~src.config.MAX_BATCH_ITEMS` entries
are kept so the result can be sent straight to the batch endpoint.
"""
from __future__ import annotations

import csv
import io
import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Union

from src.config import MAX_BATCH_ITEMS
from src.exceptions import ExtractionError

logger = logging.getLogger(__name__)

FEEDBACK_FIELD_CANDIDATES = (
    "feedback",
    "comment",
    "comments",
    "review",
    "reviews",
    "text",
    "message",
    "content",
    "description",
    "query",
    "question",
    "complaint",
    "note",
    "notes",
    "customer_feedback",
    "customerFeedback",
    "user_feedback",
    "userFeedback",
    "customer_comment",
    "customerComment",
    "response",
    "input",
    "body",
)

_HEADER_CELL_RE = re.compile(r"[A-Za-z_]+")
_PARAGRAPH_BREAK_RE = re.compile(r"\n\n+")


@dataclass(frozen=True)
class Extraction:
    """Feedbacks found in a file, already capped to the batch limit."""

    feedbacks: List[str]
    total_found: int

    @property
    def truncated(self) -> bool:
        return self.total_found > len(self.feedbacks)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "feedbacks": self.feedbacks,
            "totalFound": self.total_found,
            "truncated": self.truncated,
        }


# ---------------------------------------------------------------------------
# Field / column detection
# ---------------------------------------------------------------------------
def _match_candidate(names: Sequence[str], *, usable) -> Optional[int]:
    """Index of the first name matching a candidate, exact before partial."""

    lowered = [name.lower() for name in names]
    for candidate in FEEDBACK_FIELD_CANDIDATES:
        for idx, name in enumerate(lowered):
            if name == candidate.lower() and usable(idx):
                return idx
    for candidate in FEEDBACK_FIELD_CANDIDATES:
        for idx, name in enumerate(lowered):
            if candidate.lower() in name and usable(idx):
                return idx
    return None


def find_feedback_field(obj: Dict[str, Any]) -> Optional[str]:
    """Return the key of *obj* most likely to hold the feedback text."""

    keys = list(obj.keys())
    idx = _match_candidate(
        keys, usable=lambda i: isinstance(obj[keys[i]], str) and bool(obj[keys[i]])
    )
    if idx is not None:
        return keys[idx]

    longest: Optional[str] = None
    max_length = 10
    for key, value in obj.items():
        if isinstance(value, str) and len(value) > max_length:
            max_length = len(value)
            longest = key
    return longest


# ---------------------------------------------------------------------------
# Format parsers
# ---------------------------------------------------------------------------
def extract_from_json(data: Any) -> List[str]:
    if isinstance(data, list):
        if not data:
            return []
        first = data[0]
        if isinstance(first, str):
            return [item.strip() for item in data if isinstance(item, str) and item.strip()]
        if isinstance(first, dict):
            field_name = find_feedback_field(first)
            if field_name is None:
                return []
            values = (item.get(field_name) for item in data if isinstance(item, dict))
            return [v.strip() for v in values if isinstance(v, str) and v.strip()]
        return []

    if isinstance(data, dict):
        for value in data.values():
            if isinstance(value, list):
                found = extract_from_json(value)
                if found:
                    return found
    return []


def extract_from_csv(text: str) -> List[str]:
    rows = [row for row in csv.reader(io.StringIO(text)) if any(c.strip() for c in row)]
    if not rows:
        return []

    header = [cell.strip() for cell in rows[0]]
    column = _match_candidate(header, usable=lambda _i: True)
    has_header = any(
        _HEADER_CELL_RE.fullmatch(cell) and len(cell) < 30 for cell in header
    )

    if column is not None and has_header:
        values = (row[column] if column < len(row) else "" for row in rows[1:])
        return [v.strip() for v in values if v.strip()]

    body = rows[1:] if has_header else rows
    return [cell.strip() for cell in (max(row, key=len) for row in body) if cell.strip()]


def extract_from_text(text: str) -> List[str]:
    text = text.replace("\r\n", "\n")
    parsed = [part.strip() for part in _PARAGRAPH_BREAK_RE.split(text) if part.strip()]
    if len(parsed) == 1:
        parsed = [line.strip() for line in text.split("\n") if line.strip()]
    return parsed


def extract_feedbacks(
    filename: str, content: Union[bytes, str], *, limit: int = MAX_BATCH_ITEMS
) -> Extraction:
    """Parse an uploaded file by extension and return its feedbacks.

    Raises
    ------
    ExtractionError
        If the file cannot be decoded or contains no feedback.
    """

    if isinstance(content, bytes):
        try:
            content = content.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise ExtractionError("File must be UTF-8 encoded text.") from exc

    name = (filename or "").lower()
    if name.endswith(".json"):
        try:
            data = json.loads(content)
        except json.JSONDecodeError as exc:
            raise ExtractionError(f"Invalid JSON file: {exc.msg}") from exc
        feedbacks = extract_from_json(data)
    elif name.endswith(".csv"):
        try:
            feedbacks = extract_from_csv(content)
        except csv.Error as exc:
            raise ExtractionError(f"Invalid CSV file: {exc}") from exc
    else:
        feedbacks = extract_from_text(content)

    if not feedbacks:
        raise ExtractionError("Could not extract feedback from the file.")

    if len(feedbacks) > limit:
        logger.info(
            "File %s has %d feedbacks; keeping the first %d", filename, len(feedbacks), limit
        )
    return Extraction(feedbacks=feedbacks[:limit], total_found=len(feedbacks))
