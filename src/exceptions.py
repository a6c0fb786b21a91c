"""Project-wide custom exception types.

Every error that can reach an HTTP response derives from
:class:`AnalysisError` and carries the status code, a short machine ``code``
and a human-readable ``message`` to show the caller. Internal detail belongs
in the log, not in ``message``.
"""
from __future__ import annotations

from typing import Any, Dict, Optional


class AnalysisError(RuntimeError):
    """Base class for failures while analysing a single feedback text."""

    status_code: int = 500
    code: str = "analysis_failed"
    title: str = "Analysis failed"
    default_message: str = "An unexpected error occurred."

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.title, "code": self.code, "message": self.message}


class UpstreamError(AnalysisError):
    """The provider failed in a way we have no specific mapping for."""

    code = "upstream_error"
    default_message = "The analysis provider returned an error. Please try again."


class UpstreamAuthError(UpstreamError):
    """The provider rejected our credentials."""

    status_code = 401
    code = "upstream_auth"
    title = "Invalid API key"
    default_message = "Check your OpenAI API key configuration."


class UpstreamRateLimitError(UpstreamError):
    status_code = 429
    code = "upstream_rate_limit"
    title = "Rate limit exceeded"
    default_message = "Please wait and try again."


class UpstreamTimeoutError(UpstreamError):
    status_code = 503
    code = "upstream_timeout"
    title = "Analysis timed out"
    default_message = "The analysis provider took too long to respond. Please try again."


class EmptyResponseError(AnalysisError):
    """The provider answered without any content."""

    code = "empty_response"
    title = "Empty response from AI"
    default_message = "Please try again."


class MalformedResponseError(AnalysisError):
    """The provider answered with something that is not a JSON object."""

    code = "malformed_response"
    title = "Malformed response from AI"
    default_message = "The analysis could not be read. Please try again."


class ExtractionError(ValueError):
    """Raised when an uploaded file yields no usable feedback."""


class InvalidTransitionError(RuntimeError):
    """Raised when a feedback item is moved to a status it cannot reach."""


class BatchAnalysisError(AnalysisError):
    """A batch aborted outside the per-item retry loop."""

    code = "batch_failed"
    title = "Batch analysis failed"
