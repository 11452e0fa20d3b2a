"""Error taxonomy for the analysis pipeline.

Every error that can reach a caller is a :class:`LinkRayError` carrying a
stable machine ``kind``, a short human-readable ``message`` and the HTTP
status code the API layer maps it to.  Upstream exception detail is logged
where it is caught and never copied into ``message``.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    INVALID_URL = "invalid_url"
    FETCH_TIMEOUT = "fetch_timeout"
    FETCH_FAILED = "fetch_failed"
    NO_CONTENT = "no_content"
    AI_ANALYSIS_FAILED = "ai_analysis_failed"
    PERSISTENCE_FAILED = "persistence_failed"
    UNAUTHENTICATED = "unauthenticated"
    INTERNAL_ERROR = "internal_error"


class LinkRayError(Exception):
    kind: ErrorKind = ErrorKind.INTERNAL_ERROR
    status_code: int = 500
    default_message: str = "An unexpected error occurred. Please try again."

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict[str, str]:
        return {"kind": self.kind.value, "message": self.message}


class InvalidURLError(LinkRayError):
    kind = ErrorKind.INVALID_URL
    status_code = 400
    default_message = "Invalid URL format"


class FetchTimeoutError(LinkRayError):
    kind = ErrorKind.FETCH_TIMEOUT
    status_code = 504
    default_message = "Request timeout: Site took too long to respond"


class FetchFailedError(LinkRayError):
    """The site could not be fetched.  ``status`` is the upstream HTTP status
    when one was received, ``None`` for transport-level failures."""

    kind = ErrorKind.FETCH_FAILED
    status_code = 502
    default_message = "Failed to fetch website"

    def __init__(self, message: Optional[str] = None, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class NoContentError(LinkRayError):
    kind = ErrorKind.NO_CONTENT
    status_code = 422
    default_message = "Unable to extract meaningful content from this website"

    def __init__(
        self,
        message: Optional[str] = None,
        seed_error: Optional[LinkRayError] = None,
    ) -> None:
        super().__init__(message)
        self.seed_error = seed_error


class AIAnalysisFailedError(LinkRayError):
    kind = ErrorKind.AI_ANALYSIS_FAILED
    status_code = 503
    default_message = (
        "AI analysis failed. This is likely due to API quota limits or "
        "service issues. Please try again later."
    )


class PersistenceFailedError(LinkRayError):
    kind = ErrorKind.PERSISTENCE_FAILED
    status_code = 500
    default_message = "Failed to save scan"


class UnauthenticatedError(LinkRayError):
    kind = ErrorKind.UNAUTHENTICATED
    status_code = 401
    default_message = "Not authenticated"


class InternalError(LinkRayError):
    pass
