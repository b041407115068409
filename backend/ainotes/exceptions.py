"""
AI Notes Backend: Custom Exception Hierarchy
=============================================

What:  Application-specific exceptions for the failure modes of the app.
How:   Each exception carries a human-readable message and an optional context
       dict. Global exception handlers (registered in main.py) turn the ones
       that escape a route into `{"error": message}` JSON responses.
Who:   Raised by the collaborator clients and the summarize proxy; caught by
       the Notes Client / Auth Form (converted to inline UI errors) or by the
       global handlers.

Exception Hierarchy:
    AINotesError (base)
    ├── ValidationError          → 400 Bad Request
    ├── ConfigurationError       → 500 Internal Server Error
    ├── DataServiceError         → 502 Bad Gateway
    │   └── AuthenticationError  → 401 Unauthorized
    ├── SummarizationError       → 500 Internal Server Error
    └── RateLimitExceededError   → 429 Too Many Requests
"""

from typing import Any, Dict, Optional


class AINotesError(Exception):
    """
    Base exception for all AI Notes application errors.

    Attributes:
        message:  User-facing error description (safe to show in the UI)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(AINotesError):
    """
    Raised when client input fails validation.

    When:    Empty note content for the summarize proxy, empty form fields.
    HTTP:    400 Bad Request
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class ConfigurationError(AINotesError):
    """
    Raised when a request needs a server setting that is absent.

    When:    GROQ_API_KEY is empty and POST /api/summarize is called.
    HTTP:    500. The request is never forwarded upstream.
    """

    def __init__(
        self,
        message: str = "API key not configured.",
        setting: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if setting:
            ctx["setting"] = setting
        super().__init__(message=message, context=ctx)


class DataServiceError(AINotesError):
    """
    Raised when a Data Service (Supabase) call fails.

    The message is taken from the Data Service's own error payload when it
    has one, so the UI can show e.g. "new row violates row-level security
    policy" instead of a generic string.

    Attributes:
        status_code: HTTP status returned by the Data Service (None on
                     transport failures)
    """

    def __init__(
        self,
        message: str = "The data service request failed. Please try again.",
        status_code: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if status_code is not None:
            ctx["status_code"] = status_code
        super().__init__(message=message, context=ctx)
        self.status_code = status_code


class AuthenticationError(DataServiceError):
    """
    Raised when the identity API rejects credentials or a token.

    When:    Wrong password, expired/invalid access token, bad refresh token.
    HTTP:    401 Unauthorized
    """


class SummarizationError(AINotesError):
    """
    Raised when the Summarization Service call fails or yields no text.

    When:    Upstream non-2xx status, transport error, or a response without
             an extractable completion.
    HTTP:    500. Never retried: retry is a manual repeat by the user.

    Attributes:
        upstream_status: Status code returned by the Summarization Service
    """

    def __init__(
        self,
        message: str = "Failed to get summary.",
        upstream_status: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if upstream_status is not None:
            ctx["upstream_status"] = upstream_status
        super().__init__(message=message, context=ctx)
        self.upstream_status = upstream_status


class RateLimitExceededError(AINotesError):
    """
    Raised when a client exceeds the per-IP request rate limit on /api/.

    HTTP:    429 Too Many Requests, with a Retry-After header
    """

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Rate limit exceeded. Please wait {retry_after} seconds before making more requests."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after
