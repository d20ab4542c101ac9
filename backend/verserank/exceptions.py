"""
VerseRank Backend: Custom Exception Hierarchy
==============================================

What:  Application-specific exceptions for the error scenarios of the API.
Why:   Targeted error handling with the right HTTP status code and a
       user-friendly message, without leaking storage internals to clients.
How:   Each exception carries a message and an optional context dict.
       Global exception handlers (registered in main.py) turn them into
       structured JSON error responses.
Who:   Raised by services and dependencies; caught by global handlers.

Exception Hierarchy:
    VerseRankError (base)
    ├── ValidationError        → 400 Bad Request (out-of-range paging, bad verse ids)
    ├── AuthenticationError    → 401 Unauthorized (no principal header)
    ├── NotFoundError          → 404 Not Found (unknown user)
    └── DatabaseError          → 500 Internal Server Error (opaque)

No retries happen inside the service layer: transient storage errors surface
as DatabaseError and the client owns the retry policy.
"""

from typing import Any, Dict, Optional


class VerseRankError(Exception):
    """
    Base exception for all VerseRank application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
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


class ValidationError(VerseRankError):
    """
    Raised when client input violates a business constraint.

    When:    limit/offset outside their bounds, malformed verse identifiers.
    HTTP:    400 Bad Request

    Example response:
        {
            "error": "validation_error",
            "message": "limit must be between 1 and 500",
            "details": {"field": "limit", "value": 0}
        }
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


class AuthenticationError(VerseRankError):
    """
    Raised when the request carries no usable authenticated principal.

    HTTP:    401 Unauthorized
    """

    def __init__(
        self,
        message: str = "Authentication required",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(VerseRankError):
    """
    Raised when a requested resource does not exist.

    When:    The principal's user row is missing (deleted account, stale token).
    HTTP:    404 Not Found

    SQLAlchemy returns None for missing rows; the service layer converts
    that None into this exception.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class DatabaseError(VerseRankError):
    """
    Raised when database operations fail unexpectedly.

    When:    Connection lost mid-transaction, lock timeout, constraint violation.
    HTTP:    500 Internal Server Error

    Security Note:
        The message returned to the client is always generic. The original
        exception type and the ids involved go into `context`, which is
        logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
