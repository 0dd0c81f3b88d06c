"""
Application exception hierarchy.

Services raise these instead of HTTPException so the business layer stays
independent of the web framework. The handlers in
quotebuilder.core.exception_handlers map them to JSON responses.
"""

from typing import Any, Dict, Optional


class AppException(Exception):
    """
    Base class for every application error.

    Attributes:
        message: Human-readable message naming the rule that was violated
        status_code: HTTP status used when the error reaches the API layer
        context: Extra debugging data (ids, statuses) returned as details
    """

    status_code: int = 500
    default_message: str = "An unexpected error occurred"

    def __init__(
        self,
        message: Optional[str] = None,
        status_code: Optional[int] = None,
        **context: Any,
    ):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        self.context = context
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the error for a JSON response."""
        sensitive_fields = {"password", "token", "secret", "key"}
        details = {
            k: v for k, v in self.context.items() if k.lower() not in sensitive_fields
        }
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "statusCode": self.status_code,
            "details": details or None,
        }


class AuthenticationError(AppException):
    """Missing, invalid or expired credentials."""

    status_code = 401
    default_message = "Invalid or expired authentication token"


class AuthorizationError(AppException):
    """The caller's role lacks the capability required for the action."""

    status_code = 403
    default_message = "You do not have permission to perform this action"


class NotFoundError(AppException):
    """A quote, product, client or other record does not exist."""

    status_code = 404
    default_message = "Resource not found"

    def __init__(self, resource: str, resource_id: Any = None, **context: Any):
        message = f"{resource} not found"
        if resource_id is not None:
            message = f"{resource} {resource_id} not found"
        super().__init__(message, resource=resource, resource_id=resource_id, **context)


class ValidationError(AppException):
    """Malformed input that cannot be clamped into something sensible."""

    status_code = 422
    default_message = "Validation failed"


class IllegalTransitionError(AppException):
    """A lifecycle event was attempted from a status that does not allow it."""

    status_code = 409
    default_message = "Illegal quote status transition"


class ConflictError(AppException):
    """
    A guarded write lost a race.

    Raised when the quote's status or version changed between the read and
    the conditional update.
    """

    status_code = 409
    default_message = "The quote was modified by someone else, reload and retry"
