"""Exception classes for the publishing pipeline.

This module defines custom exception classes used throughout the application
for proper error handling and user feedback.
"""

from typing import Optional, Dict, Any


class PressPipeError(Exception):
    """Base exception class for all publishing pipeline errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error message
            details: Optional additional error details
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigError(PressPipeError):
    """Exception raised for configuration-related errors."""
    pass


class ValidationError(PressPipeError):
    """Exception raised when a submission fails local validation.

    Raised before any upstream call is made.
    """

    def __init__(self, message: str, field: Optional[str] = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.field = field


class AuthenticationError(PressPipeError):
    """Exception raised for a missing or unusable bearer token."""
    pass


class TokenExpiredError(AuthenticationError):
    """Exception raised when the bearer token's exp claim has passed."""
    pass


class APIError(PressPipeError):
    """Base exception for upstream API errors."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_data: Optional[Dict[str, Any]] = None
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error message
            status_code: HTTP status code
            response_data: Raw response data from the upstream CMS
        """
        super().__init__(message)
        self.status_code = status_code
        self.response_data = response_data or {}

    @property
    def error_code(self) -> Optional[str]:
        """The upstream's machine-readable error code (e.g. ``term_exists``)."""
        code = self.response_data.get("code")
        return str(code) if code else None


class BadRequestError(APIError):
    """Exception raised for 400 Bad Request errors."""
    pass


class UnauthorizedError(APIError):
    """Exception raised for 401 Unauthorized errors."""
    pass


class ForbiddenError(APIError):
    """Exception raised for 403 Forbidden errors."""
    pass


class NotFoundError(APIError):
    """Exception raised for 404 Not Found errors."""
    pass


class ServerError(APIError):
    """Exception raised for 5xx server errors."""
    pass


class RateLimitError(APIError):
    """Exception raised for 429 Rate Limit errors."""

    def __init__(
        self,
        message: str,
        retry_after: Optional[int] = None,
        **kwargs: Any
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error message
            retry_after: Seconds the upstream asked us to wait
            **kwargs: Additional arguments passed to parent class
        """
        super().__init__(message, **kwargs)
        self.retry_after = retry_after


class UpstreamConnectionError(APIError):
    """Exception raised when the upstream CMS could not be reached."""
    pass


class MalformedResponseError(APIError):
    """Exception raised when a 2xx response body is not JSON.

    The upstream accepted the call; only its answer is unusable.
    """
    pass


class UpstreamRejection(APIError):
    """Exception raised when the upstream refuses a create or update call.

    ``response_data`` carries the upstream error body verbatim.
    """
    pass


class UnknownStatusError(ValueError):
    """Raised for an editorial status outside the closed set.

    Not a PressPipeError: the pipeline never turns it into a failed result.
    """
    pass
