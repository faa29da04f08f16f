"""Error formatting helpers.

This module turns pipeline exceptions into user-facing messages for the CLI
and into HTTP-equivalent status codes for the application-facing results.
"""

from typing import Optional

from ..exceptions import (
    PressPipeError,
    ValidationError,
    AuthenticationError,
    TokenExpiredError,
    APIError,
    RateLimitError,
    UpstreamConnectionError,
)


def status_code_for(error: PressPipeError) -> int:
    """Map a pipeline error onto an HTTP-equivalent status code.

    Args:
        error: The exception raised by a pipeline step

    Returns:
        Status code to report to the caller
    """
    if isinstance(error, ValidationError):
        return 400
    if isinstance(error, AuthenticationError):
        return 401
    if isinstance(error, UpstreamConnectionError):
        return 502
    if isinstance(error, APIError) and error.status_code:
        return error.status_code
    return 500


def upstream_message(error: APIError, default: Optional[str] = None) -> str:
    """Prefer the upstream's own error message over our local one."""
    message = error.response_data.get("message")
    if isinstance(message, str) and message.strip():
        return message
    return default or error.message


def format_error_for_user(error: Exception, debug: bool = False) -> str:
    """Format an error message for user display.

    Args:
        error: The exception to format
        debug: Whether to include debug information

    Returns:
        Formatted error message
    """
    if isinstance(error, ValidationError):
        message = f"Validation error: {error.message}"
        if error.field:
            message += f"\nField: {error.field}"
        return message

    if isinstance(error, TokenExpiredError):
        return f"Authentication error: {error.message}\nRequest a fresh token and try again"

    if isinstance(error, AuthenticationError):
        return f"Authentication error: {error.message}"

    if isinstance(error, RateLimitError):
        message = f"Rate limit exceeded: {error.message}"
        if error.retry_after:
            message += f"\nRetry after: {error.retry_after} seconds"
        return message

    # For API errors, show status code and response data if available
    if isinstance(error, APIError):
        message = f"API error: {upstream_message(error)}"
        if error.status_code:
            message += f"\nStatus code: {error.status_code}"
        if error.response_data and debug:
            message += f"\nResponse: {error.response_data}"
        return message

    if isinstance(error, PressPipeError):
        message = f"Error: {error.message}"
        if error.details and debug:
            message += f"\nDetails: {error.details}"
        return message

    # Default formatting
    if debug:
        return f"Error: {str(error)}\nType: {type(error).__name__}"
    else:
        return f"Error: {str(error)}"
