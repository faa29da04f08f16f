"""Utility modules for presspipe.

This package contains error formatting helpers and the CLI client factory.
"""

from .exceptions import format_error_for_user, status_code_for

__all__ = [
    "format_error_for_user",
    "status_code_for",
]
