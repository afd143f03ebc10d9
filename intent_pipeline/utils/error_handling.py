"""Standardized error handling utilities for the intent pipeline."""

from typing import Any

from ..exceptions import ValidationError


def create_error_response(error: Exception | str) -> dict[str, Any]:
    """Create a standardized error response for callers of the core API.

    Args:
        error: The error that occurred

    Returns:
        Dictionary with ``success``, ``error`` and ``errorType`` keys, plus
        ``details`` for validation errors that carry per-item problems

    """
    if isinstance(error, Exception):
        response: dict[str, Any] = {
            "success": False,
            "error": str(error),
            "errorType": type(error).__name__,
        }
        if isinstance(error, ValidationError) and error.errors:
            response["details"] = [str(e) for e in error.errors]
        return response

    return {"success": False, "error": error, "errorType": "Error"}

