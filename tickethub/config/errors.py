"""
Error Taxonomy - Consistent error codes across the application.

Usage:
    from tickethub.config.errors import ErrorCode, TicketHubError

    raise TicketHubError(ErrorCode.SEARCH_INDEX_UNAVAILABLE, "Index offline")
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Standardized error codes for machine-readable error responses."""

    # Search errors
    SEARCH_INDEX_UNAVAILABLE = "SEARCH_INDEX_UNAVAILABLE"
    SEARCH_REBUILD_FAILED = "SEARCH_REBUILD_FAILED"

    # Storage errors
    STORAGE_CONNECTION_FAILED = "STORAGE_CONNECTION_FAILED"
    STORAGE_READ_FAILED = "STORAGE_READ_FAILED"
    STORAGE_WRITE_FAILED = "STORAGE_WRITE_FAILED"

    # Security errors
    SECURITY_RATE_LIMITED = "SECURITY_RATE_LIMITED"

    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"


class TicketHubError(Exception):
    """Base exception with error code support."""

    retryable: bool = False

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(f"[{code.value}] {message}")

    def to_dict(self) -> dict[str, Any]:
        """Convert to API-friendly dictionary."""
        return {
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
            "retryable": self.retryable,
        }


# Domain-specific exceptions for cleaner imports
class ValidationError(TicketHubError):
    """Invalid caller input (unknown content type, bad pagination)."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.VALIDATION_ERROR, message, details)


class SearchUnavailableError(TicketHubError):
    """Search could not run because the index storage is unreachable."""

    retryable = True

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.SEARCH_INDEX_UNAVAILABLE, message, details)


class IndexWriteError(TicketHubError):
    """A single-document index mutation failed; the caller may retry."""

    retryable = True

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.STORAGE_WRITE_FAILED, message, details)


class IndexRebuildError(TicketHubError):
    """Full rebuild failed and was rolled back to the previous index state."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.SEARCH_REBUILD_FAILED, message, details)


class StorageError(TicketHubError):
    """Storage/database errors."""

    retryable = True

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.STORAGE_CONNECTION_FAILED, message, details)


class RateLimitError(TicketHubError):
    """Client exceeded its search request budget for the current window."""

    retryable = True

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.SECURITY_RATE_LIMITED, message, details)
