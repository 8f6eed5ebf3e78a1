"""
Configuration - Application settings and error taxonomy.
"""

from .errors import (
    ErrorCode,
    IndexRebuildError,
    IndexWriteError,
    RateLimitError,
    SearchUnavailableError,
    StorageError,
    TicketHubError,
    ValidationError,
)
from .settings import Settings, get_settings

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    # Errors
    "ErrorCode",
    "TicketHubError",
    "ValidationError",
    "SearchUnavailableError",
    "IndexWriteError",
    "IndexRebuildError",
    "StorageError",
    "RateLimitError",
]
