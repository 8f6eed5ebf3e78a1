"""
SQLite Adapter - Ticket and comment record storage.
"""

from .repository import SQLiteRepository

__all__ = ["SQLiteRepository"]
