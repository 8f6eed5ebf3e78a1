"""
Adapters - External storage integrations.

All database access for authoritative records is wrapped here to isolate
domains from storage changes.
"""

from .sqlite import SQLiteRepository

__all__ = [
    "SQLiteRepository",
]
