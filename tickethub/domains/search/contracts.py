"""
Search Contracts - Interfaces for search domain.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from .models import Comment, StructuredQuery, SearchResultPage, Ticket


@runtime_checkable
class RecordSource(Protocol):
    """Authoritative ticket/comment records, read only during a rebuild."""

    async def get_all_tickets(self) -> Sequence[Ticket]:
        """Return every ticket."""
        ...

    async def get_all_comments_of_type(self, target_type: str) -> Sequence[Comment]:
        """Return every comment attached to the given target type."""
        ...


@runtime_checkable
class SearchEngine(Protocol):
    """Contract for search implementations."""

    async def search(self, query: StructuredQuery) -> SearchResultPage:
        """Execute search and return one page of results."""
        ...
