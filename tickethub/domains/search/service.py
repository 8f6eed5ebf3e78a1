"""
Search Service - Entry point used by the ticket/comment services and the API.

Wires the query parser, executor and index store together and turns
ticket/comment lifecycle events into index updates.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from tickethub.config.errors import ValidationError

from .executor import SearchExecutor
from .models import DEFAULT_LIMIT, MAX_LIMIT, Comment, ContentType, SearchResultPage, Ticket
from .query_parser import QueryParser

if TYPE_CHECKING:
    from .contracts import RecordSource
    from .index_store import SearchIndexStore

logger = logging.getLogger(__name__)

__all__ = ["SearchService"]


class SearchService:
    """
    Search over tickets and ticket comments.

    Example:
        >>> service = SearchService(store, records)
        >>> await service.on_ticket_saved(ticket)
        >>> page = await service.search("login bug status:open", limit=20)
    """

    def __init__(
        self,
        store: SearchIndexStore,
        records: RecordSource,
        parser: QueryParser | None = None,
        executor: SearchExecutor | None = None,
        max_limit: int = MAX_LIMIT,
    ) -> None:
        """
        Initialize search service.

        Args:
            store: Index store (owned by the caller, shared by reference)
            records: Authoritative records used by rebuild_index
            parser: Query parser (default: QueryParser())
            executor: Executor (default: SearchExecutor(store))
            max_limit: Page size ceiling; larger requests are clamped
        """
        self._store = store
        self._records = records
        self._parser = parser or QueryParser()
        self._executor = executor or SearchExecutor(store)
        self._max_limit = max_limit

    async def search(
        self,
        raw_query: str | None,
        limit: int = DEFAULT_LIMIT,
        offset: int = 0,
        *,
        labels: list[str] | None = None,
        status: str | None = None,
        assignee_id: int | None = None,
        creator_id: int | None = None,
    ) -> SearchResultPage:
        """
        Parse a DSL query string and run it.

        Page sizes above the service ceiling are clamped to it. Keyword
        filters come from structured callers (e.g. HTTP query
        parameters): labels are added to the DSL labels, the others
        override their DSL counterparts when given.

        Raises:
            ValidationError: limit < 1 or offset < 0
            SearchUnavailableError: Index storage unreachable
        """
        if limit < 1 or offset < 0:
            raise ValidationError(
                "limit must be >= 1 and offset >= 0",
                {"limit": limit, "offset": offset},
            )

        limit = min(limit, self._max_limit)
        query = self._parser.parse(raw_query, limit=limit, offset=offset)

        overrides: dict[str, object] = {}
        if labels:
            overrides["labels"] = query.labels | frozenset(labels)
        if status:
            overrides["status"] = status
        if assignee_id:
            overrides["assignee_id"] = assignee_id
        if creator_id:
            overrides["creator_id"] = creator_id
        if overrides:
            query = query.model_copy(update=overrides)

        return await self._executor.search(query)

    async def rebuild_index(self) -> dict[str, int]:
        """Rebuild both indexes from the record source. Safe to repeat."""
        return await self._store.rebuild_all(self._records)

    # --- Lifecycle events ---

    async def on_ticket_saved(self, ticket: Ticket) -> None:
        """Ticket created or updated."""
        await self._store.index_ticket(ticket)

    async def on_ticket_deleted(self, ticket_id: int) -> None:
        await self._store.remove_from_index(ContentType.TICKET, ticket_id)

    async def on_comment_saved(self, comment: Comment) -> None:
        """Comment created or updated."""
        await self._store.index_comment(comment)

    async def on_comment_deleted(self, comment_id: int) -> None:
        await self._store.remove_from_index(ContentType.COMMENT, comment_id)
