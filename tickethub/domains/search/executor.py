"""
Search Executor - Ranked, merged search over the ticket and comment indexes.

Features:
- Free text to FTS5 match expression (per-word prefix match, quoted phrases)
- Post-filters the index cannot express (status, labels, assignee, creator)
- Single ranking across both content types, then pagination
- Highlighted text and bounded snippets per result
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

import aiosqlite

from tickethub.config.errors import SearchUnavailableError, StorageError

from .highlighter import SNIPPET_MAX_LENGTH, combine_highlights, snippet
from .models import (
    STATUS_ALL,
    ContentType,
    IndexHit,
    SearchResult,
    SearchResultPage,
    StructuredQuery,
)

if TYPE_CHECKING:
    from .index_store import SearchIndexStore

logger = logging.getLogger(__name__)

__all__ = ["SearchExecutor", "build_match_expression", "comment_title"]

# A double-quoted phrase, or a bare run of non-whitespace.
_WORD = re.compile(r'"([^"]*)"|(\S+)')
# Letters or digits in any script; a word without one yields no FTS token.
_HAS_TOKEN = re.compile(r"[^\W_]")


def build_match_expression(term: str) -> str | None:
    """
    Translate free text into an FTS5 match expression.

    Bare words become prefix terms and quoted phrases match exactly. All
    terms are implicitly ANDed; FTS5 operator words (OR, NOT, NEAR) are
    quoted like any other word and carry no operator meaning.

    Returns:
        The expression, or None for a wildcard (match everything)
    """
    parts: list[str] = []
    for match in _WORD.finditer(term):
        phrase, word = match.groups()
        if phrase is not None:
            if _HAS_TOKEN.search(phrase):
                parts.append(f'"{phrase}"')
        elif _HAS_TOKEN.search(word):
            escaped = word.replace('"', '""')
            parts.append(f'"{escaped}"*')

    return " ".join(parts) or None


def comment_title(target_id: int | None) -> str:
    """Placeholder title for a comment result."""
    return f"Reference to ticket #{target_id}"


class SearchExecutor:
    """
    Runs structured queries against the index store.

    Example:
        >>> executor = SearchExecutor(store)
        >>> page = await executor.search(parse_query("login status:open"))
    """

    def __init__(
        self,
        store: SearchIndexStore,
        snippet_max_length: int = SNIPPET_MAX_LENGTH,
    ) -> None:
        """
        Initialize executor.

        Args:
            store: Index store to read from
            snippet_max_length: Maximum snippet length in characters
        """
        self._store = store
        self._snippet_max_length = snippet_max_length

    async def search(self, query: StructuredQuery) -> SearchResultPage:
        """
        Execute a search.

        Args:
            query: Parsed query with pagination

        Returns:
            One page of results ordered by rank, then newest first

        Raises:
            SearchUnavailableError: The index storage could not be read
        """
        expression = build_match_expression(query.query)
        try:
            async with self._store.read_snapshot():
                try:
                    hits, total = await self._collect(query, expression)
                except aiosqlite.OperationalError as e:
                    if expression is None or "fts5" not in str(e):
                        raise
                    logger.warning(
                        "Match expression %r rejected (%s); falling back to wildcard",
                        expression,
                        e,
                    )
                    hits, total = await self._collect(query, None)
        except (aiosqlite.Error, StorageError) as e:
            logger.error("Search failed: %s", e)
            raise SearchUnavailableError(
                "Search is temporarily unavailable", {"reason": str(e)}
            ) from e

        hits.sort(key=lambda h: (h.rank, -h.document.created_at.timestamp()))
        window = hits[query.offset : query.offset + query.limit]
        results = [self._to_result(hit) for hit in window]

        logger.info(
            "Search: query='%s' -> %d results (candidates=%d, total=%d)",
            query.query[:50],
            len(results),
            len(hits),
            total,
        )

        return SearchResultPage(
            results=results,
            total_count=total,
            limit=query.limit,
            offset=query.offset,
            query=query.query,
        )

    async def _collect(
        self, query: StructuredQuery, expression: str | None
    ) -> tuple[list[IndexHit], int]:
        """Gather post-filtered hits from both indexes plus the raw match total."""
        ticket_hits = await self._store.match(ContentType.TICKET, expression)
        comment_hits = await self._store.match(ContentType.COMMENT, expression)

        # Total reflects text matches before post-filters.
        total = await self._store.count(
            ContentType.TICKET, expression
        ) + await self._store.count(ContentType.COMMENT, expression)

        hits = [h for h in ticket_hits if _ticket_passes(h, query)]
        hits.extend(h for h in comment_hits if _comment_passes(h, query))
        return hits, total

    def _to_result(self, hit: IndexHit) -> SearchResult:
        doc = hit.document
        if doc.content_type is ContentType.TICKET:
            highlighted = combine_highlights(hit.title_highlight, hit.body_highlight)
            return SearchResult(
                type="ticket",
                id=doc.doc_id,
                title=doc.title or "",
                body=doc.body,
                labels=list(doc.labels),
                status=doc.status,
                assignee_id=doc.assignee_id,
                creator_id=doc.creator_id,
                created_at=doc.created_at,
                updated_at=doc.updated_at,
                rank=hit.rank,
                highlighted=highlighted,
                snippet=snippet(highlighted, self._snippet_max_length),
            )

        return SearchResult(
            type="comment",
            id=doc.doc_id,
            title=comment_title(doc.target_id),
            body=doc.body,
            creator_id=doc.creator_id,
            created_at=doc.created_at,
            updated_at=doc.updated_at,
            target_id=doc.target_id,
            rank=hit.rank,
            highlighted=hit.body_highlight,
            snippet=snippet(hit.body_highlight, self._snippet_max_length),
        )


def _ticket_passes(hit: IndexHit, query: StructuredQuery) -> bool:
    doc = hit.document
    if query.status and query.status != STATUS_ALL and doc.status != query.status:
        return False
    if query.labels and not query.labels.issubset(doc.labels):
        return False
    if query.assignee_id > 0 and doc.assignee_id != query.assignee_id:
        return False
    if query.creator_id > 0 and doc.creator_id != query.creator_id:
        return False
    return True


def _comment_passes(hit: IndexHit, query: StructuredQuery) -> bool:
    return not (query.creator_id > 0 and hit.document.creator_id != query.creator_id)
