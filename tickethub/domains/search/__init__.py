"""
Search Domain - Full-text search over tickets and their comments.

This domain handles:
- Query DSL parsing (label:, status:, assignee:, creator:)
- Ticket and comment FTS5 indexes with transactional rebuild
- Merged, ranked, paginated results
- Highlighting and snippets
"""

from .contracts import RecordSource, SearchEngine
from .executor import SearchExecutor, build_match_expression
from .highlighter import combine_highlights, snippet
from .index_store import SearchIndexStore
from .models import (
    MAX_LIMIT,
    Comment,
    ContentType,
    IndexedDocument,
    SearchResult,
    SearchResultPage,
    StructuredQuery,
    Ticket,
)
from .query_parser import QueryParser, parse_query
from .service import SearchService

__all__ = [
    # Contracts
    "RecordSource",
    "SearchEngine",
    # Models
    "MAX_LIMIT",
    "ContentType",
    "Ticket",
    "Comment",
    "IndexedDocument",
    "StructuredQuery",
    "SearchResult",
    "SearchResultPage",
    # Components
    "QueryParser",
    "parse_query",
    "SearchIndexStore",
    "SearchExecutor",
    "build_match_expression",
    "combine_highlights",
    "snippet",
    "SearchService",
]
