"""
Search Index Store - Ticket and comment full-text indexes on SQLite FTS5.

Features:
- Two independent FTS5 indexes (tickets, ticket comments)
- Unicode-aware, case-folded, diacritic-insensitive tokenization
- Delete-then-insert upserts, each in its own transaction
- Exclusive, all-or-nothing rebuild from the record source
- WAL mode with a separate reader connection, so searches only ever
  see committed index state
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any

import aiosqlite
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from tickethub.config.errors import (
    IndexRebuildError,
    IndexWriteError,
    StorageError,
    ValidationError,
)

from .highlighter import MARK_CLOSE, MARK_OPEN
from .models import Comment, ContentType, IndexedDocument, IndexHit, Ticket

if TYPE_CHECKING:
    from .contracts import RecordSource

logger = logging.getLogger(__name__)

__all__ = ["SearchIndexStore"]

TICKET_COMMENT_TYPE = "ticket"

_TABLES = {
    ContentType.TICKET: "ticket_fts",
    ContentType.COMMENT: "comment_fts",
}

_SCHEMA = """
    -- Tickets: rowid is the ticket id
    CREATE VIRTUAL TABLE IF NOT EXISTS ticket_fts USING fts5(
        title,
        body,
        status UNINDEXED,
        labels UNINDEXED,
        assignee_id UNINDEXED,
        creator_id UNINDEXED,
        created_at UNINDEXED,
        updated_at UNINDEXED,
        tokenize = 'unicode61 remove_diacritics 2'
    );

    -- Ticket comments: rowid is the comment id
    CREATE VIRTUAL TABLE IF NOT EXISTS comment_fts USING fts5(
        body,
        target_id UNINDEXED,
        target_type UNINDEXED,
        creator_id UNINDEXED,
        created_at UNINDEXED,
        updated_at UNINDEXED,
        tokenize = 'unicode61 remove_diacritics 2'
    );
"""

_HL = f"'{MARK_OPEN}', '{MARK_CLOSE}'"

_TICKET_COLUMNS = (
    "rowid AS doc_id, title, body, status, labels, assignee_id, creator_id, "
    "created_at, updated_at"
)
_COMMENT_COLUMNS = (
    "rowid AS doc_id, body, target_id, creator_id, created_at, updated_at"
)

_MATCH_SQL = {
    ContentType.TICKET: f"""
        SELECT {_TICKET_COLUMNS},
            highlight(ticket_fts, 0, {_HL}) AS title_highlight,
            highlight(ticket_fts, 1, {_HL}) AS body_highlight,
            rank
        FROM ticket_fts
        WHERE ticket_fts MATCH ?
        ORDER BY rank
    """,
    ContentType.COMMENT: f"""
        SELECT {_COMMENT_COLUMNS},
            highlight(comment_fts, 0, {_HL}) AS body_highlight,
            rank
        FROM comment_fts
        WHERE comment_fts MATCH ? AND target_type = '{TICKET_COMMENT_TYPE}'
        ORDER BY rank
    """,
}

# Wildcard scans carry no match information: every row ranks equally.
_SCAN_SQL = {
    ContentType.TICKET: f"""
        SELECT {_TICKET_COLUMNS},
            title AS title_highlight, body AS body_highlight, 0.0 AS rank
        FROM ticket_fts
    """,
    ContentType.COMMENT: f"""
        SELECT {_COMMENT_COLUMNS},
            body AS body_highlight, 0.0 AS rank
        FROM comment_fts
        WHERE target_type = '{TICKET_COMMENT_TYPE}'
    """,
}


class SearchIndexStore:
    """
    Owner of the ticket and comment full-text indexes.

    Example:
        >>> store = SearchIndexStore("data/tickethub.db")
        >>> await store.initialize()
        >>> await store.index_ticket(ticket)
        >>> hits = await store.match(ContentType.TICKET, '"login"*')
    """

    def __init__(self, db_path: str | Path) -> None:
        """
        Initialize index store.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._writer: aiosqlite.Connection | None = None
        self._reader: aiosqlite.Connection | None = None
        self._connect_lock = asyncio.Lock()
        self._write_lock = asyncio.Lock()
        self._read_lock = asyncio.Lock()

    async def _connect(self, **kwargs: Any) -> aiosqlite.Connection:
        try:
            conn = await aiosqlite.connect(str(self.db_path), **kwargs)
        except aiosqlite.Error as e:
            raise StorageError(
                "Cannot open search index", {"db_path": str(self.db_path)}
            ) from e
        conn.row_factory = aiosqlite.Row
        return conn

    async def _get_writer(self) -> aiosqlite.Connection:
        """Get or create the writer connection (explicit transactions)."""
        async with self._connect_lock:
            if self._writer is None:
                self._writer = await self._connect(isolation_level=None)
        return self._writer

    async def _get_reader(self) -> aiosqlite.Connection:
        """Get or create the reader connection (explicit read transactions)."""
        async with self._connect_lock:
            if self._reader is None:
                self._reader = await self._connect(isolation_level=None)
        return self._reader

    async def initialize(self) -> None:
        """Create the FTS5 tables and switch the database to WAL mode."""
        conn = await self._get_writer()
        await conn.execute("PRAGMA journal_mode=WAL")
        await conn.executescript(_SCHEMA)
        logger.info("Search index initialized: %s", self.db_path)

    @asynccontextmanager
    async def _transaction(
        self, conn: aiosqlite.Connection
    ) -> AsyncIterator[aiosqlite.Connection]:
        """Run a block in one write transaction; roll back on any exit but success."""
        await conn.execute("BEGIN IMMEDIATE")
        try:
            yield conn
            await conn.execute("COMMIT")
        except BaseException:
            if conn.in_transaction:
                await conn.rollback()
            raise

    # --- Writes ---

    async def index_ticket(self, ticket: Ticket) -> None:
        """Add or fully replace a ticket's index entry."""
        await self.index_document(IndexedDocument.from_ticket(ticket))

    async def index_comment(self, comment: Comment) -> bool:
        """
        Add or fully replace a comment's index entry.

        Only comments on tickets are indexed; for any other target type a
        stale entry with the same id is removed instead.

        Returns:
            True if the comment was indexed
        """
        if comment.target_type != TICKET_COMMENT_TYPE:
            logger.debug(
                "Skipping comment %d on %s", comment.id, comment.target_type
            )
            await self.remove_from_index(ContentType.COMMENT, comment.id)
            return False

        await self.index_document(IndexedDocument.from_comment(comment))
        return True

    @retry(
        retry=retry_if_exception_type(IndexWriteError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.05, max=1),
        reraise=True,
    )
    async def index_document(self, doc: IndexedDocument) -> None:
        """
        Upsert one document (delete-then-insert in a single transaction).

        Retried a few times, since another process may briefly hold the
        database write lock.

        Raises:
            IndexWriteError: The write failed and was rolled back
        """
        async with self._write_lock:
            conn = await self._get_writer()
            try:
                async with self._transaction(conn):
                    await self._delete(conn, doc.content_type, doc.doc_id)
                    await self._insert(conn, doc)
            except aiosqlite.Error as e:
                logger.error(
                    "Failed to index %s %d: %s", doc.content_type.value, doc.doc_id, e
                )
                raise IndexWriteError(
                    f"Failed to index {doc.content_type.value} {doc.doc_id}",
                    {"content_type": doc.content_type.value, "doc_id": doc.doc_id},
                ) from e

    async def remove_from_index(
        self, content_type: ContentType | str, doc_id: int
    ) -> None:
        """
        Remove a document from its index. Absent documents are a no-op.

        Raises:
            ValidationError: Unknown content type
            IndexWriteError: The delete failed
        """
        content_type = _coerce_content_type(content_type)

        async with self._write_lock:
            conn = await self._get_writer()
            try:
                async with self._transaction(conn):
                    await self._delete(conn, content_type, doc_id)
            except aiosqlite.Error as e:
                raise IndexWriteError(
                    f"Failed to remove {content_type.value} {doc_id} from index",
                    {"content_type": content_type.value, "doc_id": doc_id},
                ) from e

    async def rebuild_all(self, source: RecordSource) -> dict[str, int]:
        """
        Clear both indexes and re-derive them from the record source.

        Holds the write lock for the whole rebuild, so concurrent upserts
        wait for it. The work runs in one transaction: on failure or
        cancellation the previous index is left untouched.

        Returns:
            Counts of indexed tickets and comments

        Raises:
            IndexRebuildError: Rebuild failed and was rolled back
        """
        async with self._write_lock:
            logger.info("Rebuilding search index: %s", self.db_path)
            conn = await self._get_writer()
            tickets = comments = 0
            try:
                async with self._transaction(conn):
                    for table in _TABLES.values():
                        await conn.execute(f"DELETE FROM {table}")

                    for ticket in await source.get_all_tickets():
                        await self._insert(conn, IndexedDocument.from_ticket(ticket))
                        tickets += 1

                    for comment in await source.get_all_comments_of_type(
                        TICKET_COMMENT_TYPE
                    ):
                        await self._insert(conn, IndexedDocument.from_comment(comment))
                        comments += 1
            except asyncio.CancelledError:
                logger.warning("Index rebuild cancelled; previous index kept")
                raise
            except Exception as e:
                logger.exception("Index rebuild failed; previous index kept")
                raise IndexRebuildError(
                    "Search index rebuild failed", {"reason": str(e)}
                ) from e

            logger.info(
                "Search index rebuilt: tickets=%d comments=%d", tickets, comments
            )
            return {"tickets": tickets, "comments": comments}

    async def _delete(
        self, conn: aiosqlite.Connection, content_type: ContentType, doc_id: int
    ) -> None:
        await conn.execute(
            f"DELETE FROM {_TABLES[content_type]} WHERE rowid = ?", (doc_id,)
        )

    async def _insert(self, conn: aiosqlite.Connection, doc: IndexedDocument) -> None:
        if doc.content_type is ContentType.TICKET:
            await conn.execute(
                """
                INSERT INTO ticket_fts
                (rowid, title, body, status, labels, assignee_id, creator_id,
                 created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    doc.doc_id,
                    doc.title or "",
                    doc.body,
                    doc.status,
                    json.dumps(doc.labels),
                    doc.assignee_id,
                    doc.creator_id,
                    doc.created_at.isoformat(),
                    doc.updated_at.isoformat(),
                ),
            )
        else:
            await conn.execute(
                """
                INSERT INTO comment_fts
                (rowid, body, target_id, target_type, creator_id,
                 created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    doc.doc_id,
                    doc.body,
                    doc.target_id,
                    TICKET_COMMENT_TYPE,
                    doc.creator_id,
                    doc.created_at.isoformat(),
                    doc.updated_at.isoformat(),
                ),
            )

    # --- Reads ---

    @asynccontextmanager
    async def read_snapshot(self) -> AsyncIterator[None]:
        """
        Pin one committed state of both indexes for a group of reads.

        Every match/count issued inside the block sees the same snapshot,
        even if a rebuild or upsert commits meanwhile.

        Example:
            >>> async with store.read_snapshot():
            ...     tickets = await store.match(ContentType.TICKET, expr)
            ...     comments = await store.match(ContentType.COMMENT, expr)
        """
        async with self._read_lock:
            conn = await self._get_reader()
            await conn.execute("BEGIN")
            try:
                yield
            finally:
                if conn.in_transaction:
                    await conn.execute("COMMIT")

    async def match(
        self, content_type: ContentType, expression: str | None
    ) -> list[IndexHit]:
        """
        Run a match expression against one index, best rank first.

        Args:
            content_type: Index to query
            expression: FTS5 match expression, or None to return every document

        Returns:
            Hits with rank (lower is better) and marked-up highlights
        """
        conn = await self._get_reader()
        if expression is None:
            cursor = await conn.execute(_SCAN_SQL[content_type])
        else:
            cursor = await conn.execute(_MATCH_SQL[content_type], (expression,))
        rows = await cursor.fetchall()
        return [_row_to_hit(content_type, row) for row in rows]

    async def count(self, content_type: ContentType, expression: str | None) -> int:
        """Count documents matching an expression (all documents for None)."""
        conn = await self._get_reader()
        table = _TABLES[content_type]
        if expression is None:
            cursor = await conn.execute(f"SELECT COUNT(*) FROM {table}")
        else:
            cursor = await conn.execute(
                f"SELECT COUNT(*) FROM {table} WHERE {table} MATCH ?", (expression,)
            )
        row = await cursor.fetchone()
        return row[0] if row else 0

    async def get_stats(self) -> dict[str, int]:
        """Get indexed document counts per content type."""
        async with self.read_snapshot():
            return {
                content_type.value: await self.count(content_type, None)
                for content_type in ContentType
            }

    async def close(self) -> None:
        """Close database connections."""
        if self._reader:
            await self._reader.close()
            self._reader = None
        if self._writer:
            await self._writer.close()
            self._writer = None


def _coerce_content_type(value: ContentType | str) -> ContentType:
    try:
        return ContentType(value)
    except ValueError:
        raise ValidationError(
            f"Unknown document type: {value}", {"content_type": str(value)}
        ) from None


def _row_to_hit(content_type: ContentType, row: aiosqlite.Row) -> IndexHit:
    data: dict[str, Any] = dict(row)
    if content_type is ContentType.TICKET:
        document = IndexedDocument(
            content_type=content_type,
            doc_id=data["doc_id"],
            title=data["title"],
            body=data["body"],
            status=data["status"],
            labels=json.loads(data["labels"] or "[]"),
            assignee_id=data["assignee_id"] or 0,
            creator_id=data["creator_id"] or 0,
            created_at=data["created_at"],
            updated_at=data["updated_at"],
        )
        title_highlight = data["title_highlight"] or ""
    else:
        document = IndexedDocument(
            content_type=content_type,
            doc_id=data["doc_id"],
            body=data["body"],
            target_id=data["target_id"],
            creator_id=data["creator_id"] or 0,
            created_at=data["created_at"],
            updated_at=data["updated_at"],
        )
        title_highlight = ""

    return IndexHit(
        document=document,
        rank=data["rank"] or 0.0,
        title_highlight=title_highlight,
        body_highlight=data["body_highlight"] or "",
    )
