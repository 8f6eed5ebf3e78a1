"""
SQLite Repository - Authoritative ticket and comment records.

Features:
- Async operations via aiosqlite
- Ticket/comment upserts used by seeding tools and tests
- Bulk accessors consumed by the search index rebuild
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import aiosqlite

from tickethub.domains.search.models import Comment, Ticket

logger = logging.getLogger(__name__)

__all__ = ["SQLiteRepository"]


class SQLiteRepository:
    """
    SQLite repository for tickets and comments.

    Implements the search domain's RecordSource protocol.

    Example:
        >>> repo = SQLiteRepository("data/tickethub.db")
        >>> await repo.initialize()
        >>> await repo.save_ticket(Ticket(id=1, title="Login bug", body="..."))
        >>> tickets = await repo.get_all_tickets()
    """

    def __init__(self, db_path: str | Path) -> None:
        """
        Initialize repository.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._connection: aiosqlite.Connection | None = None

    async def _get_connection(self) -> aiosqlite.Connection:
        """Get or create database connection."""
        if self._connection is None:
            self._connection = await aiosqlite.connect(str(self.db_path))
            self._connection.row_factory = aiosqlite.Row
        return self._connection

    async def initialize(self) -> None:
        """Initialize database schema."""
        conn = await self._get_connection()

        await conn.executescript("""
            -- Tickets table
            CREATE TABLE IF NOT EXISTS tickets (
                id INTEGER PRIMARY KEY,
                title TEXT NOT NULL,
                body TEXT NOT NULL DEFAULT '',
                status TEXT NOT NULL DEFAULT 'open',
                labels TEXT NOT NULL DEFAULT '[]',
                assignee_id INTEGER NOT NULL DEFAULT 0,
                creator_id INTEGER NOT NULL DEFAULT 0,
                created_at TIMESTAMP NOT NULL,
                updated_at TIMESTAMP NOT NULL
            );

            -- Comments on tickets and discussions
            CREATE TABLE IF NOT EXISTS comments (
                id INTEGER PRIMARY KEY,
                body TEXT NOT NULL DEFAULT '',
                creator_id INTEGER NOT NULL DEFAULT 0,
                type TEXT NOT NULL DEFAULT 'ticket',
                target_id INTEGER NOT NULL,
                created_at TIMESTAMP NOT NULL,
                updated_at TIMESTAMP NOT NULL
            );

            -- Indexes
            CREATE INDEX IF NOT EXISTS idx_tickets_status ON tickets(status);
            CREATE INDEX IF NOT EXISTS idx_comments_type ON comments(type);
            CREATE INDEX IF NOT EXISTS idx_comments_target ON comments(type, target_id);
        """)

        await conn.commit()
        logger.info("Database initialized: %s", self.db_path)

    async def save_ticket(self, ticket: Ticket) -> int:
        """
        Insert or replace a ticket.

        Returns:
            Ticket ID
        """
        conn = await self._get_connection()

        await conn.execute(
            """
            INSERT OR REPLACE INTO tickets
            (id, title, body, status, labels, assignee_id, creator_id, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                ticket.id,
                ticket.title,
                ticket.body,
                ticket.status,
                json.dumps(ticket.labels),
                ticket.assignee_id,
                ticket.creator_id,
                ticket.created_at.isoformat(),
                ticket.updated_at.isoformat(),
            ),
        )

        await conn.commit()
        return ticket.id

    async def save_comment(self, comment: Comment) -> int:
        """
        Insert or replace a comment.

        Returns:
            Comment ID
        """
        conn = await self._get_connection()

        await conn.execute(
            """
            INSERT OR REPLACE INTO comments
            (id, body, creator_id, type, target_id, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                comment.id,
                comment.body,
                comment.creator_id,
                comment.target_type,
                comment.target_id,
                comment.created_at.isoformat(),
                comment.updated_at.isoformat(),
            ),
        )

        await conn.commit()
        return comment.id

    async def delete_ticket(self, ticket_id: int) -> None:
        conn = await self._get_connection()
        await conn.execute("DELETE FROM tickets WHERE id = ?", (ticket_id,))
        await conn.commit()

    async def delete_comment(self, comment_id: int) -> None:
        conn = await self._get_connection()
        await conn.execute("DELETE FROM comments WHERE id = ?", (comment_id,))
        await conn.commit()

    async def get_ticket(self, ticket_id: int) -> Ticket | None:
        """Get ticket by ID."""
        conn = await self._get_connection()

        cursor = await conn.execute(
            "SELECT * FROM tickets WHERE id = ?", (ticket_id,)
        )
        row = await cursor.fetchone()

        if row:
            return _row_to_ticket(dict(row))
        return None

    async def get_all_tickets(self) -> list[Ticket]:
        """Get every ticket, oldest first."""
        conn = await self._get_connection()
        cursor = await conn.execute("SELECT * FROM tickets ORDER BY id")
        rows = await cursor.fetchall()
        return [_row_to_ticket(dict(row)) for row in rows]

    async def get_all_comments_of_type(self, target_type: str) -> list[Comment]:
        """Get every comment attached to the given target type."""
        conn = await self._get_connection()
        cursor = await conn.execute(
            "SELECT * FROM comments WHERE type = ? ORDER BY id", (target_type,)
        )
        rows = await cursor.fetchall()
        return [_row_to_comment(dict(row)) for row in rows]

    async def get_ticket_count(self) -> int:
        """Get total ticket count."""
        conn = await self._get_connection()
        cursor = await conn.execute("SELECT COUNT(*) FROM tickets")
        row = await cursor.fetchone()
        return row[0] if row else 0

    async def close(self) -> None:
        """Close database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None


def _row_to_ticket(row: dict[str, Any]) -> Ticket:
    row["labels"] = json.loads(row.get("labels") or "[]")
    return Ticket.model_validate(row)


def _row_to_comment(row: dict[str, Any]) -> Comment:
    row["target_type"] = row.pop("type")
    return Comment.model_validate(row)
