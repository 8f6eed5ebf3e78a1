"""
Search Models - Data types for search domain.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field, computed_field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ContentType(str, Enum):
    """Kinds of documents held by the index store."""

    TICKET = "ticket"
    COMMENT = "comment"


STATUS_ALL = "all"
DEFAULT_LIMIT = 20
MAX_LIMIT = 100


# --- Collaborator records ---


class Ticket(BaseModel):
    """Ticket as supplied by the ticket service."""

    id: int
    title: str = ""
    body: str = ""
    status: str = "open"
    labels: list[str] = Field(default_factory=list)
    assignee_id: int = 0
    creator_id: int = 0
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class Comment(BaseModel):
    """Comment as supplied by the comment service."""

    id: int
    body: str = ""
    creator_id: int = 0
    target_type: str = "ticket"  # "ticket", "discussion"
    target_id: int = 0
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


# --- Index ---


class IndexedDocument(BaseModel):
    """One unit of indexed text plus the attributes used for post-filtering."""

    content_type: ContentType
    doc_id: int
    title: str | None = None
    body: str
    target_id: int | None = None
    status: str | None = None
    labels: list[str] = Field(default_factory=list)
    assignee_id: int = 0
    creator_id: int = 0
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    model_config = {"frozen": True}

    @classmethod
    def from_ticket(cls, ticket: Ticket) -> IndexedDocument:
        return cls(
            content_type=ContentType.TICKET,
            doc_id=ticket.id,
            title=ticket.title,
            body=ticket.body,
            status=ticket.status,
            labels=sorted(set(ticket.labels)),
            assignee_id=ticket.assignee_id,
            creator_id=ticket.creator_id,
            created_at=ticket.created_at,
            updated_at=ticket.updated_at,
        )

    @classmethod
    def from_comment(cls, comment: Comment) -> IndexedDocument:
        return cls(
            content_type=ContentType.COMMENT,
            doc_id=comment.id,
            body=comment.body,
            target_id=comment.target_id,
            creator_id=comment.creator_id,
            created_at=comment.created_at,
            updated_at=comment.updated_at,
        )


class IndexHit(BaseModel):
    """Raw match returned by the index store for one document."""

    document: IndexedDocument
    rank: float = 0.0
    title_highlight: str = ""
    body_highlight: str = ""


# --- Query / results ---


class StructuredQuery(BaseModel):
    """Parsed search request."""

    query: str = ""
    labels: frozenset[str] = Field(default_factory=frozenset)
    status: str = STATUS_ALL
    assignee_id: int = Field(default=0, ge=0)
    creator_id: int = Field(default=0, ge=0)
    limit: int = Field(default=DEFAULT_LIMIT, ge=1)
    offset: int = Field(default=0, ge=0)

    model_config = {"frozen": True}


class SearchResult(BaseModel):
    """Single ranked hit; tickets and comments share this shape."""

    type: Literal["ticket", "comment"]
    id: int
    title: str
    body: str
    labels: list[str] = Field(default_factory=list)
    status: str | None = None
    assignee_id: int = 0
    creator_id: int = 0
    created_at: datetime
    updated_at: datetime
    target_id: int | None = None
    rank: float = 0.0
    highlighted: str = ""
    snippet: str = ""


class SearchResultPage(BaseModel):
    """One page of merged ticket and comment results."""

    results: list[SearchResult] = Field(default_factory=list)
    total_count: int = 0
    limit: int = Field(default=DEFAULT_LIMIT, ge=1)
    offset: int = Field(default=0, ge=0)
    query: str = ""

    @computed_field  # type: ignore[prop-decorator]
    @property
    def current_page(self) -> int:
        return self.offset // self.limit + 1

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_count / self.limit)
