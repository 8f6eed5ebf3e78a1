"""Tests for the ticket/comment FTS5 index store."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import AsyncMock

import aiosqlite
import pytest

from tickethub.config.errors import IndexRebuildError, IndexWriteError, ValidationError

from .index_store import SearchIndexStore
from .models import Comment, ContentType, Ticket

CREATED = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
async def store(tmp_path: Path):
    """Create an index store on a temporary database."""
    store = SearchIndexStore(tmp_path / "index.db")
    await store.initialize()
    yield store
    await store.close()


def _ticket(ticket_id: int, title: str, body: str = "", **kwargs) -> Ticket:
    kwargs.setdefault("created_at", CREATED)
    kwargs.setdefault("updated_at", CREATED)
    return Ticket(id=ticket_id, title=title, body=body, **kwargs)


def _source(tickets: list[Ticket], comments: list[Comment]) -> AsyncMock:
    source = AsyncMock()
    source.get_all_tickets.return_value = tickets
    source.get_all_comments_of_type.return_value = comments
    return source


async def _ticket_ids(store: SearchIndexStore, expression: str | None) -> set[int]:
    hits = await store.match(ContentType.TICKET, expression)
    return {hit.document.doc_id for hit in hits}


async def test_initialize_creates_empty_indexes(store: SearchIndexStore):
    assert await store.get_stats() == {"ticket": 0, "comment": 0}


async def test_initialize_is_repeatable(store: SearchIndexStore):
    await store.initialize()
    assert await store.get_stats() == {"ticket": 0, "comment": 0}


async def test_index_ticket_and_match(store: SearchIndexStore):
    """Test an indexed ticket is immediately searchable with highlights."""
    await store.index_ticket(
        _ticket(1, "Login screen bug", "Crash after login", status="open", labels=["ui", "bug"])
    )

    hits = await store.match(ContentType.TICKET, '"login"*')

    assert len(hits) == 1
    hit = hits[0]
    assert hit.document.doc_id == 1
    assert hit.document.status == "open"
    assert hit.document.labels == ["bug", "ui"]
    assert hit.document.created_at == CREATED
    assert "<mark>Login</mark>" in hit.title_highlight
    assert "<mark>login</mark>" in hit.body_highlight


async def test_prefix_match(store: SearchIndexStore):
    await store.index_ticket(_ticket(1, "Authentication failure"))
    assert await _ticket_ids(store, '"auth"*') == {1}


async def test_tokenizer_folds_case_and_diacritics(store: SearchIndexStore):
    await store.index_ticket(_ticket(1, "Café Résumé", "NAÏVE parser"))

    assert await _ticket_ids(store, '"cafe"*') == {1}
    assert await _ticket_ids(store, '"RESUME"*') == {1}
    assert await _ticket_ids(store, '"naive"*') == {1}


async def test_reindex_same_ticket_is_idempotent(store: SearchIndexStore):
    ticket = _ticket(1, "Login screen bug")
    await store.index_ticket(ticket)
    first = await store.match(ContentType.TICKET, '"login"*')

    await store.index_ticket(ticket)
    second = await store.match(ContentType.TICKET, '"login"*')

    assert await store.count(ContentType.TICKET, None) == 1
    assert [(h.document.doc_id, h.rank) for h in first] == [
        (h.document.doc_id, h.rank) for h in second
    ]


async def test_reindex_replaces_content(store: SearchIndexStore):
    """Test an update fully replaces the old entry."""
    await store.index_ticket(_ticket(1, "Login screen bug", labels=["bug"]))
    await store.index_ticket(_ticket(1, "Payment timeout", labels=["billing"]))

    assert await _ticket_ids(store, '"login"*') == set()
    assert await _ticket_ids(store, '"payment"*') == {1}
    hits = await store.match(ContentType.TICKET, None)
    assert hits[0].document.labels == ["billing"]


async def test_remove_from_index(store: SearchIndexStore):
    await store.index_ticket(_ticket(1, "Login screen bug"))
    await store.remove_from_index(ContentType.TICKET, 1)

    assert await _ticket_ids(store, '"login"*') == set()
    assert await _ticket_ids(store, None) == set()


async def test_remove_absent_is_noop(store: SearchIndexStore):
    await store.remove_from_index("ticket", 404)
    await store.remove_from_index(ContentType.COMMENT, 404)
    assert await store.get_stats() == {"ticket": 0, "comment": 0}


async def test_remove_unknown_type(store: SearchIndexStore):
    with pytest.raises(ValidationError):
        await store.remove_from_index("discussion", 1)


async def test_index_ticket_comment(store: SearchIndexStore):
    indexed = await store.index_comment(
        Comment(id=10, body="Reproduced the login crash", target_id=1, creator_id=3)
    )

    assert indexed is True
    hits = await store.match(ContentType.COMMENT, '"crash"*')
    assert len(hits) == 1
    assert hits[0].document.target_id == 1
    assert hits[0].document.creator_id == 3
    assert "<mark>crash</mark>" in hits[0].body_highlight
    assert hits[0].title_highlight == ""


async def test_discussion_comment_not_indexed(store: SearchIndexStore):
    indexed = await store.index_comment(
        Comment(id=11, body="Discussion about login", target_type="discussion", target_id=2)
    )

    assert indexed is False
    assert await store.count(ContentType.COMMENT, None) == 0


async def test_comment_moved_off_ticket_is_removed(store: SearchIndexStore):
    await store.index_comment(Comment(id=12, body="login notes", target_id=1))
    await store.index_comment(
        Comment(id=12, body="login notes", target_type="discussion", target_id=1)
    )
    assert await store.count(ContentType.COMMENT, None) == 0


async def test_count_matches(store: SearchIndexStore):
    await store.index_ticket(_ticket(1, "Login bug"))
    await store.index_ticket(_ticket(2, "Logout bug"))
    await store.index_ticket(_ticket(3, "Payment"))

    assert await store.count(ContentType.TICKET, '"log"*') == 2
    assert await store.count(ContentType.TICKET, None) == 3


async def test_rebuild_all(store: SearchIndexStore):
    """Test rebuild replaces the index with the source's records."""
    await store.index_ticket(_ticket(99, "Stale ticket"))
    source = _source(
        [_ticket(1, "Login bug"), _ticket(2, "Payment timeout")],
        [Comment(id=10, body="login again", target_id=1)],
    )

    counts = await store.rebuild_all(source)

    assert counts == {"tickets": 2, "comments": 1}
    source.get_all_comments_of_type.assert_awaited_once_with("ticket")
    assert await _ticket_ids(store, None) == {1, 2}
    assert await store.count(ContentType.COMMENT, '"login"*') == 1


async def test_rebuild_is_repeatable(store: SearchIndexStore):
    source = _source([_ticket(1, "Login bug")], [])

    await store.rebuild_all(source)
    await store.rebuild_all(source)

    assert await store.get_stats() == {"ticket": 1, "comment": 0}


async def test_rebuild_failure_keeps_previous_index(store: SearchIndexStore):
    """Test a failing source rolls the rebuild back."""
    await store.index_ticket(_ticket(1, "Login bug"))
    source = _source([_ticket(2, "Payment timeout")], [])
    source.get_all_comments_of_type.side_effect = RuntimeError("records offline")

    with pytest.raises(IndexRebuildError):
        await store.rebuild_all(source)

    assert await _ticket_ids(store, None) == {1}


async def test_rebuild_cancellation_keeps_previous_index(store: SearchIndexStore):
    await store.index_ticket(_ticket(1, "Login bug"))
    started = asyncio.Event()

    async def hang(target_type: str):
        started.set()
        await asyncio.sleep(60)

    source = _source([_ticket(2, "Payment timeout")], [])
    source.get_all_comments_of_type.side_effect = hang

    task = asyncio.create_task(store.rebuild_all(source))
    await started.wait()
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert await _ticket_ids(store, None) == {1}


async def test_rebuild_blocks_writers_and_hides_partial_state(store: SearchIndexStore):
    """Test writers wait for a rebuild and readers only see committed state."""
    await store.index_ticket(_ticket(5, "Legacy ticket"))
    started = asyncio.Event()
    release = asyncio.Event()

    async def slow_tickets():
        started.set()
        await release.wait()
        return [_ticket(1, "Login bug")]

    source = _source([], [])
    source.get_all_tickets.side_effect = slow_tickets

    rebuild = asyncio.create_task(store.rebuild_all(source))
    await started.wait()
    write = asyncio.create_task(store.index_ticket(_ticket(2, "Written during rebuild")))
    await asyncio.sleep(0.05)

    assert not write.done()
    assert await _ticket_ids(store, None) == {5}

    release.set()
    await rebuild
    await write

    assert await _ticket_ids(store, None) == {1, 2}


async def test_concurrent_writes_to_different_ids(store: SearchIndexStore):
    await asyncio.gather(
        *(store.index_ticket(_ticket(i, f"Ticket number {i}")) for i in range(1, 21))
    )
    assert await store.count(ContentType.TICKET, '"ticket"*') == 20


async def test_index_write_retries_then_fails(store: SearchIndexStore, monkeypatch):
    """Test a failing write is retried and surfaces as IndexWriteError."""
    attempts = 0

    async def broken_insert(conn, doc):
        nonlocal attempts
        attempts += 1
        raise aiosqlite.OperationalError("database is locked")

    monkeypatch.setattr(store, "_insert", broken_insert)

    with pytest.raises(IndexWriteError):
        await store.index_ticket(_ticket(1, "Login bug"))

    assert attempts == 3
    assert await store.count(ContentType.TICKET, None) == 0


async def test_concurrent_first_reads_share_one_connection(tmp_path: Path):
    store = SearchIndexStore(tmp_path / "fresh.db")
    try:
        first, second = await asyncio.gather(store._get_reader(), store._get_reader())
        assert first is second
    finally:
        await store.close()


async def test_read_snapshot_ignores_later_commits(store: SearchIndexStore):
    await store.index_ticket(_ticket(1, "Login bug"))

    async with store.read_snapshot():
        assert await _ticket_ids(store, None) == {1}
        await store.index_ticket(_ticket(2, "Payment timeout"))
        assert await _ticket_ids(store, None) == {1}

    assert await _ticket_ids(store, None) == {1, 2}
