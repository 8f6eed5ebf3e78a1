"""
Tests for the search query DSL parser.
"""

from __future__ import annotations

import pytest

from .models import StructuredQuery
from .query_parser import QueryParser, parse_query


def test_parse_all_filters() -> None:
    """Test labels, status and assignee are extracted from the text."""
    query = parse_query("label:x label:y status:closed assignee:5 fix crash")

    assert query.labels == frozenset({"x", "y"})
    assert query.status == "closed"
    assert query.assignee_id == 5
    assert query.creator_id == 0
    assert query.query == "fix crash"


def test_parse_filters_in_any_position() -> None:
    """Test filters may appear between and after free-text words."""
    query = parse_query("login creator:7 screen label:ui bug")

    assert query.query == "login screen bug"
    assert query.creator_id == 7
    assert query.labels == frozenset({"ui"})


def test_parse_defaults() -> None:
    """Test an empty string gives a wildcard query with defaults."""
    query = parse_query("")

    assert query == StructuredQuery()
    assert query.query == ""
    assert query.status == "all"
    assert query.labels == frozenset()
    assert query.limit == 20
    assert query.offset == 0


def test_parse_none() -> None:
    """Test None is treated like an empty query."""
    assert parse_query(None).query == ""


def test_parse_duplicate_labels_collapse() -> None:
    query = parse_query("label:bug label:bug label:ui")
    assert query.labels == frozenset({"bug", "ui"})


def test_parse_last_status_wins() -> None:
    query = parse_query("status:open crash status:closed")
    assert query.status == "closed"
    assert query.query == "crash"


def test_parse_non_numeric_ids_stay_in_text() -> None:
    """Test assignee/creator tokens without digits are plain text."""
    query = parse_query("assignee:bob creator:-3 crash")

    assert query.assignee_id == 0
    assert query.creator_id == 0
    assert query.query == "assignee:bob creator:-3 crash"


def test_parse_zero_id_is_unset() -> None:
    """Test a zero id is consumed but leaves the filter unset."""
    query = parse_query("assignee:0 crash")

    assert query.assignee_id == 0
    assert query.query == "crash"


def test_parse_label_with_colon_is_text() -> None:
    query = parse_query("label:a:b")

    assert query.labels == frozenset()
    assert query.query == "label:a:b"


def test_parse_keywords_are_case_sensitive() -> None:
    query = parse_query("Label:x STATUS:open")

    assert query.labels == frozenset()
    assert query.status == "all"
    assert query.query == "Label:x STATUS:open"


def test_parse_keyword_must_start_word() -> None:
    query = parse_query("xlabel:foo mystatus:open")

    assert query.labels == frozenset()
    assert query.status == "all"
    assert query.query == "xlabel:foo mystatus:open"


def test_parse_collapses_whitespace() -> None:
    query = parse_query("  login \t  label:ui   bug  \n")
    assert query.query == "login bug"


def test_parse_empty_filter_value_is_text() -> None:
    query = parse_query("status: crash")

    assert query.status == "all"
    assert query.query == "status: crash"


def test_parse_pagination_passthrough() -> None:
    query = QueryParser().parse("crash", limit=5, offset=10)

    assert query.limit == 5
    assert query.offset == 10


def test_parse_invalid_pagination() -> None:
    """Test limit must be positive and offset non-negative."""
    with pytest.raises(ValueError):
        parse_query("crash", limit=0)
    with pytest.raises(ValueError):
        parse_query("crash", offset=-1)


def test_structured_query_is_immutable() -> None:
    query = parse_query("crash")
    with pytest.raises(Exception):
        query.query = "changed"  # type: ignore
