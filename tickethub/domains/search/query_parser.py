"""
Query Parser - Turns the search box DSL into a StructuredQuery.

Supported inline filters (case-sensitive keywords, any order/position):
- label:<name>      repeatable, all labels required
- status:<value>    open / closed / all, last one wins
- assignee:<id>     positive integer
- creator:<id>      positive integer

Everything else is free text. Parsing never fails: tokens that do not fit
a filter's shape are left in the free text.
"""

from __future__ import annotations

import logging
import re

from .models import DEFAULT_LIMIT, STATUS_ALL, StructuredQuery

logger = logging.getLogger(__name__)

__all__ = ["QueryParser", "parse_query"]

_FILTER_TOKEN = re.compile(r"^(label|status|assignee|creator):(.+)$")
_DIGITS = re.compile(r"[0-9]+")


class QueryParser:
    """
    Parser for the search DSL.

    Example:
        >>> parser = QueryParser()
        >>> q = parser.parse("login bug label:ui status:open")
        >>> q.query, sorted(q.labels), q.status
        ('login bug', ['ui'], 'open')
    """

    def parse(
        self,
        raw: str | None,
        limit: int = DEFAULT_LIMIT,
        offset: int = 0,
    ) -> StructuredQuery:
        """
        Parse a raw query string.

        Args:
            raw: Search box contents (may be empty or None)
            limit: Page size, supplied by the caller outside the DSL
            offset: Result offset, supplied by the caller outside the DSL

        Returns:
            Frozen StructuredQuery
        """
        labels: set[str] = set()
        status = STATUS_ALL
        assignee_id = 0
        creator_id = 0
        terms: list[str] = []

        for word in (raw or "").split():
            match = _FILTER_TOKEN.match(word)
            if match is None:
                terms.append(word)
                continue

            key, value = match.groups()
            if key == "label":
                if ":" in value:
                    terms.append(word)
                else:
                    labels.add(value)
            elif key == "status":
                status = value
            elif _DIGITS.fullmatch(value):
                # assignee:0 is consumed but leaves the filter unset
                if key == "assignee":
                    assignee_id = int(value)
                else:
                    creator_id = int(value)
            else:
                terms.append(word)

        query = StructuredQuery(
            query=" ".join(terms),
            labels=frozenset(labels),
            status=status,
            assignee_id=assignee_id,
            creator_id=creator_id,
            limit=limit,
            offset=offset,
        )
        logger.debug("Parsed query %r -> %s", raw, query)
        return query


_default_parser = QueryParser()


def parse_query(
    raw: str | None,
    limit: int = DEFAULT_LIMIT,
    offset: int = 0,
) -> StructuredQuery:
    """Parse with the shared stateless parser."""
    return _default_parser.parse(raw, limit=limit, offset=offset)
