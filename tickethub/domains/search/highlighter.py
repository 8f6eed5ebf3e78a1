"""
Highlighter - Combines FTS highlights and derives plain-text snippets.
"""

from __future__ import annotations

__all__ = [
    "MARK_OPEN",
    "MARK_CLOSE",
    "SNIPPET_MAX_LENGTH",
    "combine_highlights",
    "snippet",
]

MARK_OPEN = "<mark>"
MARK_CLOSE = "</mark>"
SNIPPET_MAX_LENGTH = 200
ELLIPSIS = "..."


def combine_highlights(title_highlight: str, body_highlight: str) -> str:
    """
    Join title and body highlights into labeled lines.

    Either line is omitted when its highlight is empty.
    """
    result = ""
    if title_highlight:
        result += f"Title: {title_highlight}\n"
    if body_highlight:
        result += f"Body: {body_highlight}"
    return result


def snippet(highlighted: str, max_len: int = SNIPPET_MAX_LENGTH) -> str:
    """
    Strip highlight markers and hard-cut to max_len characters.

    An ellipsis is appended only when the text was truncated.
    """
    text = highlighted.replace(MARK_OPEN, "").replace(MARK_CLOSE, "")
    if len(text) > max_len:
        return text[:max_len] + ELLIPSIS
    return text
