"""Tests for highlight combination and snippets."""

from .highlighter import combine_highlights, snippet


def test_combine_title_and_body() -> None:
    assert (
        combine_highlights("<mark>Login</mark> bug", "Crash on <mark>login</mark>")
        == "Title: <mark>Login</mark> bug\nBody: Crash on <mark>login</mark>"
    )


def test_combine_omits_empty_parts() -> None:
    assert combine_highlights("", "body text") == "Body: body text"
    assert combine_highlights("title", "") == "Title: title\n"
    assert combine_highlights("", "") == ""


def test_snippet_strips_marks() -> None:
    assert snippet("Crash on <mark>login</mark>") == "Crash on login"


def test_snippet_truncates_with_ellipsis() -> None:
    result = snippet("x" * 250)

    assert result == "x" * 200 + "..."
    assert len(result) == 203


def test_snippet_exact_length_not_truncated() -> None:
    assert snippet("y" * 200) == "y" * 200


def test_snippet_marks_do_not_count_toward_length() -> None:
    assert snippet("<mark>" + "a" * 200 + "</mark>") == "a" * 200


def test_snippet_custom_length() -> None:
    assert snippet("abcdef", max_len=3) == "abc..."
