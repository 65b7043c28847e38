import pytest

from cognote.notepad.headers import (
    SECTION_HEADER_RE,
    HeaderMatch,
    classify_line,
    clean_header,
    header_level,
    locate_header,
    normalize_header,
)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("## Summary", "summary"),
        ("**Summary**", "summary"),
        ("Summary:", "summary"),
        ("Summary：", "summary"),
        ("Summary.", "summary"),
        ("“Open” Questions", '"open" questions'),
        ("Bob’s Notes", "bob's notes"),
        ("  - Next steps ~~", "next steps"),
        ("总结。", "总结"),
    ],
)
def test_normalize_header(raw: str, expected: str) -> None:
    assert normalize_header(raw) == expected


def test_clean_header_keeps_words_and_cjk() -> None:
    assert clean_header('"open" questions: 总结!') == "openquestions总结"
    assert clean_header("café") == "caf"


def test_classify_line_levels() -> None:
    assert classify_line("### Risks") == ("Risks", 3)
    assert classify_line("**Risks**") == ("Risks", 4)
    assert classify_line("__Risks__") == ("Risks", 4)
    assert classify_line("Risks") == ("Risks", 3)
    assert classify_line("   ") is None
    assert classify_line("x" * 120) is None


def test_header_level_requires_space_after_markers() -> None:
    assert header_level("## Plan") == 2
    assert header_level("  # Title") == 1
    assert header_level("##Plan") is None
    assert header_level("Plan") is None


def test_quote_and_case_insensitive_match() -> None:
    lines = ["# Notes", "intro", '## "summary"', "body"]

    assert locate_header(lines, "Summary:") == HeaderMatch(line_index=2, level=2)


def test_exact_match_beats_later_lines() -> None:
    lines = ["# Plan", "## Plan details", "text"]

    assert locate_header(lines, "plan") == HeaderMatch(line_index=0, level=1)


def test_substring_match_in_either_direction() -> None:
    lines = ["# Doc", "## Open questions for launch", "text"]

    assert locate_header(lines, "Open questions") == HeaderMatch(line_index=1, level=2)
    assert locate_header(["## Risks", "x"], "Risks and mitigations") == HeaderMatch(line_index=0, level=2)


def test_cleaned_form_match_ignores_punctuation() -> None:
    lines = ["# Doc", "## Q&A (draft)"]

    assert locate_header(lines, "QA draft") == HeaderMatch(line_index=1, level=2)


def test_bold_line_is_level_four() -> None:
    lines = ["# Doc", "**Decisions**", "- ship it"]

    assert locate_header(lines, "decisions") == HeaderMatch(line_index=1, level=4)


def test_fallback_pass_uses_long_lines_at_level_two() -> None:
    long_line = "This very long paragraph mentions the budget review " + "and keeps going " * 10
    lines = ["# Doc", long_line]

    assert locate_header(lines, "budget review") == HeaderMatch(line_index=1, level=2)


def test_not_found() -> None:
    assert locate_header(["# Doc", "text"], "Timeline") is None
    assert locate_header(["# Doc"], "") is None
    assert locate_header(["# Doc"], "###") is None


def test_section_header_pattern() -> None:
    assert SECTION_HEADER_RE.match("### Risks").group(1) == "###"
    assert SECTION_HEADER_RE.match("#Risks") is None
