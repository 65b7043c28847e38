"""Fuzzy section header lookup.

Model-written directives name sections loosely: different casing, smart
quotes, a trailing colon, a bolded line instead of a markdown header, or a
header with extra words. The resolver accepts all of these, trading
precision for robustness:

* ``# Title`` lines are headers of level ``len("#" * n)``;
* ``**Title**`` and ``__Title__`` lines are level 4;
* any other line shorter than ``MAX_PLAIN_HEADER_LENGTH`` is a level 3
  candidate.

The first candidate (top to bottom) that matches the target exactly after
normalization, contains it or is contained by it, or does so once both are
reduced to bare word characters, wins. When no candidate matches, any
non-blank line containing the target is accepted at level 2.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass

MARKER_HEADER_RE = re.compile(r"^(\s*)(#+)\s*(.*)$")
BOLD_HEADER_RE = re.compile(r"^(\*\*|__)(.*?)(\*\*|__)\s*$")
LEADING_MARKERS_RE = re.compile(r"^[#\s*_-]+")
TRAILING_MARKERS_RE = re.compile(r"[*_~]+$")
TRAILING_PUNCTUATION_RE = re.compile(r"[:：.。]$")
NON_WORD_RE = re.compile(r"[^\w一-龥]", re.ASCII)
SECTION_HEADER_RE = re.compile(r"^(#+)\s")

MAX_PLAIN_HEADER_LENGTH = 100
BOLD_HEADER_LEVEL = 4
PLAIN_HEADER_LEVEL = 3
FALLBACK_LEVEL = 2
MIN_FUZZY_LENGTH = 2

_QUOTE_TABLE = str.maketrans({"“": '"', "”": '"', "‘": "'", "’": "'", "：": ":"})


@dataclass(frozen=True)
class HeaderMatch:
    """Resolved header line."""

    line_index: int
    level: int


def normalize_header(text: str) -> str:
    text = LEADING_MARKERS_RE.sub("", text)
    text = TRAILING_MARKERS_RE.sub("", text)
    text = text.strip().lower().translate(_QUOTE_TABLE)
    return TRAILING_PUNCTUATION_RE.sub("", text).strip()


def clean_header(text: str) -> str:
    """Keep only ASCII word characters and CJK ideographs."""
    return NON_WORD_RE.sub("", text)


def classify_line(line: str) -> tuple[str, int] | None:
    """Return ``(header_text, level)`` when the line may be a header."""
    stripped = line.strip()
    if not stripped:
        return None
    if marker := MARKER_HEADER_RE.match(stripped):
        return marker.group(3).strip(), len(marker.group(2))
    if bold := BOLD_HEADER_RE.match(stripped):
        return bold.group(2).strip(), BOLD_HEADER_LEVEL
    if len(stripped) < MAX_PLAIN_HEADER_LENGTH:
        return stripped, PLAIN_HEADER_LEVEL
    return None


def header_level(line: str) -> int | None:
    """Level of a ``#`` header line, used for section boundaries."""
    stripped = line.strip()
    match = SECTION_HEADER_RE.match(stripped)
    if match is None:
        return None
    return len(match.group(1))


def _matches(candidate: str, target: str, cleaned_target: str) -> bool:
    normalized = normalize_header(candidate)
    if normalized == target:
        return True
    if len(target) > MIN_FUZZY_LENGTH and (target in normalized or normalized in target):
        return True
    cleaned = clean_header(normalized)
    if len(cleaned_target) > MIN_FUZZY_LENGTH and len(cleaned) > MIN_FUZZY_LENGTH:
        return cleaned_target in cleaned or cleaned in cleaned_target
    return False


def locate_header(lines: Sequence[str], target: str) -> HeaderMatch | None:
    """Find the line of the section titled ``target``."""
    if not target:
        return None
    normalized_target = normalize_header(target)
    cleaned_target = clean_header(normalized_target)
    if not normalized_target and not cleaned_target:
        return None

    for index, line in enumerate(lines):
        classified = classify_line(line)
        if classified is None:
            continue
        header_text, level = classified
        if header_text and _matches(header_text, normalized_target, cleaned_target):
            return HeaderMatch(line_index=index, level=level)

    for index, line in enumerate(lines):
        lowered = line.strip().lower()
        if lowered and (normalized_target in lowered or lowered in normalized_target):
            return HeaderMatch(line_index=index, level=FALLBACK_LEVEL)

    return None
