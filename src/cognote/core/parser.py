"""Split a model reply into spoken text and notepad directives."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any

from loguru import logger

from cognote.notepad.directives import Directive, number_directives
from cognote.types import ParsedResponse

FENCED_BLOCK_RE = re.compile(r"```(?:json)?\s*(.*?)\s*```", re.IGNORECASE | re.DOTALL)
TRAILING_COMMA_RE = re.compile(r",(\s*[}\]])")
LINE_COMMENT_RE = re.compile(r"//.*$", re.MULTILINE)
BLOCK_COMMENT_RE = re.compile(r"/\*.*?\*/", re.DOTALL)

MODIFICATIONS_KEY = "notepad_modifications"
COMPLETE_KEY = "discussion_complete"
PARSE_ERROR = "Failed to parse AI JSON response."


@dataclass(frozen=True)
class _Candidate:
    payload: str
    start: int
    end: int
    fenced: bool


def parse_response(raw_text: str) -> ParsedResponse:
    """Extract the trailing directive block from a model reply."""
    if not raw_text.strip():
        return ParsedResponse(spoken_text=raw_text)

    candidate = _find_candidate(raw_text)
    if candidate is None:
        return ParsedResponse(spoken_text=raw_text)

    parsed = loads_lenient(candidate.payload)
    if parsed is None and candidate.fenced:
        logger.warning("parser.json.invalid payload={!r}", candidate.payload[:200])
        return ParsedResponse(spoken_text=raw_text, parse_error=PARSE_ERROR)
    if not isinstance(parsed, dict):
        return ParsedResponse(spoken_text=raw_text)

    directives: list[Directive] = []
    numbers: list[int] = []
    rejected: list[str] = []
    if isinstance(raw_directives := parsed.get(MODIFICATIONS_KEY), list):
        numbered, rejected = number_directives(raw_directives)
        numbers = [number for number, _ in numbered]
        directives = [directive for _, directive in numbered]
    end_signal = parsed.get(COMPLETE_KEY)
    end_signal = end_signal if isinstance(end_signal, bool) else False

    spoken_text = _remove_span(raw_text, candidate.start, candidate.end)
    if not spoken_text:
        spoken_text = _action_summary(len(directives), end_signal)

    return ParsedResponse(
        spoken_text=spoken_text,
        directives=directives,
        end_signal=end_signal,
        rejected=rejected,
        operation_numbers=numbers,
    )


def loads_lenient(payload: str) -> Any:
    """Parse JSON, repairing trailing commas and comments. Returns ``None`` on failure."""
    if not payload:
        return None
    try:
        return json.loads(payload)
    except json.JSONDecodeError:
        pass

    without_commas = TRAILING_COMMA_RE.sub(r"\1", payload)
    try:
        return json.loads(without_commas)
    except json.JSONDecodeError:
        pass

    # Also strips "//" inside string values such as URLs, so it runs last.
    without_comments = BLOCK_COMMENT_RE.sub("", LINE_COMMENT_RE.sub("", without_commas))
    try:
        return json.loads(without_comments)
    except json.JSONDecodeError:
        return None


def _find_candidate(text: str) -> _Candidate | None:
    blocks = list(FENCED_BLOCK_RE.finditer(text))
    if blocks:
        last = blocks[-1]
        return _Candidate(payload=last.group(1), start=last.start(), end=last.end(), fenced=True)

    key_index = max(text.rfind(f'"{MODIFICATIONS_KEY}"'), text.rfind(f'"{COMPLETE_KEY}"'))
    if key_index == -1:
        return None
    open_index = text.rfind("{", 0, key_index)
    close_index = text.rfind("}")
    if open_index == -1 or close_index <= open_index:
        return None
    return _Candidate(payload=text[open_index : close_index + 1], start=open_index, end=close_index + 1, fenced=False)


def _remove_span(text: str, start: int, end: int) -> str:
    if end == len(text):
        return text[:start].strip()
    return (text[:start] + text[end:]).strip()


def _action_summary(modification_count: int, end_signal: bool) -> str:
    edited = f"modified the notepad ({modification_count} operations)" if modification_count else ""
    ending = "suggested ending the discussion" if end_signal else ""
    if edited and ending:
        return f"(AI {edited} and {ending})"
    if edited:
        return f"(AI {edited})"
    if ending:
        return f"(AI {ending})"
    return ""
