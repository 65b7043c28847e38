"""Apply notepad directives."""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass, field

from loguru import logger

from cognote.notepad.directives import (
    Append,
    AppendToSection,
    Directive,
    Prepend,
    ReplaceAll,
    ReplaceSection,
    SearchReplace,
)
from cognote.notepad.headers import header_level, locate_header

EXCESS_BLANK_LINES_RE = re.compile(r"\n{3,}")
WARNING_PREVIEW_LENGTH = 20


@dataclass(frozen=True)
class PatchResult:
    """Patched notepad plus per-directive errors and warnings."""

    document: str
    errors: list[str] = field(default_factory=list)


def apply_directives(
    document: str,
    directives: Sequence[Directive],
    *,
    numbers: Sequence[int] | None = None,
) -> PatchResult:
    """Apply directives in order, each over the output of the previous one.

    A directive that cannot be applied is reported in ``errors`` and skipped;
    earlier edits are kept and later ones still run. ``numbers`` gives the
    operation number used in messages, by default the 1-based position.
    """
    if numbers is None:
        numbers = range(1, len(directives) + 1)
    elif len(numbers) != len(directives):
        raise ValueError("numbers must match directives one to one")
    errors: list[str] = []
    for number, directive in zip(numbers, directives):
        document, error = _apply_one(document, directive, number)
        if error is not None:
            logger.warning("notepad.directive.failed number={} action={} error={}", number, directive.action, error)
            errors.append(error)
    return PatchResult(document=document, errors=errors)


def _apply_one(document: str, directive: Directive, number: int) -> tuple[str, str | None]:
    if isinstance(directive, ReplaceAll):
        return directive.content, None
    if isinstance(directive, Append):
        return _join(document, directive.content), None
    if isinstance(directive, Prepend):
        return _join(directive.content, document), None
    if isinstance(directive, ReplaceSection):
        return _replace_section(document, directive.header, directive.content, number)
    if isinstance(directive, AppendToSection):
        return _append_to_section(document, directive.header, directive.content, number)
    if isinstance(directive, SearchReplace):
        return _search_replace(document, directive, number)
    raise TypeError(f"unsupported directive: {directive!r}")


def _join(head: str, tail: str) -> str:
    # An empty side joins without a separator newline.
    if not head:
        return tail
    if not tail:
        return head
    separator = "" if head.endswith("\n") else "\n"
    return head + separator + tail


def _section_end(lines: list[str], start: int, level: int) -> int:
    for index in range(start + 1, len(lines)):
        current = header_level(lines[index])
        if current is not None and current <= level:
            return index
    return len(lines)


def _collapse_blank_lines(text: str) -> str:
    return EXCESS_BLANK_LINES_RE.sub("\n\n", text)


def _replace_section(document: str, header: str, content: str, number: int) -> tuple[str, str | None]:
    lines = document.split("\n")
    match = locate_header(lines, header)
    if match is None:
        return document, f'Operation {number} ("replace_section") failed: header "{header}" not found.'

    end = _section_end(lines, match.line_index, match.level)
    body = content if content.startswith("\n") else "\n" + content
    patched = [*lines[: match.line_index + 1], body, *lines[end:]]
    return _collapse_blank_lines("\n".join(patched)), None


def _append_to_section(document: str, header: str, content: str, number: int) -> tuple[str, str | None]:
    lines = document.split("\n")
    match = locate_header(lines, header)
    if match is None:
        return document, f'Operation {number} ("append_to_section") failed: header "{header}" not found.'

    end = _section_end(lines, match.line_index, match.level)
    before, after = lines[:end], lines[end:]
    if before and before[-1].strip():
        content = "\n" + content
    return _collapse_blank_lines("\n".join([*before, content, *after])), None


def _search_replace(document: str, directive: SearchReplace, number: int) -> tuple[str, str | None]:
    if directive.all:
        return document.replace(directive.find, directive.replacement), None
    if directive.find not in document:
        preview = directive.find[:WARNING_PREVIEW_LENGTH]
        return document, f'Operation {number} ("search_and_replace") warning: text "{preview}..." not found.'
    return document.replace(directive.find, directive.replacement, 1), None


def format_notepad_for_ai(content: str) -> str:
    """Notepad text as embedded in prompts; blank notepads are omitted."""
    if not content.strip():
        return ""
    return content
