"""Shared notepad editing."""

from cognote.notepad.directives import (
    Append,
    AppendToSection,
    Directive,
    Prepend,
    ReplaceAll,
    ReplaceSection,
    SearchReplace,
    coerce_directives,
    number_directives,
)
from cognote.notepad.headers import HeaderMatch, locate_header
from cognote.notepad.patch import PatchResult, apply_directives, format_notepad_for_ai

__all__ = [
    "Append",
    "AppendToSection",
    "Directive",
    "HeaderMatch",
    "PatchResult",
    "Prepend",
    "ReplaceAll",
    "ReplaceSection",
    "SearchReplace",
    "apply_directives",
    "coerce_directives",
    "format_notepad_for_ai",
    "locate_header",
    "number_directives",
]
