"""Notepad directive models."""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError


class _DirectiveModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


class ReplaceAll(_DirectiveModel):
    """Replace the whole notepad."""

    action: Literal["replace_all"] = "replace_all"
    content: str


class Append(_DirectiveModel):
    """Append content to the end of the notepad."""

    action: Literal["append"] = "append"
    content: str


class Prepend(_DirectiveModel):
    """Prepend content to the start of the notepad."""

    action: Literal["prepend"] = "prepend"
    content: str


class ReplaceSection(_DirectiveModel):
    """Replace the body of the section under a header."""

    action: Literal["replace_section"] = "replace_section"
    header: str
    content: str


class AppendToSection(_DirectiveModel):
    """Append content to the end of the section under a header."""

    action: Literal["append_to_section"] = "append_to_section"
    header: str
    content: str


class SearchReplace(_DirectiveModel):
    """Literal text replacement."""

    action: Literal["search_and_replace"] = "search_and_replace"
    find: str = Field(..., min_length=1)
    replacement: str
    all: bool = Field(default=False, description="Replace all occurrences")


Directive = Annotated[
    ReplaceAll | Append | Prepend | ReplaceSection | AppendToSection | SearchReplace,
    Field(discriminator="action"),
]

ACTIONS = frozenset({"replace_all", "append", "prepend", "replace_section", "append_to_section", "search_and_replace"})

_DIRECTIVE_ADAPTER: TypeAdapter[Directive] = TypeAdapter(Directive)


def coerce_directive(raw: Any) -> Directive:
    """Validate one raw JSON directive."""
    return _DIRECTIVE_ADAPTER.validate_python(raw)


def number_directives(raw_items: list[Any]) -> tuple[list[tuple[int, Directive]], list[str]]:
    """Validate raw directives, keeping each one's 1-based position in ``raw_items``.

    Entries that do not fit are dropped and reported under the same numbering.
    """
    numbered: list[tuple[int, Directive]] = []
    rejected: list[str] = []
    for number, raw in enumerate(raw_items, start=1):
        action = raw.get("action") if isinstance(raw, dict) else None
        if action not in ACTIONS:
            rejected.append(f"Operation {number} ignored: unknown action {action!r}.")
            continue
        try:
            numbered.append((number, coerce_directive(raw)))
        except ValidationError as exc:
            fields = ", ".join(".".join(str(part) for part in error["loc"][1:]) or "-" for error in exc.errors())
            rejected.append(f'Operation {number} ("{action}") ignored: invalid fields {fields}.')
    return numbered, rejected


def coerce_directives(raw_items: list[Any]) -> tuple[list[Directive], list[str]]:
    """Validate raw directives, dropping and reporting the ones that do not fit."""
    numbered, rejected = number_directives(raw_items)
    return [directive for _, directive in numbered], rejected
