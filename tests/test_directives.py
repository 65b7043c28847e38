import pytest
from pydantic import ValidationError

from cognote.notepad.directives import (
    AppendToSection,
    ReplaceAll,
    SearchReplace,
    coerce_directive,
    coerce_directives,
    number_directives,
)


def test_coerce_directive_dispatches_on_action() -> None:
    directive = coerce_directive({"action": "append_to_section", "header": "Plan", "content": "- x"})

    assert isinstance(directive, AppendToSection)
    assert directive.header == "Plan"


def test_search_replace_defaults_to_single_replacement() -> None:
    directive = coerce_directive({"action": "search_and_replace", "find": "a", "replacement": "b"})

    assert directive == SearchReplace(find="a", replacement="b", all=False)


def test_empty_find_is_rejected() -> None:
    with pytest.raises(ValidationError):
        coerce_directive({"action": "search_and_replace", "find": "", "replacement": "b"})


def test_extra_fields_are_ignored() -> None:
    directive = coerce_directive({"action": "replace_all", "content": "x", "reason": "cleanup"})

    assert directive == ReplaceAll(content="x")


def test_coerce_directives_keeps_valid_entries_in_order() -> None:
    directives, rejected = coerce_directives([
        {"action": "replace_all", "content": "x"},
        "not an object",
        {"action": "append"},
        {"action": "search_and_replace", "find": "x", "replacement": "y", "all": True},
    ])

    assert directives == [ReplaceAll(content="x"), SearchReplace(find="x", replacement="y", all=True)]
    assert rejected == [
        "Operation 2 ignored: unknown action None.",
        'Operation 3 ("append") ignored: invalid fields content.',
    ]


def test_number_directives_keeps_raw_positions() -> None:
    numbered, rejected = number_directives([
        {"action": "bogus"},
        {"action": "append", "content": "a"},
        {"action": "prepend"},
        {"action": "prepend", "content": "p"},
    ])

    assert [number for number, _ in numbered] == [2, 4]
    assert [message.split(" ", 2)[1] for message in rejected] == ["1", "3"]
