"""Command line interface for cognote."""

from __future__ import annotations

import asyncio
import base64
import contextlib
import json
import mimetypes
import signal
import uuid
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console

from cognote.config import Settings, get_settings
from cognote.core.cancellation import CancellationToken
from cognote.core.executor import StepExecutor
from cognote.core.parser import parse_response
from cognote.errors import ConfigurationError, StepCancelledError, StepFailedError
from cognote.logging_utils import configure_logging
from cognote.notepad import apply_directives, format_notepad_for_ai, number_directives
from cognote.providers import build_transport
from cognote.store import FileFailureSink, MessageStore
from cognote.types import ImagePart, MessagePurpose, ParsedResponse, Persona, TurnRequest

app = typer.Typer(
    name="cognote",
    help="Run model turns that edit a shared notepad.",
    add_completion=False,
    rich_markup_mode="rich",
)
console = Console()

EXIT_CANCELLED = 130


class _ConsoleMessages:
    """Message store that echoes streamed text to the terminal."""

    def __init__(self, store: MessageStore, out: Console) -> None:
        self._store = store
        self._out = out
        self._printed: dict[str, int] = {}
        self._streaming: set[str] = set()

    def create(self, role: str, purpose: str, text: str = "") -> str:
        message_id = self._store.create(role, purpose, text)
        if purpose == MessagePurpose.SYSTEM_NOTIFICATION:
            self._out.print(f"[yellow]{text}[/yellow]", highlight=False)
        else:
            self._out.print(f"[bold]{role}[/bold]", highlight=False)
            self._streaming.add(message_id)
        return message_id

    def update(self, message_id: str, **fields: Any) -> None:
        self._store.update(message_id, **fields)
        text = fields.get("text")
        if message_id not in self._streaming or not isinstance(text, str):
            return
        if "elapsed_ms" in fields:
            self._streaming.discard(message_id)
            self._out.print()
            return
        printed = self._printed.get(message_id, 0)
        self._out.print(text[printed:], end="", markup=False, highlight=False)
        self._printed[message_id] = len(text)


def _build_executor(settings: Settings, messages: Any, failures: FileFailureSink) -> StepExecutor:
    return StepExecutor(
        transport=build_transport(settings),
        messages=messages,
        failures=failures,
        personas=settings.personas(),
        openai_compatible=settings.use_openai_api,
        max_retries=settings.max_auto_retries,
        retry_delay_seconds=settings.retry_delay_seconds,
    )


def _load_settings() -> Settings:
    settings = get_settings()
    configure_logging(profile="cli", settings=settings)
    try:
        settings.check_transport()
    except ConfigurationError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1) from exc
    return settings


def _read_image(path: Path) -> ImagePart:
    mime_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
    return ImagePart(mime_type=mime_type, data=base64.b64encode(path.read_bytes()).decode("ascii"))


def _compose_prompt(prompt: str, notepad_text: str) -> str:
    notepad_block = format_notepad_for_ai(notepad_text)
    if not notepad_block:
        return prompt
    return f"{prompt}\n\nCurrent notepad:\n{notepad_block}"


def _parsed_payload(parsed: ParsedResponse) -> dict[str, Any]:
    return {
        "spoken_text": parsed.spoken_text,
        "directives": [directive.model_dump() for directive in parsed.directives],
        "end_signal": parsed.end_signal,
        "parse_error": parsed.parse_error,
        "rejected": parsed.rejected,
    }


def _apply_to_notepad(parsed: ParsedResponse, notepad: Path | None) -> None:
    if parsed.parse_error:
        console.print(f"[red]{parsed.parse_error}[/red]")
    for message in parsed.rejected:
        console.print(f"[yellow]{message}[/yellow]")
    if notepad is not None and parsed.directives:
        current = notepad.read_text(encoding="utf-8") if notepad.exists() else ""
        result = apply_directives(current, parsed.directives, numbers=parsed.operation_numbers)
        notepad.write_text(result.document, encoding="utf-8")
        console.print(f"notepad updated: {len(parsed.directives)} directive(s)")
        for error in result.errors:
            console.print(f"[yellow]{error}[/yellow]")
    if parsed.end_signal:
        console.print("[green]discussion marked complete[/green]")


async def _run_cancellable(coro_factory: Any) -> ParsedResponse:
    cancel = CancellationToken()
    loop = asyncio.get_running_loop()
    with contextlib.suppress(NotImplementedError):
        loop.add_signal_handler(signal.SIGINT, cancel.cancel)
    try:
        return await coro_factory(cancel)
    finally:
        with contextlib.suppress(NotImplementedError):
            loop.remove_signal_handler(signal.SIGINT)


def _finish(run: Any) -> ParsedResponse:
    try:
        return asyncio.run(_run_cancellable(run))
    except StepCancelledError as exc:
        console.print(f"[yellow]{exc}[/yellow]")
        raise typer.Exit(EXIT_CANCELLED) from exc
    except StepFailedError as exc:
        console.print("[red]step failed, run `cognote resume` to retry it[/red]")
        raise typer.Exit(1) from exc


@app.command()
def step(
    prompt: str = typer.Argument(..., help="Prompt for this turn"),
    persona: Persona = typer.Option(Persona.COGNITO, help="Persona taking the turn"),
    notepad: Optional[Path] = typer.Option(None, help="Notepad file edited by the turn"),
    image: Optional[Path] = typer.Option(None, help="Image attached to the prompt", exists=True, dir_okay=False),
    purpose: MessagePurpose = typer.Option(MessagePurpose.COGNITO_TO_MUSE, help="Purpose of the message"),
) -> None:
    """Run one model turn and apply its notepad directives."""
    if persona not in (Persona.COGNITO, Persona.MUSE):
        console.print(f"[red]persona {persona.value!r} does not take model turns[/red]")
        raise typer.Exit(2)
    settings = _load_settings()
    notepad_text = notepad.read_text(encoding="utf-8") if notepad is not None and notepad.exists() else ""
    request = TurnRequest(
        step_id=uuid.uuid4().hex,
        prompt=_compose_prompt(prompt, notepad_text),
        model=settings.model_for(persona),
        persona=persona,
        purpose=purpose,
        image=_read_image(image) if image is not None else None,
    )
    messages = _ConsoleMessages(MessageStore(), console)
    executor = _build_executor(settings, messages, FileFailureSink(settings.failure_snapshot_path))
    parsed = _finish(lambda cancel: executor.execute_step(request, cancel=cancel))
    _apply_to_notepad(parsed, notepad)


@app.command()
def resume(
    notepad: Optional[Path] = typer.Option(None, help="Notepad file edited by the turn"),
) -> None:
    """Replay the last failed step."""
    settings = _load_settings()
    failures = FileFailureSink(settings.failure_snapshot_path)
    snapshot = failures.load()
    if snapshot is None:
        console.print("no failed step to resume")
        raise typer.Exit(1)
    executor = _build_executor(settings, _ConsoleMessages(MessageStore(), console), failures)
    parsed = _finish(lambda cancel: executor.resume(snapshot, cancel=cancel))
    failures.clear()
    _apply_to_notepad(parsed, notepad)


@app.command()
def parse(path: Path = typer.Argument(..., exists=True, dir_okay=False, help="File holding a raw model reply")) -> None:
    """Split a raw reply into spoken text and directives."""
    parsed = parse_response(path.read_text(encoding="utf-8"))
    console.print_json(json.dumps(_parsed_payload(parsed), ensure_ascii=False))


@app.command()
def apply(
    notepad: Path = typer.Argument(..., help="Notepad file"),
    directives: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON list of directives"),
    write: bool = typer.Option(False, "--write", help="Write the result back to the notepad"),
) -> None:
    """Apply a JSON directive list to a notepad file."""
    raw = json.loads(directives.read_text(encoding="utf-8"))
    if isinstance(raw, dict):
        raw = raw.get("notepad_modifications", [])
    if not isinstance(raw, list):
        console.print("[red]directives must be a JSON list[/red]")
        raise typer.Exit(1)
    numbered, rejected = number_directives(raw)
    current = notepad.read_text(encoding="utf-8") if notepad.exists() else ""
    result = apply_directives(
        current,
        [directive for _, directive in numbered],
        numbers=[number for number, _ in numbered],
    )
    for message in [*rejected, *result.errors]:
        console.print(f"[yellow]{message}[/yellow]")
    if write:
        notepad.write_text(result.document, encoding="utf-8")
        console.print(f"wrote {notepad}")
    else:
        console.print(result.document, markup=False, highlight=False)
