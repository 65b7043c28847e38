"""OpenAI-compatible chat completions transport."""

from __future__ import annotations

import json
import time
from dataclasses import dataclass
from typing import Any

import httpx
from loguru import logger

from cognote.core.cancellation import CancellationToken
from cognote.errors import StepCancelledError
from cognote.providers.base import StreamCallback, TransportCall, TransportResult
from cognote.types import StreamChunk

OPENAI_ERROR = "openai_error"
DATA_PREFIX = "data:"
DONE_SENTINEL = "[DONE]"


@dataclass(frozen=True)
class SseDelta:
    """Content carried by one ``data:`` frame."""

    text: str = ""
    thoughts: str = ""
    done: bool = False


SSE_DONE = SseDelta(done=True)


def parse_sse_line(line: str) -> SseDelta | None:
    """Decode one server-sent-event line.

    Returns ``None`` for blank lines, comments and frames that are not valid
    JSON chunks; those are skipped by the reader.
    """
    stripped = line.strip()
    if not stripped or stripped.startswith(":"):
        return None
    message = stripped[len(DATA_PREFIX) :].strip() if stripped.startswith(DATA_PREFIX) else stripped
    if message == DONE_SENTINEL:
        return SSE_DONE
    try:
        payload = json.loads(message)
    except json.JSONDecodeError:
        return None
    if not isinstance(payload, dict):
        return None
    choices = payload.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return None
    delta = choices[0].get("delta")
    if not isinstance(delta, dict):
        return None
    text = delta.get("content")
    thoughts = delta.get("reasoning_content")
    return SseDelta(
        text=text if isinstance(text, str) else "",
        thoughts=thoughts if isinstance(thoughts, str) else "",
    )


def build_messages(call: TransportCall) -> list[dict[str, Any]]:
    messages: list[dict[str, Any]] = []
    if call.system_instruction:
        messages.append({"role": "system", "content": call.system_instruction})
    content: list[dict[str, Any]] = [{"type": "text", "text": call.prompt}]
    if call.image is not None:
        content.append({"type": "image_url", "image_url": {"url": call.image.data_url()}})
    messages.append({"role": "user", "content": content})
    return messages


class OpenAICompatTransport:
    """Streams replies from any ``/chat/completions`` endpoint."""

    def __init__(
        self,
        *,
        api_key: str,
        base_url: str,
        timeout_seconds: float = 120.0,
        http_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout = httpx.Timeout(connect=30.0, read=timeout_seconds, write=30.0, pool=30.0)
        self._http_transport = http_transport

    async def generate(
        self,
        call: TransportCall,
        *,
        cancel: CancellationToken,
        on_chunk: StreamCallback,
    ) -> TransportResult:
        start = time.monotonic()
        try:
            return await cancel.race(self._stream(call, cancel=cancel, on_chunk=on_chunk, start=start))
        except StepCancelledError:
            return TransportResult.aborted(_elapsed_ms(start))
        except httpx.HTTPError as exc:
            logger.warning("openai.call.error model={} error={!s}", call.model, exc)
            return TransportResult(text=str(exc) or type(exc).__name__, elapsed_ms=0, error_tag=OPENAI_ERROR)

    async def _stream(
        self,
        call: TransportCall,
        *,
        cancel: CancellationToken,
        on_chunk: StreamCallback,
        start: float,
    ) -> TransportResult:
        headers = {"Content-Type": "application/json", "Authorization": f"Bearer {self._api_key}"}
        body = {"model": call.model, "messages": build_messages(call), "stream": True}
        text_parts: list[str] = []
        thought_parts: list[str] = []

        async with (
            httpx.AsyncClient(timeout=self._timeout, transport=self._http_transport) as client,
            client.stream("POST", f"{self._base_url}/chat/completions", headers=headers, json=body) as response,
        ):
            if response.is_error:
                raw = await response.aread()
                message = _error_message(raw) or response.reason_phrase or f"HTTP {response.status_code}"
                logger.warning("openai.call.status model={} status={}", call.model, response.status_code)
                return TransportResult(text=message, elapsed_ms=0, error_tag=OPENAI_ERROR)

            async for line in response.aiter_lines():
                if cancel.cancelled:
                    return TransportResult.aborted(_elapsed_ms(start))
                delta = parse_sse_line(line)
                if delta is None:
                    continue
                if delta.done:
                    break
                if not delta.text and not delta.thoughts:
                    continue
                text_parts.append(delta.text)
                thought_parts.append(delta.thoughts)
                on_chunk(StreamChunk(text=delta.text, thoughts=delta.thoughts))

        thoughts = "".join(thought_parts)
        return TransportResult(
            text="".join(text_parts),
            thoughts=thoughts or None,
            elapsed_ms=_elapsed_ms(start),
        )


def _error_message(raw: bytes) -> str | None:
    try:
        payload = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None
    if not isinstance(payload, dict):
        return None
    error = payload.get("error")
    if isinstance(error, dict) and isinstance(message := error.get("message"), str):
        return message
    return None


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)
