"""Gemini transport built on google-genai's async streaming client."""

from __future__ import annotations

import base64
import re
import time
from typing import Any

from google import genai
from google.genai import types as genai_types
from loguru import logger

from cognote.core.cancellation import CancellationToken
from cognote.errors import ApiKeyNotConfiguredError, StepCancelledError
from cognote.providers.base import StreamCallback, TransportCall, TransportResult
from cognote.types import StreamChunk

GEMINI_ERROR = "gemini_error"
API_VERSION_SUFFIX_RE = re.compile(r"/(v1beta|v1)$")


def normalize_base_url(endpoint: str | None) -> str | None:
    """Strip the trailing slash and API version; the SDK appends its own."""
    if endpoint is None or not endpoint.strip():
        return None
    base = endpoint.strip().rstrip("/")
    return API_VERSION_SUFFIX_RE.sub("", base)


def build_contents(call: TransportCall) -> list[genai_types.Part]:
    parts: list[genai_types.Part] = []
    if call.image is not None:
        data = base64.b64decode(call.image.data)
        parts.append(genai_types.Part.from_bytes(data=data, mime_type=call.image.mime_type))
    parts.append(genai_types.Part.from_text(text=call.prompt))
    return parts


def build_config(call: TransportCall) -> genai_types.GenerateContentConfig:
    kwargs: dict[str, Any] = {}
    if call.system_instruction:
        kwargs["system_instruction"] = call.system_instruction
    if call.thinking is not None:
        thinking_kwargs: dict[str, Any] = {"include_thoughts": True}
        if call.thinking.thinking_budget is not None:
            thinking_kwargs["thinking_budget"] = call.thinking.thinking_budget
        if call.thinking.thinking_level is not None:
            thinking_kwargs["thinking_level"] = call.thinking.thinking_level
        kwargs["thinking_config"] = genai_types.ThinkingConfig(**thinking_kwargs)
    return genai_types.GenerateContentConfig(**kwargs)


def split_chunk(chunk: Any) -> StreamChunk:
    """Separate reply text from thought parts in one streamed chunk."""
    text = ""
    thoughts = ""
    candidates = getattr(chunk, "candidates", None) or []
    content = getattr(candidates[0], "content", None) if candidates else None
    for part in getattr(content, "parts", None) or []:
        part_text = getattr(part, "text", "") or ""
        if getattr(part, "thought", False):
            thoughts += part_text
        else:
            text += part_text
    if not text and not thoughts:
        text = getattr(chunk, "text", "") or ""
    return StreamChunk(text=text, thoughts=thoughts)


class GeminiTransport:
    """Managed-provider transport."""

    def __init__(self, *, api_key: str | None, endpoint: str | None = None, client: Any = None) -> None:
        self._api_key = api_key
        self._endpoint = normalize_base_url(endpoint)
        self._client = client

    def _get_client(self) -> Any:
        if self._client is not None:
            return self._client
        if not self._api_key:
            raise ApiKeyNotConfiguredError("Gemini API key is not configured.")
        http_options = genai_types.HttpOptions(base_url=self._endpoint) if self._endpoint else None
        self._client = genai.Client(api_key=self._api_key, http_options=http_options)
        return self._client

    async def generate(
        self,
        call: TransportCall,
        *,
        cancel: CancellationToken,
        on_chunk: StreamCallback,
    ) -> TransportResult:
        start = time.monotonic()
        try:
            client = self._get_client()
        except ApiKeyNotConfiguredError as exc:
            return TransportResult(text=str(exc), elapsed_ms=0, error_tag=GEMINI_ERROR)

        try:
            return await cancel.race(self._stream(client, call, cancel=cancel, on_chunk=on_chunk, start=start))
        except StepCancelledError:
            return TransportResult.aborted(_elapsed_ms(start))
        except Exception as exc:
            logger.warning("gemini.call.error model={} error={!s}", call.model, exc)
            return TransportResult(
                text=str(exc) or type(exc).__name__,
                elapsed_ms=_elapsed_ms(start),
                error_tag=GEMINI_ERROR,
            )

    async def _stream(
        self,
        client: Any,
        call: TransportCall,
        *,
        cancel: CancellationToken,
        on_chunk: StreamCallback,
        start: float,
    ) -> TransportResult:
        stream = await client.aio.models.generate_content_stream(
            model=call.model,
            contents=build_contents(call),
            config=build_config(call),
        )
        text = ""
        thoughts = ""
        async for chunk in stream:
            if cancel.cancelled:
                return TransportResult.aborted(_elapsed_ms(start))
            delta = split_chunk(chunk)
            text += delta.text
            thoughts += delta.thoughts
            on_chunk(delta)

        return TransportResult(text=text, thoughts=thoughts or None, elapsed_ms=_elapsed_ms(start))


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)
