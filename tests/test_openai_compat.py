import json

import httpx
import pytest

from cognote.core.cancellation import CancellationToken
from cognote.providers.base import ABORTED, TransportCall
from cognote.providers.openai_compat import (
    OPENAI_ERROR,
    SSE_DONE,
    OpenAICompatTransport,
    SseDelta,
    build_messages,
    parse_sse_line,
)
from cognote.types import ImagePart, StreamChunk


def _frame(content: str | None = None, reasoning: str | None = None) -> str:
    delta: dict[str, str] = {}
    if content is not None:
        delta["content"] = content
    if reasoning is not None:
        delta["reasoning_content"] = reasoning
    return "data: " + json.dumps({"choices": [{"delta": delta}]})


def _sse_body(*frames: str) -> bytes:
    return ("\n\n".join(frames) + "\n\n").encode()


def _transport(handler) -> OpenAICompatTransport:
    return OpenAICompatTransport(
        api_key="k",
        base_url="https://llm.example/v1",
        http_transport=httpx.MockTransport(handler),
    )


def test_parse_sse_line() -> None:
    assert parse_sse_line("") is None
    assert parse_sse_line(": keep-alive") is None
    assert parse_sse_line("data: [DONE]") == SSE_DONE
    assert parse_sse_line("data: {broken") is None
    assert parse_sse_line('data: {"choices": []}') is None
    assert parse_sse_line(_frame("Hi")) == SseDelta(text="Hi")
    assert parse_sse_line(_frame(reasoning="hmm")) == SseDelta(thoughts="hmm")


def test_build_messages_with_system_and_image() -> None:
    call = TransportCall(
        prompt="Describe",
        model="gpt-4o",
        system_instruction="Be brief",
        image=ImagePart(mime_type="image/png", data="AAAA"),
    )

    messages = build_messages(call)

    assert messages[0] == {"role": "system", "content": "Be brief"}
    assert messages[1]["content"] == [
        {"type": "text", "text": "Describe"},
        {"type": "image_url", "image_url": {"url": "data:image/png;base64,AAAA"}},
    ]


@pytest.mark.asyncio
async def test_streams_until_done() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        body = _sse_body(_frame(reasoning="think "), _frame("Hel"), _frame("lo"), "data: [DONE]", _frame("ignored"))
        return httpx.Response(200, content=body, headers={"content-type": "text/event-stream"})

    transport = OpenAICompatTransport(
        api_key="sk-test",
        base_url="https://llm.example/v1/",
        http_transport=httpx.MockTransport(handler),
    )
    chunks: list[StreamChunk] = []

    result = await transport.generate(
        TransportCall(prompt="Hi", model="gpt-4o"),
        cancel=CancellationToken(),
        on_chunk=chunks.append,
    )

    assert result.ok
    assert result.text == "Hello"
    assert result.thoughts == "think "
    assert [chunk.text for chunk in chunks] == ["", "Hel", "lo"]
    request = seen[0]
    assert str(request.url) == "https://llm.example/v1/chat/completions"
    assert request.headers["authorization"] == "Bearer sk-test"
    payload = json.loads(request.content)
    assert payload["stream"] is True
    assert payload["model"] == "gpt-4o"


@pytest.mark.asyncio
async def test_http_error_status_uses_provider_message() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(429, json={"error": {"message": "rate limited"}})

    transport = _transport(handler)

    result = await transport.generate(
        TransportCall(prompt="Hi", model="gpt-4o"),
        cancel=CancellationToken(),
        on_chunk=lambda chunk: None,
    )

    assert result.error_tag == OPENAI_ERROR
    assert result.text == "rate limited"


@pytest.mark.asyncio
async def test_connection_error_is_reported() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    transport = _transport(handler)

    result = await transport.generate(
        TransportCall(prompt="Hi", model="gpt-4o"),
        cancel=CancellationToken(),
        on_chunk=lambda chunk: None,
    )

    assert result.error_tag == OPENAI_ERROR
    assert "connection refused" in result.text


@pytest.mark.asyncio
async def test_cancel_during_stream_aborts() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=_sse_body(_frame("one"), _frame("two"), _frame("three")))

    transport = _transport(handler)
    cancel = CancellationToken()
    chunks: list[StreamChunk] = []

    def on_chunk(chunk: StreamChunk) -> None:
        chunks.append(chunk)
        cancel.cancel()

    result = await transport.generate(TransportCall(prompt="Hi", model="gpt-4o"), cancel=cancel, on_chunk=on_chunk)

    assert result.error_tag == ABORTED
    assert [chunk.text for chunk in chunks] == ["one"]
