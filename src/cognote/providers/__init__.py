"""Model provider transports."""

from __future__ import annotations

from cognote.config import Settings
from cognote.providers.base import ABORTED, StreamCallback, Transport, TransportCall, TransportResult
from cognote.providers.gemini import GeminiTransport
from cognote.providers.openai_compat import OpenAICompatTransport


def build_transport(settings: Settings) -> Transport:
    """Pick the transport selected by the settings."""
    if settings.use_openai_api:
        return OpenAICompatTransport(
            api_key=settings.openai_api_key,
            base_url=settings.openai_api_base_url,
            timeout_seconds=settings.request_timeout_seconds,
        )
    return GeminiTransport(api_key=settings.gemini_api_key, endpoint=settings.gemini_api_endpoint)


__all__ = [
    "ABORTED",
    "GeminiTransport",
    "OpenAICompatTransport",
    "StreamCallback",
    "Transport",
    "TransportCall",
    "TransportResult",
    "build_transport",
]
