"""Provider transport contract."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from cognote.core.cancellation import CancellationToken
from cognote.types import ImagePart, StreamChunk, ThinkingConfig

ABORTED = "aborted"

StreamCallback = Callable[[StreamChunk], None]


@dataclass(frozen=True)
class TransportCall:
    """Provider-agnostic description of one model call."""

    prompt: str
    model: str
    system_instruction: str | None = None
    image: ImagePart | None = None
    thinking: ThinkingConfig | None = None


@dataclass(frozen=True)
class TransportResult:
    """Outcome of one model call.

    When ``error_tag`` is set the call failed and ``text`` holds the
    provider's error message instead of a reply.
    """

    text: str
    elapsed_ms: int
    thoughts: str | None = None
    error_tag: str | None = None

    @property
    def ok(self) -> bool:
        return self.error_tag is None

    @classmethod
    def aborted(cls, elapsed_ms: int = 0) -> TransportResult:
        return cls(text="step cancelled by user", elapsed_ms=elapsed_ms, error_tag=ABORTED)


@runtime_checkable
class Transport(Protocol):
    """Streams one model reply."""

    async def generate(
        self,
        call: TransportCall,
        *,
        cancel: CancellationToken,
        on_chunk: StreamCallback,
    ) -> TransportResult: ...
