"""Single model turn executor."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from contextvars import ContextVar
from dataclasses import dataclass

from loguru import logger

from cognote.config import PersonaConfig
from cognote.core.cancellation import CancellationToken
from cognote.core.parser import parse_response
from cognote.core.reasoning import derive_thinking_config
from cognote.errors import StepCancelledError, StepFailedError, TransportError
from cognote.providers.base import ABORTED, Transport, TransportCall, TransportResult
from cognote.store.failures import FailureSink
from cognote.store.messages import MessageSink
from cognote.types import (
    FailureSnapshot,
    MessagePurpose,
    ModelProfile,
    ParsedResponse,
    Persona,
    StreamChunk,
    TurnRequest,
)

DEFAULT_MAX_RETRIES = 2
DEFAULT_RETRY_DELAY_SECONDS = 1.0
RETRY_NOTICE_PREFIX = "[retry]"
FAILURE_NOTICE_PREFIX = "failed:"

_step_context: ContextVar[str] = ContextVar("step")


def current_step() -> str:
    """Get the id of the step running in this context."""
    return _step_context.get("-")


@dataclass
class StreamedMessage:
    """Placeholder message filled by one attempt's stream."""

    id: str
    text: str = ""
    thoughts: str = ""
    elapsed_ms: int = 0
    finalized: bool = False


class _StreamAccumulator:
    def __init__(self, message: StreamedMessage, messages: MessageSink) -> None:
        self.message = message
        self._messages = messages

    def feed(self, chunk: StreamChunk) -> None:
        if self.message.finalized:
            logger.debug("step.stream.late_chunk message_id={}", self.message.id)
            return
        self.message.text += chunk.text
        self.message.thoughts += chunk.thoughts
        self._messages.update(self.message.id, text=self.message.text, thoughts=self.message.thoughts)

    def finalize(self, *, text: str, thoughts: str | None, elapsed_ms: int) -> None:
        self.message.finalized = True
        self.message.elapsed_ms = elapsed_ms
        self._messages.update(self.message.id, text=text, thoughts=thoughts, elapsed_ms=elapsed_ms)


class StepExecutor:
    """Runs one model turn with streaming, retry and failure capture.

    Every attempt creates its own placeholder message, so a retried turn
    leaves the failed attempt's partial text visible.
    """

    def __init__(
        self,
        *,
        transport: Transport,
        messages: MessageSink,
        failures: FailureSink,
        personas: Mapping[Persona, PersonaConfig],
        openai_compatible: bool = False,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_delay_seconds: float = DEFAULT_RETRY_DELAY_SECONDS,
        on_terminal_failure: Callable[[FailureSnapshot], None] | None = None,
    ) -> None:
        self._transport = transport
        self._messages = messages
        self._failures = failures
        self._personas = personas
        self._openai_compatible = openai_compatible
        self._max_retries = max_retries
        self._retry_delay_seconds = retry_delay_seconds
        self._on_terminal_failure = on_terminal_failure

    async def execute_step(self, request: TurnRequest, *, cancel: CancellationToken) -> ParsedResponse:
        token = _step_context.set(request.step_id)
        try:
            return await self._execute(request, cancel)
        finally:
            _step_context.reset(token)

    async def resume(self, snapshot: FailureSnapshot, *, cancel: CancellationToken) -> ParsedResponse:
        """Replay a failed step from its snapshot."""
        request = TurnRequest(
            step_id=snapshot.step_id,
            prompt=snapshot.prompt,
            model=ModelProfile.for_model(snapshot.model_name),
            persona=snapshot.persona,
            purpose=snapshot.purpose,
            image=snapshot.image,
            resume=snapshot.resume_context(),
            system_instruction=snapshot.system_instruction,
        )
        logger.info("step.resume step_id={} turn_index={}", snapshot.step_id, snapshot.turn_index)
        return await self.execute_step(request, cancel=cancel)

    async def _execute(self, request: TurnRequest, cancel: CancellationToken) -> ParsedResponse:
        call = self._build_call(request)
        attempt = 0
        while True:
            cancel.raise_if_cancelled()
            logger.info("step.attempt attempt={} model={} persona={}", attempt + 1, call.model, request.persona.value)
            accumulator = _StreamAccumulator(
                StreamedMessage(id=self._messages.create(request.persona, request.purpose)),
                self._messages,
            )
            try:
                result = await self._transport.generate(call, cancel=cancel, on_chunk=accumulator.feed)
                cancel.raise_if_cancelled()
                _raise_for_result(result)
            except StepCancelledError:
                logger.info("step.cancelled attempt={}", attempt + 1)
                raise
            except Exception as exc:
                if cancel.cancelled:
                    logger.info("step.cancelled attempt={}", attempt + 1)
                    raise StepCancelledError() from exc
                if attempt < self._max_retries:
                    attempt += 1
                    self._notify_retry(exc, attempt)
                    await cancel.sleep(self._retry_delay_seconds * attempt)
                    continue
                raise self._fail(request, call, exc) from exc

            parsed = parse_response(result.text)
            accumulator.finalize(text=parsed.spoken_text, thoughts=result.thoughts, elapsed_ms=result.elapsed_ms)
            logger.info(
                "step.done elapsed_ms={} directives={} end_signal={} parse_error={}",
                result.elapsed_ms,
                len(parsed.directives),
                parsed.end_signal,
                parsed.parse_error,
            )
            return parsed

    def _build_call(self, request: TurnRequest) -> TransportCall:
        persona = self._personas[request.persona]
        if request.system_instruction is not None:
            system_instruction = request.system_instruction
        elif request.model.supports_system_instruction:
            system_instruction = persona.system_prompt
        else:
            system_instruction = None
        thinking = derive_thinking_config(
            request.model,
            persona.thinking_budget,
            persona.thinking_level,
            openai_compatible=self._openai_compatible,
        )
        return TransportCall(
            prompt=request.prompt,
            model=request.model.api_name,
            system_instruction=system_instruction,
            image=request.image,
            thinking=thinking,
        )

    def _notify_retry(self, exc: Exception, attempt: int) -> None:
        logger.warning("step.retry attempt={} of={} error={!s}", attempt, self._max_retries, exc)
        self._messages.create(Persona.SYSTEM, MessagePurpose.SYSTEM_NOTIFICATION, f"{RETRY_NOTICE_PREFIX} {exc}")

    def _fail(self, request: TurnRequest, call: TransportCall, exc: Exception) -> StepFailedError:
        logger.error("step.failed retries={} error={!s}", self._max_retries, exc)
        notice_id = self._messages.create(
            Persona.SYSTEM,
            MessagePurpose.SYSTEM_NOTIFICATION,
            f"{FAILURE_NOTICE_PREFIX} {exc}",
        )
        resume = request.resume
        snapshot = FailureSnapshot(
            step_id=request.step_id,
            prompt=request.prompt,
            model_name=request.model.api_name,
            system_instruction=call.system_instruction,
            image=request.image,
            persona=request.persona,
            purpose=request.purpose,
            error_message_id=notice_id,
            error=str(exc),
            user_input=resume.user_input if resume else "",
            flow_image=resume.image if resume else None,
            discussion_log=resume.discussion_log if resume else (),
            turn_index=resume.turn_index if resume else None,
            previous_signaled_stop=resume.previous_signaled_stop if resume else None,
        )
        self._failures.record(snapshot)
        if self._on_terminal_failure is not None:
            self._on_terminal_failure(snapshot)
        return StepFailedError(str(exc), snapshot)


def _raise_for_result(result: TransportResult) -> None:
    if result.error_tag is None:
        return
    if result.error_tag == ABORTED:
        raise StepCancelledError()
    raise TransportError(result.text or "model response error", tag=result.error_tag)
