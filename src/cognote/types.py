"""Shared turn types."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from cognote.notepad.directives import Directive

ThinkingLevel = Literal["MINIMAL", "LOW", "MEDIUM", "HIGH"]


class Persona(StrEnum):
    """Who a message is attributed to."""

    USER = "user"
    COGNITO = "cognito"
    MUSE = "muse"
    SYSTEM = "system"


class MessagePurpose(StrEnum):
    USER_INPUT = "user-input"
    SYSTEM_NOTIFICATION = "system-notification"
    COGNITO_TO_MUSE = "cognito-to-muse"
    MUSE_TO_COGNITO = "muse-to-cognito"
    FINAL_RESPONSE = "final-response"


class ImagePart(BaseModel):
    """Inline image sent alongside a prompt."""

    model_config = ConfigDict(frozen=True)

    mime_type: str
    data: str = Field(..., description="Base64 encoded image bytes")

    def data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.data}"


class ModelProfile(BaseModel):
    """Capabilities of one selectable model."""

    model_config = ConfigDict(frozen=True)

    api_name: str
    name: str = ""
    supports_thinking_config: bool = False
    supports_thinking_level: bool = False
    supports_system_instruction: bool = True

    @classmethod
    def for_model(cls, api_name: str) -> ModelProfile:
        lowered = api_name.casefold()
        leveled = "gemini-3" in lowered
        return cls(
            api_name=api_name,
            name=api_name,
            supports_thinking_config=leveled or "gemini-2.5" in lowered,
            supports_thinking_level=leveled,
            supports_system_instruction="gemma" not in lowered,
        )


class ThinkingConfig(BaseModel):
    """Reasoning settings forwarded to the managed provider."""

    model_config = ConfigDict(frozen=True)

    thinking_budget: int | None = None
    thinking_level: ThinkingLevel | None = None


class ResumeContext(BaseModel):
    """Where the surrounding discussion stood when the step was issued."""

    model_config = ConfigDict(frozen=True)

    user_input: str = ""
    image: ImagePart | None = None
    discussion_log: tuple[str, ...] = ()
    turn_index: int | None = None
    previous_signaled_stop: bool | None = None


class TurnRequest(BaseModel):
    """One model invocation, immutable once issued."""

    model_config = ConfigDict(frozen=True)

    step_id: str
    prompt: str
    model: ModelProfile
    persona: Persona
    purpose: MessagePurpose
    image: ImagePart | None = None
    resume: ResumeContext | None = None
    system_instruction: str | None = Field(default=None, description="Replaces the persona prompt when replaying")


class FailureSnapshot(BaseModel):
    """Replay state captured once a step exhausted its retries."""

    model_config = ConfigDict(frozen=True)

    step_id: str
    prompt: str
    model_name: str
    system_instruction: str | None = None
    image: ImagePart | None = None
    persona: Persona
    purpose: MessagePurpose
    error_message_id: str
    error: str = ""
    user_input: str = ""
    flow_image: ImagePart | None = None
    discussion_log: tuple[str, ...] = ()
    turn_index: int | None = None
    previous_signaled_stop: bool | None = None

    def resume_context(self) -> ResumeContext:
        return ResumeContext(
            user_input=self.user_input,
            image=self.flow_image,
            discussion_log=self.discussion_log,
            turn_index=self.turn_index,
            previous_signaled_stop=self.previous_signaled_stop,
        )


@dataclass(frozen=True)
class StreamChunk:
    """One streamed delta from a transport."""

    text: str = ""
    thoughts: str = ""


@dataclass(frozen=True)
class ParsedResponse:
    """Model reply split into visible text, notepad directives and the end flag."""

    spoken_text: str
    directives: list[Directive] = field(default_factory=list)
    end_signal: bool = False
    parse_error: str | None = None
    rejected: list[str] = field(default_factory=list)
    operation_numbers: list[int] = field(default_factory=list)
