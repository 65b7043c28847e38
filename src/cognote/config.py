"""Configuration management for cognote."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from cognote.errors import ApiKeyNotConfiguredError, ConfigurationError
from cognote.types import ModelProfile, Persona, ThinkingLevel

DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_COGNITO_PROMPT = (
    "You are Cognito, a rigorous and logical thinker. Discuss the user's request with Muse, "
    "keep the shared notepad up to date, and finish your reply with a ```json block holding "
    '"notepad_modifications" and "discussion_complete".'
)
DEFAULT_MUSE_PROMPT = (
    "You are Muse, a creative and sceptical partner. Challenge Cognito's reasoning, "
    "keep the shared notepad up to date, and finish your reply with a ```json block holding "
    '"notepad_modifications" and "discussion_complete".'
)


@dataclass(frozen=True)
class PersonaConfig:
    """Per-persona prompt and reasoning settings."""

    system_prompt: str
    thinking_budget: int
    thinking_level: ThinkingLevel


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_prefix="COGNOTE_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Managed provider
    gemini_api_key: str | None = Field(default=None, description="Gemini API key")
    gemini_api_endpoint: str | None = Field(default=None, description="Optional Gemini API base URL")

    # OpenAI-compatible provider
    use_openai_api: bool = Field(default=False, description="Route calls through an OpenAI-compatible endpoint")
    openai_api_key: str = Field(default="", description="API key for the OpenAI-compatible endpoint")
    openai_api_base_url: str = Field(default="", description="Base URL, e.g. https://api.openai.com/v1")

    # Personas
    cognito_model: str = Field(default=DEFAULT_MODEL)
    muse_model: str = Field(default=DEFAULT_MODEL)
    cognito_system_prompt: str = Field(default=DEFAULT_COGNITO_PROMPT)
    muse_system_prompt: str = Field(default=DEFAULT_MUSE_PROMPT)
    cognito_thinking_budget: int = Field(default=-1, description="0 disables reasoning, -1 is automatic")
    muse_thinking_budget: int = Field(default=-1, description="0 disables reasoning, -1 is automatic")
    cognito_thinking_level: ThinkingLevel = Field(default="HIGH")
    muse_thinking_level: ThinkingLevel = Field(default="HIGH")

    # Step execution
    max_auto_retries: int = Field(default=2, ge=0, description="Retries after the first attempt")
    retry_delay_seconds: float = Field(default=1.0, ge=0, description="Base delay, multiplied by the retry number")
    request_timeout_seconds: float = Field(default=120.0, gt=0)
    failure_snapshot_path: Path = Field(default=Path(".cognote/failed_step.json"))

    # Logging
    log_level: str = Field(default="INFO", description="Log level")

    def persona(self, persona: Persona) -> PersonaConfig:
        if persona == Persona.COGNITO:
            return PersonaConfig(self.cognito_system_prompt, self.cognito_thinking_budget, self.cognito_thinking_level)
        if persona == Persona.MUSE:
            return PersonaConfig(self.muse_system_prompt, self.muse_thinking_budget, self.muse_thinking_level)
        raise ConfigurationError(f"persona {persona.value!r} does not take model turns")

    def personas(self) -> dict[Persona, PersonaConfig]:
        return {persona: self.persona(persona) for persona in (Persona.COGNITO, Persona.MUSE)}

    def model_for(self, persona: Persona) -> ModelProfile:
        name = self.cognito_model if persona == Persona.COGNITO else self.muse_model
        return ModelProfile.for_model(name)

    def check_transport(self) -> None:
        """Raise when the selected transport cannot be used."""
        if self.use_openai_api:
            if not self.openai_api_base_url.strip():
                raise ConfigurationError("OpenAI-compatible base URL is not configured.")
            if not self.cognito_model.strip() or not self.muse_model.strip():
                raise ConfigurationError("OpenAI-compatible model ids are not configured.")
            return
        if not (self.gemini_api_key and self.gemini_api_key.strip()):
            raise ApiKeyNotConfiguredError("Gemini API key is not configured.")


def get_settings() -> Settings:
    """Get application settings; pydantic-settings loads ``.env`` automatically."""
    return Settings()
