import pytest

from cognote.config import Settings
from cognote.errors import ApiKeyNotConfiguredError, ConfigurationError
from cognote.providers import GeminiTransport, OpenAICompatTransport, build_transport
from cognote.types import Persona


def test_defaults() -> None:
    settings = Settings()

    assert settings.use_openai_api is False
    assert settings.max_auto_retries == 2
    assert settings.retry_delay_seconds == 1.0
    assert settings.model_for(Persona.MUSE).api_name == "gemini-2.5-flash"


def test_env_prefix(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("COGNOTE_MUSE_MODEL", "gemini-3-pro-preview")
    monkeypatch.setenv("COGNOTE_MUSE_THINKING_BUDGET", "0")
    monkeypatch.setenv("COGNOTE_MAX_AUTO_RETRIES", "5")

    settings = Settings()

    assert settings.model_for(Persona.MUSE).supports_thinking_level
    assert settings.persona(Persona.MUSE).thinking_budget == 0
    assert settings.max_auto_retries == 5


def test_persona_lookup() -> None:
    settings = Settings(cognito_system_prompt="logic", muse_thinking_level="LOW")

    assert settings.persona(Persona.COGNITO).system_prompt == "logic"
    assert settings.personas()[Persona.MUSE].thinking_level == "LOW"
    with pytest.raises(ConfigurationError):
        settings.persona(Persona.USER)


def test_check_transport_requires_gemini_key() -> None:
    with pytest.raises(ApiKeyNotConfiguredError):
        Settings().check_transport()
    Settings(gemini_api_key="key").check_transport()


def test_check_transport_requires_openai_base_url() -> None:
    with pytest.raises(ConfigurationError, match="base URL"):
        Settings(use_openai_api=True).check_transport()
    Settings(use_openai_api=True, openai_api_base_url="http://localhost:11434/v1").check_transport()


def test_build_transport_follows_settings() -> None:
    assert isinstance(build_transport(Settings(gemini_api_key="key")), GeminiTransport)
    openai = Settings(use_openai_api=True, openai_api_base_url="http://localhost:11434/v1")
    assert isinstance(build_transport(openai), OpenAICompatTransport)
