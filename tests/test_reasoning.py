from cognote.core.reasoning import AUTO_FALLBACK_BUDGET, derive_thinking_config
from cognote.types import ModelProfile, ThinkingConfig

FLASH = ModelProfile.for_model("gemini-2.5-flash")
LEVELED = ModelProfile.for_model("gemini-3-pro-preview")
PLAIN = ModelProfile.for_model("gemini-2.0-flash")


def test_disabled_budget_sends_nothing() -> None:
    assert derive_thinking_config(FLASH, 0, "HIGH", openai_compatible=False) is None


def test_auto_budget_uses_level_on_leveled_models() -> None:
    assert derive_thinking_config(LEVELED, -1, "LOW", openai_compatible=False) == ThinkingConfig(thinking_level="LOW")


def test_auto_budget_falls_back_to_fixed_budget() -> None:
    config = derive_thinking_config(FLASH, -1, "HIGH", openai_compatible=False)

    assert config == ThinkingConfig(thinking_budget=AUTO_FALLBACK_BUDGET)


def test_explicit_budget_is_forwarded() -> None:
    assert derive_thinking_config(FLASH, 4096, "HIGH", openai_compatible=False) == ThinkingConfig(thinking_budget=4096)


def test_unsupported_model_or_openai_path_sends_nothing() -> None:
    assert derive_thinking_config(PLAIN, 4096, "HIGH", openai_compatible=False) is None
    assert derive_thinking_config(LEVELED, -1, "HIGH", openai_compatible=True) is None


def test_model_profile_capabilities() -> None:
    assert FLASH.supports_thinking_config and not FLASH.supports_thinking_level
    assert LEVELED.supports_thinking_config and LEVELED.supports_thinking_level
    assert not ModelProfile.for_model("gemma-3-27b-it").supports_system_instruction
