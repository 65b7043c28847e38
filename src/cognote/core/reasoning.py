"""Reasoning budget derivation for the managed provider."""

from __future__ import annotations

from cognote.types import ModelProfile, ThinkingConfig, ThinkingLevel

AUTO_THINKING_BUDGET = -1
DISABLED_THINKING_BUDGET = 0
AUTO_FALLBACK_BUDGET = 1024


def derive_thinking_config(
    model: ModelProfile,
    budget: int,
    level: ThinkingLevel,
    *,
    openai_compatible: bool,
) -> ThinkingConfig | None:
    """Translate a persona's budget setting into provider reasoning options.

    ``0`` disables reasoning, ``-1`` lets the model decide: leveled models get
    the persona's level, others a small fixed budget.
    """
    if openai_compatible or not model.supports_thinking_config:
        return None
    if budget == DISABLED_THINKING_BUDGET:
        return None
    if budget == AUTO_THINKING_BUDGET:
        if model.supports_thinking_level:
            return ThinkingConfig(thinking_level=level)
        return ThinkingConfig(thinking_budget=AUTO_FALLBACK_BUDGET)
    return ThinkingConfig(thinking_budget=budget)
