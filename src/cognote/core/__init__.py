"""Turn execution core."""

from cognote.core.cancellation import CancellationToken
from cognote.core.executor import StepExecutor, StreamedMessage
from cognote.core.parser import parse_response
from cognote.core.reasoning import derive_thinking_config

__all__ = ["CancellationToken", "StepExecutor", "StreamedMessage", "derive_thinking_config", "parse_response"]
