"""cognote - model turns that edit a shared notepad."""

from cognote.core import CancellationToken, StepExecutor, parse_response
from cognote.notepad import apply_directives

__version__ = "0.1.0"

__all__ = ["CancellationToken", "StepExecutor", "apply_directives", "parse_response"]
