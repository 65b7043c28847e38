"""Application-level exception types for cognote."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from cognote.types import FailureSnapshot


class CognoteError(Exception):
    """Base exception for cognote."""


class ConfigurationError(CognoteError):
    """Base exception for configuration and startup validation errors."""


class ApiKeyNotConfiguredError(ConfigurationError):
    """Raised when an API key is required but missing."""


class StepCancelledError(CognoteError):
    """Raised when a step is cancelled by the user or the host application."""

    def __init__(self) -> None:
        super().__init__("step cancelled by user")


class TransportError(CognoteError):
    """Raised when the provider reports a failed model call."""

    def __init__(self, message: str, *, tag: str | None = None) -> None:
        super().__init__(message)
        self.tag = tag


class StepFailedError(CognoteError):
    """Raised when every attempt of a step failed; carries the replay snapshot."""

    def __init__(self, message: str, snapshot: FailureSnapshot) -> None:
        super().__init__(message)
        self.snapshot = snapshot
