"""Loguru setup for library use and the command line."""

from __future__ import annotations

import sys
from typing import Any, Literal

from loguru import logger
from rich import get_console
from rich.logging import RichHandler

from cognote.config import Settings, get_settings
from cognote.core.executor import current_step

LogProfile = Literal["default", "cli"]

DEFAULT_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<7} | step={extra[step]} | {name}:{line} | {message}"
CLI_FORMAT = "step={extra[step]} | {message}"

_active_profile: LogProfile | None = None


def _attach_step(record: Any) -> None:
    record["extra"]["step"] = current_step()


def _handler_for(profile: LogProfile, level: str) -> dict[str, Any]:
    if profile == "cli":
        sink: Any = RichHandler(console=get_console(), show_time=False, show_path=False, markup=False)
        log_format = CLI_FORMAT
    else:
        sink = sys.stderr
        log_format = DEFAULT_FORMAT
    return {"sink": sink, "level": level, "format": log_format, "backtrace": False, "diagnose": False}


def configure_logging(
    *,
    profile: LogProfile = "default",
    settings: Settings | None = None,
    force: bool = False,
) -> None:
    """Route loguru output for ``profile``.

    The level comes from ``settings.log_level`` (``COGNOTE_LOG_LEVEL``). Every
    record carries the id of the step running in its context as
    ``extra["step"]``. Calling again with the active profile is a no-op
    unless ``force`` is set.
    """
    global _active_profile
    if profile == _active_profile and not force:
        return

    level = (settings or get_settings()).log_level.upper()
    logger.configure(handlers=[_handler_for(profile, level)], patcher=_attach_step)
    _active_profile = profile
    logger.debug("logging.configured profile={} level={}", profile, level)
