"""Failure snapshot persistence for resuming interrupted discussions."""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Protocol

from loguru import logger
from pydantic import ValidationError

from cognote.types import FailureSnapshot


class FailureSink(Protocol):
    def record(self, snapshot: FailureSnapshot) -> None: ...


class FileFailureSink:
    """Keeps the most recent failure snapshot in one JSON file."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self._lock = threading.Lock()

    def record(self, snapshot: FailureSnapshot) -> None:
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(snapshot.model_dump_json(indent=2), encoding="utf-8")
        logger.info("failure.recorded step_id={} path={}", snapshot.step_id, self.path)

    def load(self) -> FailureSnapshot | None:
        with self._lock:
            if not self.path.exists():
                return None
            raw = self.path.read_text(encoding="utf-8")
        try:
            return FailureSnapshot.model_validate_json(raw)
        except ValidationError:
            logger.warning("failure.snapshot.invalid path={}", self.path)
            return None

    def clear(self) -> None:
        with self._lock:
            if self.path.exists():
                self.path.unlink()
