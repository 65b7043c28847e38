from __future__ import annotations

import os
from pathlib import Path

import pytest


@pytest.fixture(autouse=True)
def _isolate_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    for name in list(os.environ):
        if name.startswith("COGNOTE_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
