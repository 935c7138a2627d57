"""Shared pytest fixtures."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


SAMPLE_OUTLINE = """#+TITLE: Novel
Preface text before any heading.
* Chapter One
SCHEDULED: <2026-10-20 Tue>
:PROPERTIES:
:ID: ch1
:END:
It was a dark night.
** Scene A
The rain fell hard.
* Chapter Two
Morning came.
"""


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    for name in list(os.environ):
        if name.startswith("DRAFTDESK_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("DRAFTDESK_LOG_DIR", str(tmp_path / "logs"))


@pytest.fixture
def sample_outline() -> str:
    return SAMPLE_OUTLINE
