"""Shared pytest fixtures."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from marginalia.annotations.span_editor import SpanEditor
from marginalia.annotations.store import AnnotationStore
from marginalia.editor.text_buffer import TextBuffer
from tests.helpers import SAMPLE_TEXT


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    for name in list(os.environ):
        if name.startswith("MARGINALIA_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("MARGINALIA_LOG_DIR", str(tmp_path / "logs"))


@pytest.fixture
def buffer() -> TextBuffer:
    return TextBuffer(SAMPLE_TEXT)


@pytest.fixture
def store() -> AnnotationStore:
    return AnnotationStore()


@pytest.fixture
def editor(store: AnnotationStore, buffer: TextBuffer) -> SpanEditor:
    return SpanEditor(store, buffer)
