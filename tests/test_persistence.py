"""Tests for sidecar persistence of annotations."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from marginalia.annotations.colors import ColorTag
from marginalia.annotations.persistence import (
    AnnotationPersistence,
    SidecarFormatError,
    parse_records,
    serialize,
    sidecar_path,
)
from marginalia.annotations.span_editor import SpanEditor
from marginalia.annotations.store import AnnotationStore
from marginalia.editor.text_buffer import TextBuffer
from marginalia.services.settings import Settings
from tests.helpers import SAMPLE_TEXT, spans


@pytest.fixture
def document(tmp_path: Path) -> Path:
    target = tmp_path / "notes" / "chapter.md"
    target.parent.mkdir()
    target.write_text(SAMPLE_TEXT, encoding="utf-8")
    return target


def _write_sidecar(document: Path, content: str) -> Path:
    target = sidecar_path(document)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(content, encoding="utf-8")
    return target


def test_sidecar_path_lives_in_hidden_directory(tmp_path: Path) -> None:
    assert sidecar_path(tmp_path / "doc.txt") == tmp_path / ".annotations" / "doc.txt.dat"
    assert sidecar_path("doc.txt", directory=".marks", suffix=".json") == Path(".marks") / "doc.txt.json"


def test_serialize_skips_degenerate_members(editor: SpanEditor, store: AnnotationStore, buffer: TextBuffer) -> None:
    editor.apply(0, 4, ColorTag.PINK)
    editor.apply(10, 15, ColorTag.GREEN)
    buffer.delete(0, 6)

    assert serialize(store) == [[4, 9, "green"]]


def test_write_then_load_restores_annotations(document: Path) -> None:
    persistence = AnnotationPersistence()
    store = AnnotationStore()
    editor = SpanEditor(store, TextBuffer(SAMPLE_TEXT))
    editor.apply(0, 3, ColorTag.PINK)
    editor.apply(4, 9, ColorTag.BLUE)
    editor.apply(16, 19, ColorTag.GREEN)
    editor.apply(2, 12, ColorTag.GREEN)
    editor.apply(4, 9, ColorTag.PINK)
    editor.apply(30, 60, ColorTag.BLUE)
    editor.erase(40, 45)

    written = persistence.write(document, store)
    restored = persistence.load(document, TextBuffer(SAMPLE_TEXT))

    assert written == document.parent / ".annotations" / "chapter.md.dat"
    assert spans(restored) == spans(store)
    assert len(restored) == 7


def test_sidecar_holds_plain_records(document: Path) -> None:
    store = AnnotationStore()
    SpanEditor(store, TextBuffer(SAMPLE_TEXT)).apply(4, 9, ColorTag.BLUE)

    target = AnnotationPersistence().write(document, store)

    assert target is not None
    assert json.loads(target.read_text(encoding="utf-8")) == [[4, 9, "blue"]]


def test_write_empty_store_without_sidecar_creates_no_file(document: Path) -> None:
    persistence = AnnotationPersistence()

    assert persistence.write(document, AnnotationStore()) is None
    assert not persistence.sidecar_path(document).exists()
    assert not persistence.has_sidecar(document)


def test_write_empty_store_overwrites_existing_sidecar(document: Path) -> None:
    target = _write_sidecar(document, '[[0, 5, "pink"]]')

    written = AnnotationPersistence().write(document, AnnotationStore())

    assert written == target
    assert json.loads(target.read_text(encoding="utf-8")) == []


def test_directory_creation_failure_is_swallowed(document: Path) -> None:
    (document.parent / ".annotations").write_text("not a directory", encoding="utf-8")
    persistence = AnnotationPersistence()

    assert persistence.write(document, AnnotationStore()) is None


def test_write_failure_propagates(document: Path) -> None:
    (document.parent / ".annotations").write_text("not a directory", encoding="utf-8")
    store = AnnotationStore()
    SpanEditor(store, TextBuffer(SAMPLE_TEXT)).apply(0, 5, ColorTag.PINK)

    with pytest.raises(OSError):
        AnnotationPersistence().write(document, store)


def test_load_without_sidecar_returns_empty_store(document: Path) -> None:
    restored = AnnotationPersistence().load(document, TextBuffer(SAMPLE_TEXT))

    assert len(restored) == 0


def test_load_decodes_unknown_tags_as_pink(document: Path) -> None:
    _write_sidecar(document, '[[0, 3, "mauve"], [5, 8, "green"]]')

    restored = AnnotationPersistence().load(document, TextBuffer(SAMPLE_TEXT))

    assert spans(restored) == [(0, 3, "pink"), (5, 8, "green")]


def test_load_skips_empty_records(document: Path) -> None:
    _write_sidecar(document, '[[6, 6, "blue"], [9, 2, "pink"], [1, 4, "blue"]]')

    restored = AnnotationPersistence().load(document, TextBuffer(SAMPLE_TEXT))

    assert spans(restored) == [(1, 4, "blue")]


def test_loaded_annotations_track_live_edits(document: Path) -> None:
    _write_sidecar(document, '[[4, 9, "blue"]]')
    buffer = TextBuffer(SAMPLE_TEXT)

    restored = AnnotationPersistence().load(document, buffer)
    buffer.insert(0, "Title\n")

    assert spans(restored) == [(10, 15, "blue")]
    assert buffer.slice(10, 15) == "quick"


@pytest.mark.parametrize(
    "content",
    [
        "not json",
        '{"annotations": []}',
        '[[1, 2]]',
        '[[1, 2, "pink", 4]]',
        '[["1", 2, "pink"]]',
        '[[1.5, 2, "pink"]]',
        '[[true, 2, "pink"]]',
        '[[1, 2, 3]]',
        '[[1, 2, "pink"], "oops"]',
    ],
)
def test_malformed_sidecar_is_an_error(document: Path, content: str) -> None:
    _write_sidecar(document, content)

    with pytest.raises(SidecarFormatError) as excinfo:
        AnnotationPersistence().load(document, TextBuffer(SAMPLE_TEXT))

    assert "chapter.md.dat" in str(excinfo.value)


def test_malformed_sidecar_can_be_tolerated(document: Path, caplog: pytest.LogCaptureFixture) -> None:
    _write_sidecar(document, "garbage")
    persistence = AnnotationPersistence(Settings(tolerate_malformed_sidecar=True))

    with caplog.at_level("WARNING", logger="marginalia.annotations.persistence"):
        restored = persistence.load(document, TextBuffer(SAMPLE_TEXT))

    assert len(restored) == 0
    assert "Ignoring malformed annotations" in caplog.text


def test_settings_control_sidecar_location(document: Path) -> None:
    persistence = AnnotationPersistence(Settings(sidecar_dirname=".marks", sidecar_suffix=".json", json_indent=2))
    store = AnnotationStore()
    SpanEditor(store, TextBuffer(SAMPLE_TEXT)).apply(0, 3, ColorTag.GREEN)

    target = persistence.write(document, store)

    assert target == document.parent / ".marks" / "chapter.md.json"
    assert target.read_text(encoding="utf-8").startswith("[\n")


def test_parse_records_accepts_empty_list() -> None:
    assert parse_records("[]") == []
    assert parse_records('[[0, 1, "blue"]]') == [(0, 1, "blue")]
