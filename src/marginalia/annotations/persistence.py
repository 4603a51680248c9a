"""Handles persistence of annotations to/from sidecar files.

A document ``notes/chapter.md`` keeps its annotations in
``notes/.annotations/chapter.md.dat``. The sidecar holds one JSON array of
``[start, end, tag]`` records and nothing else: no header, no version.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable

from ..core.ranges import RangeHost
from ..services.settings import DEFAULT_SIDECAR_DIRNAME, DEFAULT_SIDECAR_SUFFIX, Settings
from ..utils import file_io
from .colors import decode
from .models import AnnotationRecord
from .span_editor import SpanEditor
from .store import AnnotationStore

__all__ = [
    "AnnotationPersistence",
    "SidecarFormatError",
    "sidecar_path",
    "serialize",
    "parse_records",
    "dump_records",
]

LOGGER = logging.getLogger(__name__)


class SidecarFormatError(ValueError):
    """Raised when a sidecar file does not hold a list of ``[start, end, tag]`` records."""

    def __init__(self, message: str, *, path: Path | None = None) -> None:
        super().__init__(message if path is None else f"{path}: {message}")
        self.path = path


def sidecar_path(
    document_path: Path | str,
    *,
    directory: str = DEFAULT_SIDECAR_DIRNAME,
    suffix: str = DEFAULT_SIDECAR_SUFFIX,
) -> Path:
    """Return the sidecar file that stores annotations for ``document_path``."""

    document = Path(document_path)
    return document.parent / directory / f"{document.name}{suffix}"


def serialize(store: AnnotationStore) -> list[list[Any]]:
    """Return JSON-ready records for every non-degenerate annotation in ``store``."""

    return [list(record) for record in store.records()]


def dump_records(records: Iterable[Iterable[Any]], *, indent: int | None = None) -> str:
    return json.dumps([list(record) for record in records], indent=indent)


def parse_records(text: str, *, path: Path | None = None) -> list[AnnotationRecord]:
    """Parse sidecar ``text`` into ``(start, end, tag)`` tuples.

    Raises:
        SidecarFormatError: if the content is not valid JSON or any record has
            the wrong shape.
    """

    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise SidecarFormatError(f"invalid JSON ({exc})", path=path) from exc
    if not isinstance(payload, list):
        raise SidecarFormatError("expected a list of records", path=path)
    records: list[AnnotationRecord] = []
    for index, entry in enumerate(payload):
        if not isinstance(entry, list) or len(entry) != 3:
            raise SidecarFormatError(f"record {index} is not a 3-element list", path=path)
        start, end, tag = entry
        if not _is_offset(start) or not _is_offset(end):
            raise SidecarFormatError(f"record {index} has non-integer offsets", path=path)
        if not isinstance(tag, str):
            raise SidecarFormatError(f"record {index} has a non-text color tag", path=path)
        records.append((start, end, tag))
    return records


def _is_offset(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class AnnotationPersistence:
    """Reads and writes the sidecar file belonging to each document."""

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or Settings()

    @property
    def settings(self) -> Settings:
        return self._settings

    def sidecar_path(self, document_path: Path | str) -> Path:
        return sidecar_path(
            document_path,
            directory=self._settings.sidecar_dirname,
            suffix=self._settings.sidecar_suffix,
        )

    def has_sidecar(self, document_path: Path | str) -> bool:
        return self.sidecar_path(document_path).is_file()

    def write(self, document_path: Path | str, store: AnnotationStore) -> Path | None:
        """Persist ``store`` next to ``document_path``.

        The file is only written when there is something to record or when a
        sidecar already exists, so clearing every highlight overwrites stale
        records without leaving empty files behind for untouched documents.

        Returns:
            The sidecar path when it was written, ``None`` when skipped.

        Raises:
            OSError: if writing the sidecar fails.
        """

        target = self.sidecar_path(document_path)
        # Read-only locations are tolerated here; the write below reports real failures.
        file_io.ensure_directory(target.parent)
        records = serialize(store)
        if not records and not target.exists():
            LOGGER.debug("No annotations for %s; sidecar not created", document_path)
            return None
        body = dump_records(records, indent=self._settings.json_indent)
        file_io.write_text(target, body, create_parent=False)
        LOGGER.debug("Wrote %d annotation record(s) to %s", len(records), target)
        return target

    def load(self, document_path: Path | str, host: RangeHost) -> AnnotationStore:
        """Rebuild the annotation store for ``document_path`` on top of ``host``.

        Raises:
            SidecarFormatError: if the sidecar is malformed and the settings do
                not opt into tolerating it.
        """

        store = AnnotationStore()
        target = self.sidecar_path(document_path)
        try:
            text = file_io.read_text(target)
        except OSError:
            return store

        try:
            records = parse_records(text, path=target)
        except SidecarFormatError as exc:
            if not self._settings.tolerate_malformed_sidecar:
                raise
            LOGGER.warning("Ignoring malformed annotations: %s", exc)
            return store

        editor = SpanEditor(store, host)
        skipped = 0
        for start, end, tag in records:
            if editor.apply(start, end, decode(tag)) is None:
                skipped += 1
        if skipped:
            LOGGER.warning("Skipped %d empty annotation record(s) in %s", skipped, target)
        LOGGER.debug("Loaded %d annotation(s) from %s", len(store), target)
        return store
