"""Live ranges backed by a PySide6 ``QTextDocument``.

Each range keeps one ``QTextCursor`` per boundary so Qt shifts the offsets
as the document is edited. ``QTextCursor`` moves along with text inserted
at its position unless ``keepPositionOnInsert`` is set, which gives the
start boundary its "repel" behavior for free and lets the end boundary
choose between :class:`EndBoundary` policies.
"""

from __future__ import annotations

import logging
from typing import Any

from ..core.ranges import EndBoundary

__all__ = ["QtTextRange", "QtRangeHost", "qt_available"]

LOGGER = logging.getLogger(__name__)

QTextCursor: Any = None
QTextDocument: Any = None

try:  # pragma: no cover - PySide6 optional in CI
    from PySide6.QtGui import QTextCursor as _QtTextCursor, QTextDocument as _QtTextDocument

    QTextCursor = _QtTextCursor
    QTextDocument = _QtTextDocument
except ImportError:  # pragma: no cover - runtime fallback
    LOGGER.debug("PySide6 unavailable; Qt range host disabled")


def qt_available() -> bool:
    return QTextDocument is not None


def _require_qt() -> None:
    if not qt_available():
        raise RuntimeError("PySide6 must be installed to anchor annotations to a QTextDocument.")


class QtTextRange:
    """Live range whose boundaries are ``QTextCursor`` positions."""

    __slots__ = ("_document", "_start_cursor", "_end_cursor", "_released_span")

    def __init__(self, document: Any, start: int, end: int, *, boundary: EndBoundary = EndBoundary.EXCLUSIVE) -> None:
        _require_qt()
        self._document = document
        self._start_cursor = QTextCursor(document)
        self._end_cursor = QTextCursor(document)
        self._end_cursor.setKeepPositionOnInsert(boundary is EndBoundary.EXCLUSIVE)
        self._released_span: tuple[int, int] | None = None
        self.set_span(start, end)

    @property
    def start(self) -> int:
        if self._released_span is not None:
            return self._released_span[0]
        return self._start_cursor.position()

    @property
    def end(self) -> int:
        if self._released_span is not None:
            return self._released_span[1]
        # an empty range can be split by an insertion at its only position
        return max(self._start_cursor.position(), self._end_cursor.position())

    def set_span(self, start: int, end: int) -> None:
        if self._released_span is not None:
            self._released_span = (start, end)
            return
        limit = _last_position(self._document)
        self._start_cursor.setPosition(max(0, min(start, limit)))
        self._end_cursor.setPosition(max(0, min(end, limit)))

    def release(self) -> None:
        if self._released_span is None:
            self._released_span = (self.start, self.end)
            self._start_cursor = None
            self._end_cursor = None

    def __repr__(self) -> str:
        return f"QtTextRange({self.start}, {self.end})"


class QtRangeHost:
    """Range host wrapping a ``QTextDocument`` owned by an editor widget."""

    def __init__(self, document: Any | None = None, *, boundary: EndBoundary = EndBoundary.EXCLUSIVE) -> None:
        _require_qt()
        self._document = document if document is not None else QTextDocument()
        self._boundary = boundary

    @property
    def document(self) -> Any:
        return self._document

    @property
    def boundary(self) -> EndBoundary:
        return self._boundary

    @property
    def text(self) -> str:
        return self._document.toPlainText()

    def create_range(self, start: int, end: int) -> QtTextRange:
        return QtTextRange(self._document, start, end, boundary=self._boundary)

    def insert(self, position: int, text: str) -> None:
        cursor = QTextCursor(self._document)
        cursor.setPosition(max(0, min(position, _last_position(self._document))))
        cursor.insertText(text)

    def delete(self, start: int, end: int) -> None:
        limit = _last_position(self._document)
        cursor = QTextCursor(self._document)
        cursor.setPosition(max(0, min(start, limit)))
        cursor.setPosition(max(0, min(end, limit)), QTextCursor.MoveMode.KeepAnchor)
        cursor.removeSelectedText()


def _last_position(document: Any) -> int:
    # characterCount() includes the trailing paragraph separator
    return max(0, document.characterCount() - 1)
