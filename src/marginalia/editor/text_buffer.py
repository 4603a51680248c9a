"""In-memory document text that keeps live ranges anchored across edits."""

from __future__ import annotations

from ..core.ranges import EndBoundary, TextRange, shift_for_delete, shift_for_insert

__all__ = ["TextBuffer", "BufferRange"]


class BufferRange:
    """Live range owned by a :class:`TextBuffer`."""

    __slots__ = ("_buffer", "_start", "_end")

    def __init__(self, buffer: TextBuffer, start: int, end: int) -> None:
        self._buffer: TextBuffer | None = buffer
        self._start = start
        self._end = end

    @property
    def start(self) -> int:
        return self._start

    @property
    def end(self) -> int:
        return self._end

    @property
    def attached(self) -> bool:
        return self._buffer is not None

    def set_span(self, start: int, end: int) -> None:
        self._start = start
        self._end = end

    def release(self) -> None:
        if self._buffer is not None:
            self._buffer._detach(self)
            self._buffer = None

    def __repr__(self) -> str:
        return f"BufferRange({self._start}, {self._end})"


class TextBuffer:
    """Plain-text document model acting as a range host for annotations.

    Offsets are 0-based character positions. Every range handed out by
    :meth:`create_range` is shifted on :meth:`insert` and :meth:`delete`
    until it is released.
    """

    def __init__(self, text: str = "", *, boundary: EndBoundary = EndBoundary.EXCLUSIVE) -> None:
        self._text = text
        self._boundary = boundary
        self._ranges: dict[int, BufferRange] = {}

    @property
    def text(self) -> str:
        return self._text

    @property
    def boundary(self) -> EndBoundary:
        return self._boundary

    def __len__(self) -> int:
        return len(self._text)

    def create_range(self, start: int, end: int) -> BufferRange:
        span = TextRange(start, end).clamp(upper=len(self._text))
        live = BufferRange(self, span.start, span.end)
        self._ranges[id(live)] = live
        return live

    def live_range_count(self) -> int:
        return len(self._ranges)

    def insert(self, position: int, text: str) -> None:
        """Insert ``text`` before the character at ``position``."""

        if not text:
            return
        position = max(0, min(position, len(self._text)))
        self._text = self._text[:position] + text + self._text[position:]
        for live in self._ranges.values():
            live.set_span(*shift_for_insert(live.start, live.end, position, len(text), self._boundary))

    def delete(self, start: int, end: int) -> str:
        """Remove ``[start, end)`` and return the deleted text."""

        span = TextRange(start, end).clamp(upper=len(self._text))
        if span.is_caret:
            return ""
        removed = self._text[span.start : span.end]
        self._text = self._text[: span.start] + self._text[span.end :]
        for live in self._ranges.values():
            live.set_span(*shift_for_delete(live.start, live.end, span.start, span.end))
        return removed

    def replace(self, start: int, end: int, text: str) -> None:
        span = TextRange(start, end).clamp(upper=len(self._text))
        self.delete(span.start, span.end)
        self.insert(span.start, text)

    def slice(self, start: int, end: int) -> str:
        span = TextRange(start, end).clamp(upper=len(self._text))
        return self._text[span.start : span.end]

    def _detach(self, live: BufferRange) -> None:
        self._ranges.pop(id(live), None)
