"""Structured helpers for representing text spans and live ranges."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol, runtime_checkable

__all__ = ["TextRange", "EndBoundary", "LiveRange", "RangeHost", "shift_for_insert", "shift_for_delete"]


@dataclass(slots=True, frozen=True)
class TextRange:
    """Half-open span of absolute offsets; negative bounds clamp to zero."""

    start: int
    end: int

    def __post_init__(self) -> None:
        start = self._coerce_index(self.start, "start")
        end = self._coerce_index(self.end, "end")
        if end < start:
            start, end = end, start
        object.__setattr__(self, "start", start)
        object.__setattr__(self, "end", end)

    @staticmethod
    def _coerce_index(value: Any, label: str) -> int:
        try:
            number = int(value)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"TextRange {label} must be an integer") from exc
        return max(0, number)

    @property
    def length(self) -> int:
        return self.end - self.start

    @property
    def is_caret(self) -> bool:
        """Return ``True`` when the range collapses to a caret."""

        return self.start == self.end

    def clamp(self, *, lower: int = 0, upper: int | None = None) -> TextRange:
        """Clamp the range to ``[lower, upper]`` bounds."""

        start = max(lower, self.start)
        end = max(lower, self.end)
        if upper is not None:
            start = min(start, upper)
            end = min(end, upper)
        return TextRange(start=start, end=end)


class EndBoundary(Enum):
    """How a live range reacts to text inserted exactly at its end offset."""

    EXCLUSIVE = "exclusive"
    INCLUSIVE = "inclusive"

    @classmethod
    def from_value(cls, value: Any) -> EndBoundary:
        if isinstance(value, EndBoundary):
            return value
        text = str(value or "").strip().lower()
        try:
            return cls(text)
        except ValueError as exc:
            raise ValueError(f"Unknown end boundary policy: {value!r}") from exc


@runtime_checkable
class LiveRange(Protocol):
    """A span whose offsets the host keeps anchored to characters as text changes.

    Hosts must honor the following rules:

    * text inserted strictly inside the span extends ``end``;
    * text inserted exactly at ``start`` shifts the whole span right;
    * text inserted exactly at ``end`` follows the host's :class:`EndBoundary`;
    * deleting characters inside the span shrinks it, deleting all of them
      collapses it to ``start == end``.
    """

    @property
    def start(self) -> int:  # pragma: no cover - protocol
        ...

    @property
    def end(self) -> int:  # pragma: no cover - protocol
        ...

    def set_span(self, start: int, end: int) -> None:  # pragma: no cover - protocol
        ...

    def release(self) -> None:  # pragma: no cover - protocol
        ...


@runtime_checkable
class RangeHost(Protocol):
    """Document model able to hand out :class:`LiveRange` instances."""

    def create_range(self, start: int, end: int) -> LiveRange:  # pragma: no cover - protocol
        ...


def shift_for_insert(
    start: int,
    end: int,
    position: int,
    length: int,
    boundary: EndBoundary = EndBoundary.EXCLUSIVE,
) -> tuple[int, int]:
    """Return the ``(start, end)`` pair after inserting ``length`` characters at ``position``."""

    if length <= 0:
        return start, end
    new_start = start + length if position <= start else start
    if position < end or (position == end and boundary is EndBoundary.INCLUSIVE):
        new_end = end + length
    else:
        new_end = end
    return new_start, max(new_start, new_end)


def shift_for_delete(start: int, end: int, del_start: int, del_end: int) -> tuple[int, int]:
    """Return the ``(start, end)`` pair after removing ``[del_start, del_end)``."""

    if del_end <= del_start:
        return start, end
    width = del_end - del_start

    def _map(offset: int) -> int:
        if offset <= del_start:
            return offset
        if offset >= del_end:
            return offset - width
        return del_start

    return _map(start), _map(end)
