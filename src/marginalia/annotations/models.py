"""Dataclasses describing colored spans over a document."""

from __future__ import annotations

from dataclasses import dataclass

from ..core.ranges import LiveRange
from .colors import ColorTag, encode

__all__ = ["Annotation", "AnnotationRecord", "AnnotationConsistencyError"]

AnnotationRecord = tuple[int, int, str]


class AnnotationConsistencyError(RuntimeError):
    """Raised when an overlapping annotation fits none of the erase cases."""


@dataclass(slots=True, eq=False)
class Annotation:
    """One colored span anchored to live document text."""

    range: LiveRange
    color: ColorTag

    @property
    def start(self) -> int:
        return self.range.start

    @property
    def end(self) -> int:
        return self.range.end

    @property
    def length(self) -> int:
        return self.end - self.start

    @property
    def is_degenerate(self) -> bool:
        """Return ``True`` once the span no longer covers any character."""

        return self.start >= self.end

    def overlaps(self, start: int, end: int) -> bool:
        if self.is_degenerate or end <= start:
            return False
        return self.start < end and start < self.end

    def trim(self, start: int, end: int) -> None:
        """Move the span in place to ``[start, end)``."""

        self.range.set_span(start, end)

    def to_record(self) -> AnnotationRecord:
        return (self.start, self.end, encode(self.color))

    def release(self) -> None:
        self.range.release()

    def __repr__(self) -> str:
        return f"Annotation(start={self.start}, end={self.end}, color={self.color.value!r})"
