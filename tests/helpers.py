"""Shared test helpers.

Import from here instead of duplicating these helpers in individual test files.
"""

from __future__ import annotations

from typing import Iterable

from marginalia.annotations.models import Annotation, AnnotationRecord

SAMPLE_TEXT = "The quick brown fox jumps over the lazy dog. " * 4


def spans(annotations: Iterable[Annotation]) -> list[AnnotationRecord]:
    """Return sorted ``(start, end, tag)`` records so assertions ignore store order."""

    return sorted(annotation.to_record() for annotation in annotations)


class FixedRange:
    """Live range stub that never moves; used where no host document is needed."""

    def __init__(self, start: int, end: int) -> None:
        self.start = start
        self.end = end
        self.released = False

    def set_span(self, start: int, end: int) -> None:
        self.start = start
        self.end = end

    def release(self) -> None:
        self.released = True


class FixedHost:
    def __init__(self) -> None:
        self.created: list[FixedRange] = []

    def create_range(self, start: int, end: int) -> FixedRange:
        live = FixedRange(start, end)
        self.created.append(live)
        return live
