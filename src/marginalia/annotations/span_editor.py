"""Apply and erase colored spans against an :class:`AnnotationStore`."""

from __future__ import annotations

import logging

from ..core.ranges import RangeHost
from .colors import ColorTag
from .models import Annotation, AnnotationConsistencyError
from .store import AnnotationStore

__all__ = ["SpanEditor"]

LOGGER = logging.getLogger(__name__)


class SpanEditor:
    """Mutates one document's annotation store in response to user actions.

    ``apply`` only ever adds: overlapping spans of different colors are
    allowed to coexist. ``erase`` removes color from a range by deleting,
    trimming or splitting every annotation it overlaps.
    """

    __slots__ = ("_store", "_host")

    def __init__(self, store: AnnotationStore, host: RangeHost) -> None:
        self._store = store
        self._host = host

    @property
    def store(self) -> AnnotationStore:
        return self._store

    def apply(self, start: int, end: int, color: ColorTag) -> Annotation | None:
        """Add a ``color`` span over ``[start, end)``; empty ranges are ignored."""

        if end <= start:
            return None
        annotation = Annotation(range=self._host.create_range(start, end), color=color)
        if annotation.is_degenerate:
            # the host clamped the span past the end of its text
            annotation.release()
            LOGGER.debug("Dropped [%d, %d): outside the document", start, end)
            return None
        self._store.add(annotation)
        LOGGER.debug("Applied %s over [%d, %d)", color.value, start, end)
        return annotation

    def erase(self, start: int, end: int) -> int:
        """Remove color from ``[start, end)``; return the number of annotations touched."""

        if end <= start:
            return 0
        self._store.prune_degenerate()
        touched = 0
        for annotation in self._store.overlapping(start, end):
            self._erase_from(annotation, start, end)
            touched += 1
        LOGGER.debug("Erased [%d, %d) from %d annotation(s)", start, end, touched)
        return touched

    def _erase_from(self, annotation: Annotation, start: int, end: int) -> None:
        a_start, a_end = annotation.start, annotation.end
        if start <= a_start and a_end <= end:
            self._delete(annotation)
        elif start >= a_start and a_end <= end:
            annotation.trim(a_start, start)
            self._drop_if_degenerate(annotation)
        elif start <= a_start and a_end >= end:
            annotation.trim(end, a_end)
            self._drop_if_degenerate(annotation)
        elif a_start < start and end < a_end:
            self.apply(end, a_end, annotation.color)
            annotation.trim(a_start, start)
        else:
            raise AnnotationConsistencyError(
                f"Annotation [{a_start}, {a_end}) does not overlap erase range [{start}, {end})"
            )

    def _delete(self, annotation: Annotation) -> None:
        self._store.remove(annotation)
        annotation.release()

    def _drop_if_degenerate(self, annotation: Annotation) -> None:
        if annotation.is_degenerate:
            self._delete(annotation)
