"""In-memory set of annotations belonging to one open document."""

from __future__ import annotations

import logging
from typing import Iterable, Iterator

from .models import Annotation, AnnotationRecord

__all__ = ["AnnotationStore"]

LOGGER = logging.getLogger(__name__)


class AnnotationStore:
    """Unordered collection of :class:`Annotation` with overlap queries.

    Members are compared by identity, so two annotations covering the same
    span with the same color are still distinct entries. Queries return
    snapshots; mutating the store while iterating a result is safe.
    """

    __slots__ = ("_members",)

    def __init__(self, annotations: Iterable[Annotation] | None = None) -> None:
        # dict keeps identity semantics with O(1) removal
        self._members: dict[int, Annotation] = {}
        for annotation in annotations or ():
            self.add(annotation)

    def add(self, annotation: Annotation) -> None:
        self._members[id(annotation)] = annotation

    def remove(self, annotation: Annotation) -> None:
        """Drop ``annotation`` from the store; absent members are ignored."""

        self._members.pop(id(annotation), None)

    def clear(self) -> None:
        """Empty the store and release every underlying live range."""

        members = list(self._members.values())
        self._members.clear()
        for annotation in members:
            annotation.release()
        if members:
            LOGGER.debug("Cleared %d annotation(s)", len(members))

    def overlapping(self, start: int, end: int) -> tuple[Annotation, ...]:
        """Return members sharing at least one character with ``[start, end)``."""

        return tuple(member for member in self._members.values() if member.overlaps(start, end))

    def annotations_at(self, offset: int) -> tuple[Annotation, ...]:
        """Return members covering the character at ``offset``."""

        return self.overlapping(offset, offset + 1)

    def prune_degenerate(self) -> int:
        """Remove members whose live range collapsed; return how many were dropped."""

        stale = [member for member in self._members.values() if member.is_degenerate]
        for annotation in stale:
            self.remove(annotation)
            annotation.release()
        if stale:
            LOGGER.debug("Pruned %d collapsed annotation(s)", len(stale))
        return len(stale)

    def records(self) -> list[AnnotationRecord]:
        """Return ``(start, end, tag)`` records for every non-degenerate member."""

        return [member.to_record() for member in self._members.values() if not member.is_degenerate]

    def __len__(self) -> int:
        return len(self._members)

    def __iter__(self) -> Iterator[Annotation]:
        return iter(tuple(self._members.values()))

    def __contains__(self, annotation: object) -> bool:
        return self._members.get(id(annotation)) is annotation

    def __repr__(self) -> str:
        return f"AnnotationStore(size={len(self._members)})"
