"""Workspace models managing the annotation session of each open document."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterator

from ..annotations.colors import ColorCycle, ColorTag
from ..annotations.models import Annotation, AnnotationRecord
from ..annotations.persistence import AnnotationPersistence
from ..annotations.span_editor import SpanEditor
from ..annotations.store import AnnotationStore
from ..core.ranges import RangeHost
from ..services.settings import Settings
from ..ui.events import (
    AnnotationsChanged,
    AnnotationsCleared,
    AnnotationsLoaded,
    AnnotationsSaved,
    ColorCycled,
    DocumentClosed,
    EventBus,
)

__all__ = ["AnnotationSession", "AnnotationWorkspace", "normalize_path"]

LOGGER = logging.getLogger(__name__)


def normalize_path(path: Path | str) -> Path:
    if isinstance(path, Path):
        return path.expanduser().resolve()
    return Path(path).expanduser().resolve()


@dataclass(slots=True)
class AnnotationSession:
    """Annotation state owned by one open document."""

    path: Path
    host: RangeHost
    store: AnnotationStore
    editor: SpanEditor = field(init=False)

    def __post_init__(self) -> None:
        self.editor = SpanEditor(self.store, self.host)

    def apply(self, start: int, end: int, color: ColorTag) -> Annotation | None:
        return self.editor.apply(start, end, color)

    def erase(self, start: int, end: int) -> int:
        return self.editor.erase(start, end)

    def clear(self) -> None:
        self.store.clear()

    def records(self) -> list[AnnotationRecord]:
        return self.store.records()


class AnnotationWorkspace:
    """Tracks one :class:`AnnotationSession` per open document.

    Sessions are keyed by the resolved document path. The workspace also
    owns the selected highlight color, shared by every document in the
    editing session.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        event_bus: EventBus | None = None,
        persistence: AnnotationPersistence | None = None,
    ) -> None:
        self._settings = settings or Settings()
        self._bus = event_bus or EventBus()
        self._persistence = persistence or AnnotationPersistence(self._settings)
        self._sessions: Dict[Path, AnnotationSession] = {}
        self._colors = ColorCycle(listener=self._on_color_changed)

    # ------------------------------------------------------------------
    # Document lifecycle
    # ------------------------------------------------------------------
    def on_document_opened(self, path: Path | str, host: RangeHost) -> AnnotationSession:
        """Load the sidecar for ``path`` and install its store.

        Raises:
            SidecarFormatError: if the sidecar is malformed (see
                ``Settings.tolerate_malformed_sidecar``).
        """

        key = normalize_path(path)
        store = self._persistence.load(key, host)
        previous = self._sessions.pop(key, None)
        if previous is not None:
            previous.clear()
        session = AnnotationSession(path=key, host=host, store=store)
        self._sessions[key] = session
        LOGGER.debug("Opened %s with %d annotation(s)", key, len(store))
        self._bus.publish(AnnotationsLoaded(path=str(key), count=len(store)))
        return session

    def on_document_saved(self, path: Path | str) -> Path | None:
        """Persist the annotations of ``path``; write failures propagate."""

        session = self.session(path)
        sidecar = self._persistence.write(session.path, session.store)
        self._bus.publish(
            AnnotationsSaved(
                path=str(session.path),
                sidecar=str(sidecar) if sidecar is not None else None,
                count=len(session.records()),
            )
        )
        return sidecar

    def on_document_closed(self, path: Path | str) -> AnnotationSession:
        key = normalize_path(path)
        if key not in self._sessions:
            raise KeyError(f"Unknown document: {key}")
        session = self._sessions.pop(key)
        session.clear()
        self._bus.publish(DocumentClosed(path=str(key)))
        return session

    # ------------------------------------------------------------------
    # User gestures
    # ------------------------------------------------------------------
    def apply_current_color(self, path: Path | str, start: int, end: int) -> Annotation | None:
        session = self.session(path)
        color = self._colors.current()
        annotation = session.apply(start, end, color)
        if annotation is not None:
            self._bus.publish(AnnotationsChanged(path=str(session.path), start=start, end=end, color=color.value))
        return annotation

    def erase_in_range(self, path: Path | str, start: int, end: int) -> int:
        session = self.session(path)
        touched = session.erase(start, end)
        if touched:
            self._bus.publish(AnnotationsChanged(path=str(session.path), start=start, end=end))
        return touched

    def clear_annotations(self, path: Path | str) -> None:
        session = self.session(path)
        session.clear()
        self._bus.publish(AnnotationsCleared(path=str(session.path)))

    def cycle_color(self) -> ColorTag:
        return self._colors.advance()

    # ------------------------------------------------------------------
    # Query helpers
    # ------------------------------------------------------------------
    @property
    def current_color(self) -> ColorTag:
        return self._colors.current()

    @property
    def event_bus(self) -> EventBus:
        return self._bus

    @property
    def persistence(self) -> AnnotationPersistence:
        return self._persistence

    def session(self, path: Path | str) -> AnnotationSession:
        key = normalize_path(path)
        session = self._sessions.get(key)
        if session is None:
            raise KeyError(f"Unknown document: {key}")
        return session

    def sessions(self) -> Iterator[AnnotationSession]:
        return iter(tuple(self._sessions.values()))

    def __contains__(self, path: object) -> bool:
        if not isinstance(path, (str, Path)):
            return False
        return normalize_path(path) in self._sessions

    def _on_color_changed(self, color: ColorTag) -> None:
        self._bus.publish(ColorCycled(color=color.value))
