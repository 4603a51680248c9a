"""Colored span annotations that survive editing sessions."""

from .annotations import (
    Annotation,
    AnnotationPersistence,
    AnnotationStore,
    ColorCycle,
    ColorTag,
    SidecarFormatError,
    SpanEditor,
)
from .editor.text_buffer import TextBuffer
from .editor.workspace import AnnotationSession, AnnotationWorkspace

__all__ = [
    "Annotation",
    "AnnotationPersistence",
    "AnnotationSession",
    "AnnotationStore",
    "AnnotationWorkspace",
    "ColorCycle",
    "ColorTag",
    "SidecarFormatError",
    "SpanEditor",
    "TextBuffer",
]

__version__ = "0.1.0"
