"""Annotation engine: color tags, stores, span editing and sidecar persistence."""

from .colors import ColorCycle, ColorTag, decode, encode
from .models import Annotation, AnnotationConsistencyError
from .persistence import AnnotationPersistence, SidecarFormatError, sidecar_path
from .span_editor import SpanEditor
from .store import AnnotationStore

__all__ = [
    "Annotation",
    "AnnotationConsistencyError",
    "AnnotationPersistence",
    "AnnotationStore",
    "ColorCycle",
    "ColorTag",
    "SidecarFormatError",
    "SpanEditor",
    "decode",
    "encode",
    "sidecar_path",
]
