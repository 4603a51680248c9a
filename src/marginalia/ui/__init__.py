"""Host-facing notification layer for annotation sessions."""

from .events import EventBus

__all__ = ["EventBus"]
