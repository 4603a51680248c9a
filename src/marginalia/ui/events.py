"""Event bus used to surface annotation changes to the host editor.

The host subscribes to the events below to repaint highlights, show the
newly selected color, or report saves. Handlers run synchronously on the
thread that owns the editing session.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Callable, Generic, TypeVar
from weakref import WeakMethod

logger = logging.getLogger(__name__)

E = TypeVar("E", bound="Event")

Handler = Callable[[E], None]


@dataclass(slots=True)
class Event:
    """Base class for all events; subclasses are slotted dataclasses."""


@dataclass(slots=True)
class AnnotationsLoaded(Event):
    """Emitted after a document's sidecar has been replayed into its store.

    Attributes:
        path: The document the annotations belong to.
        count: Number of annotations restored.
    """

    path: str
    count: int


@dataclass(slots=True)
class AnnotationsChanged(Event):
    """Emitted after an apply or erase gesture mutated a store."""

    path: str
    start: int
    end: int
    color: str | None = None


@dataclass(slots=True)
class AnnotationsCleared(Event):
    path: str


@dataclass(slots=True)
class AnnotationsSaved(Event):
    """Emitted after a save; ``sidecar`` is ``None`` when nothing was written."""

    path: str
    sidecar: str | None
    count: int


@dataclass(slots=True)
class ColorCycled(Event):
    """Emitted when the selected highlight color changes."""

    color: str


@dataclass(slots=True)
class DocumentClosed(Event):
    path: str


class EventBus(Generic[E]):
    """A typed publish-subscribe event bus.

    Bound methods are held through weak references so closed sessions do
    not keep their owners alive; plain functions are held strongly.

    This implementation is NOT thread-safe.
    """

    __slots__ = ("_handlers",)

    def __init__(self) -> None:
        self._handlers: defaultdict[type[Event], list[_HandlerRef]] = defaultdict(list)

    def subscribe(self, event_type: type[E], handler: Handler[E]) -> None:
        self._handlers[event_type].append(_HandlerRef.create(handler))
        logger.debug("Subscribed handler %s to event type %s", _handler_name(handler), event_type.__name__)

    def unsubscribe(self, event_type: type[E], handler: Handler[E]) -> None:
        """Remove the first registration of ``handler``; unknown handlers are ignored."""

        handlers = self._handlers.get(event_type)
        if handlers is None:
            return
        for index, handler_ref in enumerate(handlers):
            if handler_ref.matches(handler):
                handlers.pop(index)
                return

    def publish(self, event: E) -> None:
        """Deliver ``event`` to every handler registered for its exact type.

        A handler that raises is logged and the remaining handlers still run.
        """

        event_type = type(event)
        handlers = self._handlers.get(event_type)
        if not handlers:
            logger.debug("No handlers for event type %s", event_type.__name__)
            return

        dead: list[_HandlerRef] = []
        for handler_ref in list(handlers):
            handler = handler_ref.resolve()
            if handler is None:
                dead.append(handler_ref)
                continue
            try:
                handler(event)
            except Exception:
                logger.exception(
                    "Handler %s raised exception for event %s",
                    _handler_name(handler),
                    event_type.__name__,
                )
        for handler_ref in dead:
            handlers.remove(handler_ref)

    def clear(self) -> None:
        self._handlers.clear()

    def handler_count(self, event_type: type[E] | None = None) -> int:
        if event_type is not None:
            return len(self._handlers.get(event_type, []))
        return sum(len(handlers) for handlers in self._handlers.values())


class _HandlerRef:
    __slots__ = ("_ref", "_is_weak")

    def __init__(self, handler_ref: WeakMethod | Handler, is_weak: bool) -> None:
        self._ref = handler_ref
        self._is_weak = is_weak

    @classmethod
    def create(cls, handler: Handler) -> _HandlerRef:
        if hasattr(handler, "__self__") and hasattr(handler, "__func__"):
            try:
                return cls(WeakMethod(handler), is_weak=True)
            except TypeError:
                pass
        return cls(handler, is_weak=False)

    def resolve(self) -> Handler | None:
        if not self._is_weak:
            return self._ref  # type: ignore[return-value]
        return self._ref()  # type: ignore[operator]

    def matches(self, handler: Handler) -> bool:
        resolved = self.resolve()
        return resolved is not None and resolved == handler


def _handler_name(handler: Handler) -> str:
    if hasattr(handler, "__self__") and hasattr(handler, "__func__"):
        return f"{type(handler.__self__).__name__}.{handler.__func__.__name__}"
    return getattr(handler, "__name__", repr(handler))


__all__ = [
    "Event",
    "EventBus",
    "Handler",
    "AnnotationsLoaded",
    "AnnotationsChanged",
    "AnnotationsCleared",
    "AnnotationsSaved",
    "ColorCycled",
    "DocumentClosed",
]
