"""Highlight color tags and the user's currently selected color."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable

__all__ = ["ColorTag", "ColorCycle", "ColorListener", "encode", "decode", "DEFAULT_COLOR"]

LOGGER = logging.getLogger(__name__)

ColorListener = Callable[["ColorTag"], None]


class ColorTag(Enum):
    """Closed set of highlight colors; declaration order is the cycle order."""

    PINK = "pink"
    BLUE = "blue"
    GREEN = "green"


DEFAULT_COLOR = ColorTag.PINK


def encode(tag: ColorTag) -> str:
    """Return the persisted textual form of ``tag``."""

    return tag.value


def decode(text: Any) -> ColorTag:
    """Return the tag encoded by ``text``, falling back to pink for anything unknown."""

    if isinstance(text, ColorTag):
        return text
    if isinstance(text, str):
        try:
            return ColorTag(text.strip().lower())
        except ValueError:
            pass
    LOGGER.debug("Unrecognized color tag %r; using %s", text, DEFAULT_COLOR.value)
    return DEFAULT_COLOR


class ColorCycle:
    """Tracks the selected color and advances it through :class:`ColorTag` order."""

    __slots__ = ("_current", "_listener")

    def __init__(self, initial: ColorTag = DEFAULT_COLOR, *, listener: ColorListener | None = None) -> None:
        self._current = initial
        self._listener = listener

    def current(self) -> ColorTag:
        return self._current

    def advance(self) -> ColorTag:
        """Select the next color, wrapping from the last tag back to the first."""

        order = list(ColorTag)
        index = order.index(self._current)
        self._current = order[(index + 1) % len(order)]
        LOGGER.debug("Selected highlight color: %s", self._current.value)
        if self._listener is not None:
            self._listener(self._current)
        return self._current

    def set_listener(self, listener: ColorListener | None) -> None:
        self._listener = listener
