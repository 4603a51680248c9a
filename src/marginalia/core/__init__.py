"""Core domain types shared by the annotation engine and its hosts."""

from .ranges import EndBoundary, LiveRange, RangeHost, TextRange

__all__ = ["EndBoundary", "LiveRange", "RangeHost", "TextRange"]
