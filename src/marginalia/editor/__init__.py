"""Editor package containing range hosts and per-document annotation sessions."""

from importlib import import_module
from typing import Any

from . import text_buffer, workspace

__all__ = ["text_buffer", "workspace"]


def __getattr__(name: str) -> Any:
	if name == "qt_ranges":
		module = import_module(f"{__name__}.{name}")
		globals()[name] = module
		return module
	raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
