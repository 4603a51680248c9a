"""Service layer helpers (settings)."""

from .settings import Settings, SettingsStore

__all__ = ["Settings", "SettingsStore"]
