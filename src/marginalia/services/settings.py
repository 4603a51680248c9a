"""Settings dataclasses and persistence helpers."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping

from ..core.ranges import EndBoundary
from ..utils import file_io

__all__ = [
    "Settings",
    "SettingsStore",
    "DEFAULT_SIDECAR_DIRNAME",
    "DEFAULT_SIDECAR_SUFFIX",
]

LOGGER = logging.getLogger(__name__)
_DEFAULT_SETTINGS_PATH = Path.home() / ".marginalia" / "settings.json"
_SETTINGS_VERSION = 1
_ENV_OVERRIDES: Mapping[str, str] = {
    "MARGINALIA_SIDECAR_DIRNAME": "sidecar_dirname",
    "MARGINALIA_SIDECAR_SUFFIX": "sidecar_suffix",
    "MARGINALIA_END_BOUNDARY": "end_boundary",
}
_BOOL_ENV_OVERRIDES: Mapping[str, str] = {
    "MARGINALIA_TOLERATE_MALFORMED": "tolerate_malformed_sidecar",
    "MARGINALIA_DEBUG_LOGGING": "debug_logging",
}
_INT_ENV_OVERRIDES: Mapping[str, str] = {
    "MARGINALIA_JSON_INDENT": "json_indent",
}
_TRUE_VALUES = {"1", "true", "yes", "on", "debug"}
DEFAULT_SIDECAR_DIRNAME = ".annotations"
DEFAULT_SIDECAR_SUFFIX = ".dat"


@dataclass(slots=True)
class Settings:
    """User-configurable settings persisted between sessions."""

    sidecar_dirname: str = DEFAULT_SIDECAR_DIRNAME
    sidecar_suffix: str = DEFAULT_SIDECAR_SUFFIX
    end_boundary: str = EndBoundary.EXCLUSIVE.value
    # Off by default: a malformed sidecar is an error unless the user opts in.
    tolerate_malformed_sidecar: bool = False
    debug_logging: bool = False
    json_indent: int | None = None

    @property
    def boundary(self) -> EndBoundary:
        return EndBoundary.from_value(self.end_boundary)


class SettingsStore:
    """Persistence adapter for :class:`Settings`."""

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or _DEFAULT_SETTINGS_PATH

    @property
    def path(self) -> Path:
        """Return the resolved path backing this store."""

        return self._path

    def load(self, *, overrides: Mapping[str, Any] | None = None) -> Settings:
        """Load settings from disk, applying CLI/environment overrides when present."""

        payload = self._read_payload()
        settings = Settings()
        if payload:
            data = _filter_fields(payload)
            try:
                settings = Settings(**data)
            except TypeError as exc:
                LOGGER.warning("Settings payload contained unexpected data: %s", exc)
                settings = Settings()
        LOGGER.debug("Settings loaded from %s (%d stored keys)", self._path, len(payload))

        if overrides:
            settings = self._apply_overrides(settings, overrides, source="CLI")
        settings = self._apply_env_overrides(settings)
        return _validated(settings)

    def save(self, settings: Settings) -> Path:
        """Persist settings to disk with atomic file writes."""

        payload: Dict[str, Any] = asdict(settings)
        payload["version"] = _SETTINGS_VERSION
        body = json.dumps(payload, indent=2, sort_keys=True)
        file_io.write_text(self._path, body)
        LOGGER.debug("Settings saved to %s", self._path)
        return self._path

    def _read_payload(self) -> Dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            text = self._path.read_text(encoding="utf-8")
            data = json.loads(text)
        except FileNotFoundError:
            return {}
        except json.JSONDecodeError as exc:
            LOGGER.warning("Settings file %s is not valid JSON: %s", self._path, exc)
            return {}
        if not isinstance(data, Mapping):
            LOGGER.warning("Settings file %s does not contain an object", self._path)
            return {}
        return dict(data)

    def _apply_overrides(
        self,
        settings: Settings,
        overrides: Mapping[str, Any],
        *,
        source: str = "runtime",
    ) -> Settings:
        allowed = {field.name for field in fields(Settings)}
        filtered: Dict[str, Any] = {}
        for key, value in overrides.items():
            if key not in allowed or value is None:
                continue
            filtered[key] = value
        if filtered:
            LOGGER.debug("Applying %s settings overrides: %s", source, sorted(filtered))
            settings = replace(settings, **filtered)
        return settings

    def _apply_env_overrides(self, settings: Settings) -> Settings:
        overrides: Dict[str, Any] = {}
        for env_name, field_name in _ENV_OVERRIDES.items():
            value = os.environ.get(env_name)
            if value is not None:
                overrides[field_name] = value
        for env_name, field_name in _BOOL_ENV_OVERRIDES.items():
            value = os.environ.get(env_name)
            if value is not None:
                overrides[field_name] = value.strip().lower() in _TRUE_VALUES
        for env_name, field_name in _INT_ENV_OVERRIDES.items():
            value = os.environ.get(env_name)
            if value is None:
                continue
            try:
                overrides[field_name] = int(value, 10)
            except ValueError:
                LOGGER.warning(
                    "Environment override %s=%s is not a valid integer",
                    env_name,
                    value,
                )
        if overrides:
            settings = self._apply_overrides(settings, overrides, source="environment")
        return settings


def _filter_fields(payload: Mapping[str, Any]) -> Dict[str, Any]:
    allowed = {field.name for field in fields(Settings)}
    return {key: value for key, value in payload.items() if key in allowed}


def _validated(settings: Settings) -> Settings:
    try:
        boundary = EndBoundary.from_value(settings.end_boundary)
    except ValueError:
        LOGGER.warning("Unknown end boundary %r; using %s", settings.end_boundary, EndBoundary.EXCLUSIVE.value)
        boundary = EndBoundary.EXCLUSIVE
    dirname = str(settings.sidecar_dirname or "").strip() or DEFAULT_SIDECAR_DIRNAME
    suffix = str(settings.sidecar_suffix or "")
    return replace(
        settings,
        end_boundary=boundary.value,
        sidecar_dirname=dirname,
        sidecar_suffix=suffix,
        tolerate_malformed_sidecar=_coerce_flag("tolerate_malformed_sidecar", settings.tolerate_malformed_sidecar),
        debug_logging=_coerce_flag("debug_logging", settings.debug_logging),
        json_indent=_coerce_indent(settings.json_indent),
    )


def _coerce_flag(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    flag = str(value).strip().lower() in _TRUE_VALUES
    LOGGER.warning("Setting %s=%r is not a boolean; treating it as %s", name, value, flag)
    return flag


def _coerce_indent(value: Any) -> int | None:
    if value is None or (isinstance(value, int) and not isinstance(value, bool) and value >= 0):
        return value
    LOGGER.warning("Setting json_indent=%r is not a non-negative integer; using compact output", value)
    return None
