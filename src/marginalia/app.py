"""Command line front end for inspecting and editing document annotations."""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence, TextIO, get_args, get_origin, get_type_hints

from .annotations.colors import ColorTag
from .annotations.persistence import SidecarFormatError
from .editor.text_buffer import TextBuffer
from .editor.workspace import AnnotationSession, AnnotationWorkspace
from .services.settings import Settings, SettingsStore
from .utils import file_io, logging as logging_utils

_TRUE_VALUES = {"1", "true", "yes", "on", "debug"}
_FALSE_VALUES = {"0", "false", "no", "off", "disabled"}
_LOGGER = logging.getLogger(__name__)


def configure_logging(debug: bool = False, *, force: bool = False) -> None:
    """Configure structured logging for the command line tools."""

    level = logging.DEBUG if debug else logging.WARNING
    logging_utils.setup_logging(level, force=force)
    _LOGGER.debug("Logging configured (level=%s)", logging.getLevelName(level))


def load_settings(
    path: Optional[Path] = None,
    *,
    store: SettingsStore | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> Settings:
    """Load persisted settings or fall back to defaults."""

    active_store = store or SettingsStore(path)
    return active_store.load(overrides=overrides)


def main(argv: Sequence[str] | None = None, *, stdout: TextIO | None = None, stderr: TextIO | None = None) -> int:
    """Entry point invoked by the ``marginalia`` console script."""

    out = stdout or sys.stdout
    err = stderr or sys.stderr
    parser = _build_parser()
    args = parser.parse_args(argv)

    debug = args.debug or _env_flag("MARGINALIA_DEBUG", default=False)
    configure_logging(debug)

    settings_path = args.settings_path or os.environ.get("MARGINALIA_SETTINGS_PATH")
    resolved_path = Path(settings_path).expanduser() if settings_path else None
    settings_store = SettingsStore(resolved_path)
    try:
        cli_overrides = _coerce_cli_overrides(args.overrides or [])
    except ValueError as exc:
        print(f"Invalid --set override: {exc}", file=err)
        return 2
    settings = load_settings(resolved_path, store=settings_store, overrides=cli_overrides or None)

    if settings.debug_logging and not debug:
        configure_logging(True, force=True)

    if args.command == "settings":
        if args.save:
            settings_store.save(settings)
        _dump_settings(settings, settings_store, overrides=cli_overrides, stream=out)
        return 0

    document = Path(args.document).expanduser()
    workspace = AnnotationWorkspace(settings)
    if args.command == "sidecar":
        print(workspace.persistence.sidecar_path(document.resolve()), file=out)
        return 0
    if not document.is_file():
        print(f"Document not found: {document}", file=err)
        return 2

    buffer = TextBuffer(file_io.read_text(document), boundary=settings.boundary)
    try:
        session = workspace.on_document_opened(document, buffer)
    except SidecarFormatError as exc:
        print(f"Cannot read annotations: {exc}", file=err)
        return 1

    if args.command == "show":
        _print_annotations(session, buffer, out)
        return 0

    if args.command == "clear":
        workspace.clear_annotations(document)
    else:
        # reversed pairs stay reversed so the gesture is a no-op
        start, end = (max(0, min(offset, len(buffer))) for offset in (args.start, args.end))
        if args.command == "apply":
            color = ColorTag(args.color)
            while workspace.current_color is not color:
                workspace.cycle_color()
            workspace.apply_current_color(document, start, end)
        else:
            workspace.erase_in_range(document, start, end)
    sidecar = workspace.on_document_saved(document)
    if sidecar is not None:
        _LOGGER.info("Annotations written to %s", sidecar)
    _print_annotations(session, buffer, out)
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="marginalia",
        description="Inspect and edit the colored highlights stored next to a document.",
    )
    parser.add_argument(
        "--settings-path",
        metavar="PATH",
        help="Override the default ~/.marginalia/settings.json path.",
    )
    parser.add_argument(
        "--set",
        dest="overrides",
        metavar="KEY=VALUE",
        action="append",
        default=[],
        help="Override persisted settings for this run (repeatable).",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging.")
    commands = parser.add_subparsers(dest="command", required=True)

    show = commands.add_parser("show", help="List the annotations of a document.")
    show.add_argument("document")
    sidecar = commands.add_parser("sidecar", help="Print the sidecar path of a document.")
    sidecar.add_argument("document")
    clear = commands.add_parser("clear", help="Remove every annotation of a document.")
    clear.add_argument("document")

    apply = commands.add_parser("apply", help="Highlight [START, END) with a color.")
    apply.add_argument("document")
    apply.add_argument("start", type=int)
    apply.add_argument("end", type=int)
    apply.add_argument(
        "--color",
        choices=[tag.value for tag in ColorTag],
        default=ColorTag.PINK.value,
        help="Highlight color (default: pink).",
    )

    erase = commands.add_parser("erase", help="Remove highlights from [START, END).")
    erase.add_argument("document")
    erase.add_argument("start", type=int)
    erase.add_argument("end", type=int)

    settings_cmd = commands.add_parser("settings", help="Print the effective settings and exit.")
    settings_cmd.add_argument(
        "--save",
        action="store_true",
        help="Persist the effective settings (including overrides) to the settings file.",
    )
    return parser


def _print_annotations(session: AnnotationSession, buffer: TextBuffer, stream: TextIO) -> None:
    for start, end, tag in sorted(session.records()):
        excerpt = buffer.slice(start, end).replace("\n", "\\n")
        stream.write(f"{start}\t{end}\t{tag}\t{excerpt}\n")


def _env_flag(name: str, *, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


def _coerce_cli_overrides(items: Sequence[str]) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    if not items:
        return overrides

    fields = Settings.__dataclass_fields__  # type: ignore[attr-defined]
    type_hints = get_type_hints(Settings)
    for entry in items:
        if "=" not in entry:
            raise ValueError(f"Override '{entry}' must use KEY=VALUE syntax.")
        key, raw_value = entry.split("=", 1)
        key = key.strip()
        if not key:
            raise ValueError("Override is missing a field name.")
        if key not in fields:
            raise ValueError(f"Unknown setting '{key}'.")
        annotation = type_hints.get(key, fields[key].type)
        overrides[key] = _coerce_value(annotation, raw_value.strip())
    return overrides


def _coerce_value(annotation: Any, raw_value: str) -> Any:
    normalized = raw_value.strip()
    if normalized.lower() in {"none", "null"} and type(None) in get_args(annotation):
        return None
    target = _resolve_annotation(annotation)
    if target is bool:
        return _parse_bool(normalized)
    if target is int:
        return int(normalized, 10)
    return normalized


def _resolve_annotation(annotation: Any) -> Any:
    if get_origin(annotation) is None:
        return annotation
    args = [arg for arg in get_args(annotation) if arg is not type(None)]
    return args[0] if args else annotation


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"Cannot coerce '{value}' to a boolean.")


def _dump_settings(
    settings: Settings,
    store: SettingsStore,
    *,
    overrides: Mapping[str, Any],
    stream: TextIO | None = None,
) -> None:
    destination = stream or sys.stdout
    metadata = {
        "path": str(store.path),
        "cli_overrides": sorted(overrides.keys()),
        "environment_variables": sorted(name for name in os.environ if name.startswith("MARGINALIA_")),
    }
    json.dump({"settings": asdict(settings), "meta": metadata}, destination, indent=2)
    destination.write("\n")
