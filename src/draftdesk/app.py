"""Command-line entry point for draftdesk."""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence, TextIO

from .editor.document_model import DocumentPosition, OutlineDocument
from .editor.drawers import DrawerManager
from .editor.wordcount import annotate_word_counts
from .errors import DraftdeskError
from .services.dependencies import DependencyChecker, configured_requirements, format_missing
from .services.settings import Settings, SettingsStore, parse_flag, parse_setting
from .utils import logging as logging_utils
from .utils.file_io import write_text

_LOGGER = logging.getLogger(__name__)


def configure_logging(debug: bool = False, *, force: bool = False) -> Path:
    """Start logging to the log file and console; Qt's own messages included."""

    log_path = logging_utils.setup_logging(logging.DEBUG if debug else logging.INFO, force=force)
    _route_qt_messages()
    _LOGGER.debug("Logging to %s", log_path)
    return log_path


def load_settings(
    path: Optional[Path] = None,
    *,
    store: SettingsStore | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> Settings:
    """Load persisted settings or fall back to defaults."""

    active_store = store or SettingsStore(path)
    try:
        return active_store.load(overrides=overrides)
    except OSError as exc:
        _LOGGER.warning("Failed to load settings from %s: %s", active_store.path, exc)
        return Settings()


def main(argv: Sequence[str] | None = None) -> None:
    """Entry point invoked by the ``draftdesk`` console script."""

    args = _parse_cli_args(argv)

    debug = _debug_requested()
    configure_logging(debug)

    settings_path = args.settings_path or os.environ.get("DRAFTDESK_SETTINGS_PATH")
    resolved_path = Path(settings_path).expanduser() if settings_path else None
    settings_store = SettingsStore(resolved_path)
    try:
        cli_overrides = _coerce_cli_overrides(args.overrides or [])
    except ValueError as exc:
        print(f"Invalid --set override: {exc}", file=sys.stderr)
        raise SystemExit(2) from exc

    settings = load_settings(resolved_path, store=settings_store, overrides=cli_overrides or None)
    if settings.debug_logging and not debug:
        configure_logging(True, force=True)

    if args.dump_settings:
        _dump_settings(settings, settings_store, overrides=cli_overrides)
        return
    if args.check_deps:
        run_dependency_check(settings)
        return

    if args.notes is not None or args.word_counts:
        if args.path is None:
            print("A FILE argument is required for --notes and --word-counts.", file=sys.stderr)
            raise SystemExit(2)
        code = run_headless(Path(args.path), settings, notes_line=args.notes, word_counts=args.word_counts)
        if code:
            raise SystemExit(code)
        return

    _launch_window(settings, settings_store, Path(args.path) if args.path else None)


def run_dependency_check(
    settings: Settings,
    *,
    checker: DependencyChecker | None = None,
    stream: TextIO | None = None,
) -> list[str]:
    """Print the comma-joined list of missing tools and return the tokens."""

    destination = stream or sys.stdout
    requirements = configured_requirements(settings.required_tools)
    missing = (checker or DependencyChecker()).find_missing(requirements)
    destination.write(format_missing(missing) + "\n")
    return missing


def run_headless(
    path: Path,
    settings: Settings,
    *,
    notes_line: int | None = None,
    word_counts: bool = False,
    stream: TextIO | None = None,
) -> int:
    """Apply ``--notes`` / ``--word-counts`` to ``path`` and write it back.

    ``notes_line`` is 1-based, as editors display it. Returns a process exit code.
    """

    destination = stream or sys.stdout
    try:
        document = OutlineDocument.from_file(path)
    except FileNotFoundError:
        print(f"No such file: {path}", file=sys.stderr)
        return 1

    original = document.text
    if word_counts:
        counts = annotate_word_counts(document, property_name=settings.wordcount_property)
        for entry in counts:
            indent = "  " * (entry.heading.level - 1)
            destination.write(f"{indent}{entry.heading.title}: {entry.total}\n")

    if notes_line is not None:
        try:
            handle = DrawerManager(document, name=settings.drawer_name).ensure_drawer(
                DocumentPosition(max(notes_line - 1, 0))
            )
        except DraftdeskError as exc:
            print(exc.user_message(), file=sys.stderr)
            return 1
        verb = "Created" if handle.created else "Opened"
        destination.write(
            f"{verb} {settings.drawer_name} drawer under '{handle.heading.title}'; "
            f"cursor at line {handle.cursor.line + 1}\n"
        )

    if document.text != original:
        write_text(path, document.text)
        _LOGGER.info("Wrote %s", path)
    return 0


def _launch_window(settings: Settings, store: SettingsStore, path: Path | None) -> None:
    try:  # Local import keeps the headless commands free of the Qt stack.
        from PySide6.QtWidgets import QApplication

        from .ui.main_window import MainWindow
    except ImportError as exc:  # pragma: no cover - depends on desktop stack
        raise RuntimeError("PySide6 must be installed to launch the draftdesk window.") from exc

    os.environ.setdefault("QT_ENABLE_HIGHDPI_SCALING", "1")
    app = QApplication.instance() or QApplication(sys.argv)
    app.setApplicationName("draftdesk")
    if (settings.theme or "").lower() == "dark":
        app.setStyle("Fusion")

    window = MainWindow(settings, settings_store=store)
    if path is not None:
        if path.exists():
            window.open_path(path)
        else:
            _LOGGER.warning("File %s does not exist; starting with an empty document", path)
    window.show()
    raise SystemExit(app.exec())


def _debug_requested() -> bool:
    """``DRAFTDESK_DEBUG`` turns on debug logging before the settings are read."""

    text = os.environ.get("DRAFTDESK_DEBUG", "")
    try:
        return bool(text) and parse_flag(text)
    except ValueError:
        return False


def _route_qt_messages() -> None:
    try:
        from PySide6.QtCore import QtMsgType, qInstallMessageHandler
    except ImportError:  # pragma: no cover - headless installs
        return

    qt_log = logging.getLogger("PySide6")

    def _forward(kind, _context, message):  # type: ignore[no-untyped-def]
        if kind in (QtMsgType.QtCriticalMsg, QtMsgType.QtFatalMsg):
            qt_log.error(message)
        elif kind == QtMsgType.QtWarningMsg:
            qt_log.warning(message)
        else:
            qt_log.debug(message)

    qInstallMessageHandler(_forward)


def _parse_cli_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="draftdesk",
        description="Open an outline document in the draftdesk window, or edit it headlessly.",
    )
    parser.add_argument("path", nargs="?", metavar="FILE", help="Outline document to open.")
    parser.add_argument(
        "--notes",
        type=int,
        metavar="LINE",
        help="Open or create the notes drawer of the section containing LINE (1-based), then save.",
    )
    parser.add_argument(
        "--word-counts",
        action="store_true",
        help="Store per-heading word counts as properties, then save.",
    )
    parser.add_argument(
        "--check-deps",
        action="store_true",
        help="Report missing external tools and exit.",
    )
    parser.add_argument(
        "--dump-settings",
        action="store_true",
        help="Print the effective settings payload and exit.",
    )
    parser.add_argument(
        "--settings-path",
        metavar="PATH",
        help="Override the default ~/.draftdesk/settings.json path.",
    )
    parser.add_argument(
        "--set",
        dest="overrides",
        metavar="KEY=VALUE",
        action="append",
        default=[],
        help="Override persisted settings for this run (repeatable).",
    )
    return parser.parse_args(argv)


def _coerce_cli_overrides(items: Sequence[str]) -> Dict[str, Any]:
    """``--set KEY=VALUE`` pairs to setting values; raises ValueError on the first bad pair."""

    overrides: Dict[str, Any] = {}
    for entry in items:
        key, separator, text = entry.partition("=")
        if not separator or not key.strip():
            raise ValueError(f"'{entry}' is not KEY=VALUE")
        overrides[key.strip()] = parse_setting(key.strip(), text)
    return overrides


def _dump_settings(
    settings: Settings,
    store: SettingsStore,
    *,
    overrides: Mapping[str, Any],
    stream: TextIO | None = None,
) -> None:
    """Print the effective settings and where they came from as JSON."""

    report = {
        "settings": asdict(settings),
        "meta": {
            "path": str(store.path),
            "cli_overrides": sorted(overrides),
            "environment_variables": sorted(key for key in os.environ if key.startswith("DRAFTDESK_")),
        },
    }
    (stream or sys.stdout).write(json.dumps(report, indent=2) + "\n")


if __name__ == "__main__":  # pragma: no cover
    main()
