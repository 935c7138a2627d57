"""Settings dataclass and JSON persistence.

Values come from three layers, each overriding the previous one: the JSON
file, ``--set KEY=VALUE`` pairs on the command line, then ``DRAFTDESK_*``
environment variables. Text from the last two goes through
:func:`parse_setting` so that both layers accept the same spellings.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, field, replace
from pathlib import Path
from typing import Any, Callable, Dict, Mapping

from ..editor.document_model import validate_drawer_name
from ..utils.file_io import write_text
from .dependencies import DEFAULT_REQUIREMENTS

__all__ = ["Settings", "SettingsStore", "DEFAULT_SETTINGS_PATH", "parse_flag", "parse_setting"]

LOGGER = logging.getLogger(__name__)
DEFAULT_SETTINGS_PATH = Path.home() / ".draftdesk" / "settings.json"
_SETTINGS_VERSION = 1

_ENV_FIELDS: Mapping[str, str] = {
    "DRAFTDESK_NOTES_DIRECTORY": "notes_directory",
    "DRAFTDESK_IMAGE_DIRECTORY": "image_directory",
    "DRAFTDESK_DRAWER_NAME": "drawer_name",
    "DRAFTDESK_THEME": "theme",
    "DRAFTDESK_FOCUS_ZOOM": "focus_zoom_level",
    "DRAFTDESK_FONT_SIZE": "font_size",
    "DRAFTDESK_DEBUG_LOGGING": "debug_logging",
}
_FLAG_WORDS = {
    "1": True, "true": True, "yes": True, "on": True,
    "0": False, "false": False, "no": False, "off": False,
}


def _default_required_tools() -> list[Any]:
    return [item if isinstance(item, str) else list(item) for item in DEFAULT_REQUIREMENTS]


@dataclass(slots=True)
class Settings:
    """User-configurable settings persisted between sessions."""

    notes_directory: str = "~/notes"
    bibliography_files: list[str] = field(default_factory=list)
    image_directory: str = "~/notes/images"
    drawer_name: str = "NOTES"
    wordcount_property: str = "WORDCOUNT"
    focus_zoom_level: int = 2
    default_zoom_level: int = 0
    required_tools: list[Any] = field(default_factory=_default_required_tools)
    recent_files: list[str] = field(default_factory=list)
    font_family: str = "Iosevka"
    font_size: int = 13
    theme: str = "default"
    window_geometry: str | None = None
    debug_logging: bool = False


def parse_flag(text: str) -> bool:
    """``yes``/``no`` style text to a bool; anything unrecognised is an error."""

    try:
        return _FLAG_WORDS[text.strip().lower()]
    except KeyError:
        raise ValueError(f"Cannot read {text!r} as on/off") from None


def _parse_json_list(text: str) -> list[Any]:
    try:
        value = json.loads(text or "[]")
    except json.JSONDecodeError as exc:
        raise ValueError(f"Expected a JSON array, got {text!r}") from exc
    if not isinstance(value, list):
        raise ValueError(f"Expected a JSON array, got {text!r}")
    return value


_TEXT_PARSERS: Dict[str, Callable[[str], Any]] = {
    "focus_zoom_level": int,
    "default_zoom_level": int,
    "font_size": int,
    "debug_logging": parse_flag,
    "bibliography_files": _parse_json_list,
    "required_tools": _parse_json_list,
    "recent_files": _parse_json_list,
}


def parse_setting(name: str, text: str) -> Any:
    """Convert command-line or environment text into the value of field ``name``.

    Raises:
        ValueError: ``name`` is not a setting, or ``text`` does not fit its type.
    """

    if name not in Settings.__dataclass_fields__:
        raise ValueError(f"Unknown setting '{name}'")
    parser = _TEXT_PARSERS.get(name, str.strip)
    return parser(text.strip())


class SettingsStore:
    """Read and write :class:`Settings` as a versioned JSON object."""

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or DEFAULT_SETTINGS_PATH

    @property
    def path(self) -> Path:
        return self._path

    def load(self, *, overrides: Mapping[str, Any] | None = None) -> Settings:
        """Load the file, apply ``overrides`` then the environment, and sanitise the result."""

        payload = self._read_payload()
        known = {key: value for key, value in payload.items() if key in Settings.__dataclass_fields__}
        settings = Settings(**known)
        if payload:
            LOGGER.debug("Read %d setting(s) from %s", len(known), self._path)
            if payload.get("version") != _SETTINGS_VERSION:
                self._migrate(settings)

        if overrides:
            settings = _merge(settings, overrides, source="command line")
        settings = _merge(settings, self._environment_overrides(), source="environment")
        return _sanitise(settings)

    def save(self, settings: Settings) -> Path:
        payload = asdict(settings)
        payload["version"] = _SETTINGS_VERSION
        write_text(self._path, json.dumps(payload, indent=2, sort_keys=True) + "\n")
        LOGGER.debug("Settings saved to %s", self._path)
        return self._path

    def _migrate(self, settings: Settings) -> None:
        try:
            self.save(settings)
        except OSError as exc:  # pragma: no cover - read-only home directories
            LOGGER.warning("Could not rewrite %s in the current format: %s", self._path, exc)

    def _read_payload(self) -> Dict[str, Any]:
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except json.JSONDecodeError as exc:
            LOGGER.warning("Ignoring %s, it is not valid JSON: %s", self._path, exc)
            return {}
        if not isinstance(payload, dict):
            LOGGER.warning("Ignoring %s, it does not hold a JSON object", self._path)
            return {}
        return payload

    @staticmethod
    def _environment_overrides() -> Dict[str, Any]:
        values: Dict[str, Any] = {}
        for env_name, field_name in _ENV_FIELDS.items():
            text = os.environ.get(env_name)
            if text is None:
                continue
            try:
                values[field_name] = parse_setting(field_name, text)
            except ValueError as exc:
                LOGGER.warning("Ignoring %s: %s", env_name, exc)
        return values


def _merge(settings: Settings, overrides: Mapping[str, Any], *, source: str) -> Settings:
    accepted = {
        key: value
        for key, value in overrides.items()
        if key in Settings.__dataclass_fields__ and value is not None
    }
    if not accepted:
        return settings
    LOGGER.debug("Settings from the %s: %s", source, sorted(accepted))
    return replace(settings, **accepted)


def _sanitise(settings: Settings) -> Settings:
    """Replace values the editor cannot work with by their defaults."""

    try:
        validate_drawer_name(settings.drawer_name)
    except (TypeError, ValueError) as exc:
        default = Settings().drawer_name
        LOGGER.warning("Using the %s drawer instead: %s", default, exc)
        settings = replace(settings, drawer_name=default)
    if isinstance(settings.required_tools, str):
        settings = replace(settings, required_tools=[settings.required_tools])
    return settings
