"""Service layer: settings persistence and dependency checks."""

from .dependencies import DependencyChecker, format_missing
from .settings import Settings, SettingsStore

__all__ = ["DependencyChecker", "format_missing", "Settings", "SettingsStore"]
