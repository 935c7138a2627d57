"""User-facing layer: focus mode, editing session, events and the Qt window.

Only :mod:`.qt_host` and :mod:`.main_window` import PySide6; everything else
here runs headless.
"""

from .events import EventBus
from .focus import FocusToggle, FocusTransition, SessionViewState, ViewHost
from .session import EditingSession

__all__ = [
    "EventBus",
    "FocusToggle",
    "FocusTransition",
    "SessionViewState",
    "ViewHost",
    "EditingSession",
]
