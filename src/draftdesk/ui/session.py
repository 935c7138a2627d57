"""Editing session controller.

``EditingSession`` owns one document, its cursor and return markers, and the
focus state of the window showing it. It translates user commands into calls
on the focus toggle, drawer manager and dependency checker, then moves the
cursor and publishes events describing what changed. It holds no Qt objects.
"""

from __future__ import annotations

import logging
from typing import Iterable

from ..editor.document_model import DocumentPosition, OutlineDocument
from ..editor.drawers import DrawerHandle, DrawerManager
from ..editor.marks import MarkRing
from ..editor.wordcount import HeadingWordCount, annotate_word_counts
from ..errors import DraftdeskError
from ..services.dependencies import DependencyChecker, Requirement, configured_requirements, format_missing
from ..services.settings import Settings
from .events import (
    DependenciesChecked,
    DocumentChanged,
    EventBus,
    FocusModeChanged,
    NotesDrawerOpened,
    StatusMessage,
)
from .focus import FocusToggle, FocusTransition, SessionViewState, ViewHost

LOGGER = logging.getLogger(__name__)

HINT_TIMEOUT_MS = 5_000

__all__ = ["EditingSession", "HINT_TIMEOUT_MS"]


class EditingSession:
    """State and commands for one open document."""

    def __init__(
        self,
        document: OutlineDocument,
        host: ViewHost,
        *,
        settings: Settings | None = None,
        event_bus: EventBus | None = None,
        checker: DependencyChecker | None = None,
        view_state: SessionViewState | None = None,
    ) -> None:
        self._settings = settings or Settings()
        self._document = document
        self._bus = event_bus or EventBus()
        self._view_state = view_state or SessionViewState()
        self._focus = FocusToggle(
            host,
            focus_zoom=self._settings.focus_zoom_level,
            default_zoom=self._settings.default_zoom_level,
        )
        self._drawers = DrawerManager(document, name=self._settings.drawer_name)
        self._checker = checker or DependencyChecker()
        self._marks = MarkRing()
        self._cursor = DocumentPosition(0)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------
    @property
    def document(self) -> OutlineDocument:
        return self._document

    @property
    def event_bus(self) -> EventBus:
        return self._bus

    @property
    def view_state(self) -> SessionViewState:
        return self._view_state

    @property
    def marks(self) -> MarkRing:
        return self._marks

    @property
    def cursor(self) -> DocumentPosition:
        return self._cursor

    def move_cursor(self, position: DocumentPosition) -> None:
        """Clamp ``position`` into the document and make it the cursor."""

        last_line = max(self._document.line_count - 1, 0)
        line = min(max(position.line, 0), last_line)
        line_text = self._document.line_at(line) or ""
        column = min(max(position.column, 0), len(line_text))
        self._cursor = DocumentPosition(line, column)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------
    def toggle_focus(self) -> FocusTransition:
        transition = self._focus.toggle(self._view_state)
        self._bus.publish(
            FocusModeChanged(active=transition.active, layout_restored=transition.layout_restored)
        )
        return transition

    def open_notes_drawer(self) -> DrawerHandle | None:
        """Save a return marker, then open the notes drawer of the current section.

        Returns ``None`` (after posting a status message) when the cursor is
        not below any heading.
        """

        origin = self._cursor
        lines_before = self._document.line_count
        self._marks.push(origin)
        try:
            handle = self._drawers.ensure_drawer(origin)
        except DraftdeskError as exc:
            self._marks.pop()
            LOGGER.info("Notes drawer not opened: %s", exc)
            self._bus.publish(StatusMessage(message=exc.user_message(), timeout_ms=HINT_TIMEOUT_MS))
            return None

        inserted = self._document.line_count - lines_before
        if inserted:
            self._marks.shift(handle.block.start if handle.created else handle.cursor.line, inserted)
            self._bus.publish(DocumentChanged(version_id=self._document.version_id))
        self.move_cursor(handle.cursor)
        self._bus.publish(
            NotesDrawerOpened(heading=handle.heading.title, line=handle.cursor.line, created=handle.created)
        )
        self._bus.publish(StatusMessage(message=handle.hint, timeout_ms=HINT_TIMEOUT_MS))
        return handle

    def jump_back(self) -> DocumentPosition | None:
        """Return to the most recent marker, if any."""

        target = self._marks.pop()
        if target is None:
            self._bus.publish(StatusMessage(message="No position to jump back to", timeout_ms=HINT_TIMEOUT_MS))
            return None
        self.move_cursor(target)
        return self._cursor

    def check_dependencies(self, spec: Iterable[Requirement] | None = None) -> list[str]:
        if spec is None:
            requirements = configured_requirements(self._settings.required_tools)
        else:
            requirements = list(spec)
        missing = self._checker.find_missing(requirements)
        self._bus.publish(DependenciesChecked(missing=tuple(missing)))
        self._bus.publish(StatusMessage(message=format_missing(missing)))
        return missing

    def annotate_word_counts(self) -> list[HeadingWordCount]:
        counts = annotate_word_counts(self._document, property_name=self._settings.wordcount_property)
        self.move_cursor(self._cursor)
        self._bus.publish(DocumentChanged(version_id=self._document.version_id))
        return counts
