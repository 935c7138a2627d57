"""Main window: outline panel, editor and menus bound to an editing session."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict

from PySide6.QtCore import QByteArray, Qt
from PySide6.QtGui import QAction, QCloseEvent, QFont, QTextCursor
from PySide6.QtWidgets import (
    QFileDialog,
    QMainWindow,
    QPlainTextEdit,
    QSplitter,
    QTreeWidget,
    QTreeWidgetItem,
)

from ..editor.document_model import DocumentMetadata, DocumentPosition, OutlineDocument
from ..services.dependencies import DependencyChecker
from ..services.settings import Settings, SettingsStore
from ..utils.file_io import write_text
from .actions import MENUS, WindowAction, build_actions
from .events import DocumentChanged, EventBus, FocusModeChanged, NotesDrawerOpened, StatusMessage
from .focus import SessionViewState
from .qt_host import QtViewHost
from .session import EditingSession

__all__ = ["MainWindow"]

LOGGER = logging.getLogger(__name__)

_FILE_FILTER = "Org files (*.org);;Text files (*.txt);;All files (*)"
_MAX_RECENT_FILES = 10


class MainWindow(QMainWindow):
    """Primary application window hosting the outline panel and the editor."""

    def __init__(
        self,
        settings: Settings,
        *,
        settings_store: SettingsStore | None = None,
        document: OutlineDocument | None = None,
        checker: DependencyChecker | None = None,
    ) -> None:
        super().__init__()
        self._settings = settings
        self._settings_store = settings_store
        self._checker = checker
        self._bus: EventBus = EventBus()
        self._view_state = SessionViewState()

        self._outline = QTreeWidget()
        self._outline.setHeaderHidden(True)
        self._outline.itemActivated.connect(self._on_outline_activated)

        self._editor = QPlainTextEdit()
        self._editor.setFont(QFont(settings.font_family, settings.font_size))

        self._splitter = QSplitter(Qt.Orientation.Horizontal)
        self._splitter.addWidget(self._outline)
        self._splitter.addWidget(self._editor)
        self._splitter.setStretchFactor(0, 1)
        self._splitter.setStretchFactor(1, 4)
        self.setCentralWidget(self._splitter)
        self.statusBar()

        self._host = QtViewHost(self, self._splitter, self._editor)
        self._listeners = (
            (StatusMessage, self._on_status_message),
            (DocumentChanged, self._on_document_changed),
            (NotesDrawerOpened, self._on_drawer_opened),
            (FocusModeChanged, self._on_focus_changed),
        )
        for event_type, handler in self._listeners:
            self._bus.subscribe(event_type, handler)

        self._actions = build_actions(
            {
                "file_open": self._open_file_dialog,
                "file_save": self.save,
                "view_focus": self.toggle_focus,
                "notes_drawer": self.open_notes_drawer,
                "jump_back": self.jump_back,
                "word_counts": self.annotate_word_counts,
                "check_dependencies": self.check_dependencies,
            }
        )
        self._qt_actions = self._install_menus(self._actions)
        self._restore_geometry()

        self._session = self._create_session(document or OutlineDocument())
        self._load_into_editor()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    @property
    def session(self) -> EditingSession:
        return self._session

    @property
    def editor(self) -> QPlainTextEdit:
        return self._editor

    @property
    def view_host(self) -> QtViewHost:
        return self._host

    def open_path(self, path: Path | str) -> None:
        document = OutlineDocument.from_file(path)
        self._session = self._create_session(document)
        self._load_into_editor()
        self._remember_recent_file(Path(path))

    def save(self) -> Path | None:
        self._pull_from_editor()
        document = self._session.document
        path = document.metadata.path
        if path is None:
            chosen, _ = QFileDialog.getSaveFileName(self, "Save outline", self._notes_directory(), _FILE_FILTER)
            if not chosen:
                return None
            path = Path(chosen)
            document.metadata = DocumentMetadata(path=path)
        write_text(path, document.text)
        document.dirty = False
        self._editor.document().setModified(False)
        self._remember_recent_file(path)
        self.statusBar().showMessage(f"Saved {path}", 3_000)
        self._update_title()
        return path

    def toggle_focus(self) -> None:
        self._session.toggle_focus()

    def open_notes_drawer(self) -> None:
        self._pull_from_editor()
        self._session.open_notes_drawer()

    def jump_back(self) -> None:
        self._pull_from_editor()
        if self._session.jump_back() is not None:
            self._place_cursor(self._session.cursor)

    def annotate_word_counts(self) -> None:
        self._pull_from_editor()
        counts = self._session.annotate_word_counts()
        total = sum(entry.own for entry in counts)
        self.statusBar().showMessage(f"{total} words across {len(counts)} heading(s)", 5_000)

    def check_dependencies(self) -> list[str]:
        return self._session.check_dependencies()

    # ------------------------------------------------------------------
    # Session <-> editor synchronisation
    # ------------------------------------------------------------------
    def _create_session(self, document: OutlineDocument) -> EditingSession:
        document.fold_all_drawers()
        return EditingSession(
            document,
            self._host,
            settings=self._settings,
            event_bus=self._bus,
            checker=self._checker,
            view_state=self._view_state,
        )

    def _load_into_editor(self) -> None:
        self._editor.setPlainText(self._session.document.text)
        self._editor.document().setModified(False)
        self._apply_folding()
        self._refresh_outline()
        self._update_title()

    def _pull_from_editor(self) -> None:
        self._session.document.replace_text(self._editor.toPlainText())
        cursor = self._editor.textCursor()
        self._session.move_cursor(DocumentPosition(cursor.blockNumber(), cursor.positionInBlock()))

    def _push_to_editor(self) -> None:
        text = self._session.document.text
        if text != self._editor.toPlainText():
            cursor = QTextCursor(self._editor.document())
            cursor.beginEditBlock()
            cursor.select(QTextCursor.SelectionType.Document)
            cursor.insertText(text)
            cursor.endEditBlock()
        self._apply_folding()
        self._refresh_outline()
        self._place_cursor(self._session.cursor)
        self._update_title()

    def _place_cursor(self, position: DocumentPosition) -> None:
        block = self._editor.document().findBlockByNumber(position.line)
        if not block.isValid():
            return
        cursor = QTextCursor(block)
        cursor.movePosition(
            QTextCursor.MoveOperation.Right,
            QTextCursor.MoveMode.MoveAnchor,
            min(position.column, max(block.length() - 1, 0)),
        )
        self._editor.setTextCursor(cursor)
        self._editor.ensureCursorVisible()
        self._editor.setFocus()

    def _apply_folding(self) -> None:
        hidden: set[int] = set()
        for block in self._session.document.folded_blocks():
            hidden.update(range(block.start + 1, block.end + 1))
        text_document = self._editor.document()
        text_block = text_document.begin()
        while text_block.isValid():
            text_block.setVisible(text_block.blockNumber() not in hidden)
            text_block = text_block.next()
        text_document.markContentsDirty(0, text_document.characterCount())
        self._editor.viewport().update()

    def _refresh_outline(self) -> None:
        self._outline.clear()
        parents: list[tuple[int, QTreeWidgetItem]] = []
        for heading in self._session.document.headings():
            while parents and parents[-1][0] >= heading.level:
                parents.pop()
            item = QTreeWidgetItem([heading.title or "(untitled)"])
            item.setData(0, Qt.ItemDataRole.UserRole, heading.line)
            if parents:
                parents[-1][1].addChild(item)
            else:
                self._outline.addTopLevelItem(item)
            parents.append((heading.level, item))
        self._outline.expandAll()

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------
    def _on_status_message(self, event: StatusMessage) -> None:
        self.statusBar().showMessage(event.message, event.timeout_ms)

    def _on_document_changed(self, event: DocumentChanged) -> None:
        LOGGER.debug("Document changed (version=%s); refreshing editor", event.version_id)
        self._push_to_editor()

    def _on_drawer_opened(self, event: NotesDrawerOpened) -> None:
        self._apply_folding()
        self._place_cursor(DocumentPosition(event.line))

    def _on_focus_changed(self, event: FocusModeChanged) -> None:
        self._editor.setFocus()
        self._update_title()

    def _on_outline_activated(self, item: QTreeWidgetItem, _column: int) -> None:
        line = item.data(0, Qt.ItemDataRole.UserRole)
        if isinstance(line, int):
            self._session.move_cursor(DocumentPosition(line))
            self._place_cursor(self._session.cursor)

    # ------------------------------------------------------------------
    # Chrome
    # ------------------------------------------------------------------
    def _install_menus(self, actions: Dict[str, WindowAction]) -> Dict[str, QAction]:
        qt_actions: Dict[str, QAction] = {}
        for action in actions.values():
            qt_action = QAction(action.text, self)
            if action.shortcut:
                qt_action.setShortcut(action.shortcut)
            if action.status_tip:
                qt_action.setStatusTip(action.status_tip)
            qt_action.triggered.connect(action.trigger)
            # Shortcuts must keep working while the menu bar is hidden in focus mode.
            self.addAction(qt_action)
            qt_actions[action.name] = qt_action

        menubar = self.menuBar()
        for spec in MENUS:
            menu = menubar.addMenu(spec.title)
            for name in spec.actions:
                menu.addAction(qt_actions[name])
        return qt_actions

    def _update_title(self) -> None:
        path = self._session.document.metadata.path
        name = path.name if path is not None else "Untitled"
        suffix = " [focus]" if self._view_state.active else ""
        self.setWindowTitle(f"{name} - draftdesk{suffix}")

    def _notes_directory(self) -> str:
        return str(Path(self._settings.notes_directory).expanduser())

    def _open_file_dialog(self) -> None:
        chosen, _ = QFileDialog.getOpenFileName(self, "Open outline", self._notes_directory(), _FILE_FILTER)
        if chosen:
            self.open_path(chosen)

    def _remember_recent_file(self, path: Path) -> None:
        normalized = str(path.expanduser().resolve())
        recent = [normalized]
        recent.extend(entry for entry in self._settings.recent_files if entry != normalized)
        self._settings.recent_files = recent[:_MAX_RECENT_FILES]
        self._persist_settings()

    def _restore_geometry(self) -> None:
        encoded = self._settings.window_geometry
        if encoded:
            self.restoreGeometry(QByteArray.fromBase64(encoded.encode("ascii")))

    def _persist_settings(self) -> None:
        if self._settings_store is None:
            return
        try:
            self._settings_store.save(self._settings)
        except OSError as exc:
            LOGGER.warning("Failed to persist settings: %s", exc)

    def closeEvent(self, event: QCloseEvent) -> None:  # noqa: N802 - Qt override
        if self._view_state.active:
            self._session.toggle_focus()
        self._settings.window_geometry = bytes(self.saveGeometry().toBase64().data()).decode("ascii")
        self._persist_settings()
        for event_type, handler in self._listeners:
            self._bus.unsubscribe(event_type, handler)
        super().closeEvent(event)
