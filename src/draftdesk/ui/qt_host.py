"""PySide6 implementation of the focus-mode view host."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from PySide6.QtCore import QByteArray, Qt
from PySide6.QtWidgets import QMainWindow, QPlainTextEdit, QSplitter, QWidget

__all__ = ["QtLayoutSnapshot", "QtViewHost"]

LOGGER = logging.getLogger(__name__)

_FALLBACK_POINT_SIZE = 12.0


@dataclass(slots=True, frozen=True)
class QtLayoutSnapshot:
    """Splitter sizes plus which panes were visible."""

    splitter_state: bytes
    pane_visibility: tuple[bool, ...]


class QtViewHost:
    """Drive focus mode on a main window whose central widget is a splitter.

    One splitter pane holds the editor; the others (outline, side panels) are
    hidden while focused. Zoom is applied as point-size steps on the editor
    font relative to its size when the host was created.
    """

    def __init__(self, window: QMainWindow, splitter: QSplitter, editor: QPlainTextEdit) -> None:
        self._window = window
        self._splitter = splitter
        self._editor = editor
        base = editor.font().pointSizeF()
        self._base_point_size = base if base > 0 else _FALLBACK_POINT_SIZE
        self._zoom_level = 0
        self._focused = False
        self._pre_focus_state = window.windowState()

    @property
    def zoom_level(self) -> int:
        return self._zoom_level

    @property
    def presentation_focused(self) -> bool:
        return self._focused

    def capture_layout(self) -> QtLayoutSnapshot:
        return QtLayoutSnapshot(
            splitter_state=bytes(self._splitter.saveState().data()),
            pane_visibility=tuple(not widget.isHidden() for widget in self._panes()),
        )

    def restore_layout(self, handle: QtLayoutSnapshot) -> None:
        panes = self._panes()
        if len(panes) != len(handle.pane_visibility):
            LOGGER.debug(
                "Pane count changed since capture (%d -> %d); restoring visible panes only",
                len(handle.pane_visibility),
                len(panes),
            )
        for widget, visible in zip(panes, handle.pane_visibility):
            widget.setVisible(visible)
        self._splitter.restoreState(QByteArray(handle.splitter_state))

    def collapse_to_single_pane(self) -> None:
        keep = self._editor_pane()
        for widget in self._panes():
            widget.setVisible(widget is keep)

    def current_pane_count(self) -> int:
        return sum(1 for widget in self._panes() if not widget.isHidden())

    def set_zoom_level(self, level: int) -> None:
        font = self._editor.font()
        font.setPointSizeF(max(1.0, self._base_point_size + level))
        self._editor.setFont(font)
        self._zoom_level = level

    def enable_focused_presentation(self) -> None:
        window = self._window
        self._pre_focus_state = window.windowState()
        window.menuBar().hide()
        window.statusBar().hide()
        self._editor.setCenterOnScroll(True)
        window.showFullScreen()
        self._focused = True

    def disable_focused_presentation(self) -> None:
        window = self._window
        window.menuBar().show()
        window.statusBar().show()
        self._editor.setCenterOnScroll(False)
        if self._pre_focus_state & Qt.WindowState.WindowMaximized:
            window.showMaximized()
        else:
            window.showNormal()
        self._focused = False

    def _panes(self) -> list[QWidget]:
        return [self._splitter.widget(index) for index in range(self._splitter.count())]

    def _editor_pane(self) -> QWidget:
        for widget in self._panes():
            if widget is self._editor or widget.isAncestorOf(self._editor):
                return widget
        raise LookupError("The editor is not inside the focus-mode splitter")
