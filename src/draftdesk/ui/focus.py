"""Focus mode: collapse the window to the editor and restore it afterwards."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Protocol

__all__ = [
    "LayoutHandle",
    "ViewHost",
    "SessionViewState",
    "FocusTransition",
    "FocusToggle",
    "DEFAULT_FOCUS_ZOOM",
    "DEFAULT_ZOOM",
]

LOGGER = logging.getLogger(__name__)

DEFAULT_FOCUS_ZOOM = 2
DEFAULT_ZOOM = 0

LayoutHandle = Any
"""Opaque snapshot produced by :meth:`ViewHost.capture_layout`."""


class ViewHost(Protocol):
    """Window capabilities needed to enter and leave focus mode."""

    def capture_layout(self) -> LayoutHandle:
        ...

    def restore_layout(self, handle: LayoutHandle) -> None:
        ...

    def collapse_to_single_pane(self) -> None:
        ...

    def current_pane_count(self) -> int:
        ...

    def set_zoom_level(self, level: int) -> None:
        ...

    def enable_focused_presentation(self) -> None:
        ...

    def disable_focused_presentation(self) -> None:
        ...


@dataclass(slots=True)
class SessionViewState:
    """Focus state of one editing session.

    ``saved_layout`` is present exactly while ``active`` is true.
    """

    active: bool = False
    saved_layout: LayoutHandle | None = None
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)


@dataclass(slots=True, frozen=True)
class FocusTransition:
    """What a call to :meth:`FocusToggle.toggle` changed."""

    active: bool
    layout_restored: bool = False
    restore_skipped: bool = False


class FocusToggle:
    """Flip a :class:`SessionViewState` between normal and focused presentation."""

    def __init__(
        self,
        host: ViewHost,
        *,
        focus_zoom: int = DEFAULT_FOCUS_ZOOM,
        default_zoom: int = DEFAULT_ZOOM,
    ) -> None:
        self._host = host
        self._focus_zoom = focus_zoom
        self._default_zoom = default_zoom

    def toggle(self, state: SessionViewState) -> FocusTransition:
        with state.lock:
            if state.active:
                return self._leave(state)
            return self._enter(state)

    def _enter(self, state: SessionViewState) -> FocusTransition:
        host = self._host
        handle = host.capture_layout()
        host.collapse_to_single_pane()
        host.set_zoom_level(self._focus_zoom)
        host.enable_focused_presentation()
        state.active = True
        state.saved_layout = handle
        LOGGER.debug("Focus mode enabled (zoom=%s)", self._focus_zoom)
        return FocusTransition(active=True)

    def _leave(self, state: SessionViewState) -> FocusTransition:
        host = self._host
        restored = False
        skipped = False
        if state.saved_layout is not None and host.current_pane_count() == 1:
            host.restore_layout(state.saved_layout)
            restored = True
        else:
            # The user split the view while focused; keep their arrangement.
            skipped = True
            LOGGER.debug("Focus mode layout restore skipped; panes were rearranged")
        host.disable_focused_presentation()
        host.set_zoom_level(self._default_zoom)
        state.active = False
        state.saved_layout = None
        LOGGER.debug("Focus mode disabled (layout_restored=%s)", restored)
        return FocusTransition(active=False, layout_restored=restored, restore_skipped=skipped)
