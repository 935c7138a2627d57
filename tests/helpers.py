"""Shared test helpers and stub classes."""

from __future__ import annotations

from typing import Any


class FakeViewHost:
    """View host stub that records calls and keeps a list of pane names as its layout."""

    def __init__(self, panes: int = 3) -> None:
        self.panes = [f"pane-{index}" for index in range(panes)]
        self.zoom = 0
        self.presentation = False
        self.calls: list[str] = []

    def capture_layout(self) -> Any:
        self.calls.append("capture")
        return list(self.panes)

    def restore_layout(self, handle: Any) -> None:
        self.calls.append("restore")
        self.panes = list(handle)

    def collapse_to_single_pane(self) -> None:
        self.calls.append("collapse")
        self.panes = self.panes[:1]

    def current_pane_count(self) -> int:
        return len(self.panes)

    def set_zoom_level(self, level: int) -> None:
        self.calls.append(f"zoom:{level}")
        self.zoom = level

    def enable_focused_presentation(self) -> None:
        self.calls.append("present:on")
        self.presentation = True

    def disable_focused_presentation(self) -> None:
        self.calls.append("present:off")
        self.presentation = False

    def split(self) -> None:
        self.panes.append("split")
