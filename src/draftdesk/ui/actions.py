"""Declarative window actions and menus."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping


@dataclass(slots=True)
class WindowAction:
    """A user command exposed through a menu entry and shortcut."""

    name: str
    text: str
    shortcut: str | None = None
    status_tip: str | None = None
    callback: Callable[[], Any] | None = None

    def trigger(self) -> None:
        """Invoke the registered callback, if available."""

        if self.callback is not None:
            self.callback()


@dataclass(slots=True, frozen=True)
class ActionDefinition:
    """Static metadata for a window action."""

    name: str
    text: str
    shortcut: str | None
    status_tip: str | None


@dataclass(slots=True, frozen=True)
class MenuSpec:
    """Menu title and the action names it lists, in order."""

    name: str
    title: str
    actions: tuple[str, ...]


ACTION_DEFINITIONS: tuple[ActionDefinition, ...] = (
    ActionDefinition("file_open", "Open…", "Ctrl+O", "Open an outline document"),
    ActionDefinition("file_save", "Save", "Ctrl+S", "Save the current document"),
    ActionDefinition("view_focus", "Toggle Focus", "F11", "Switch between the normal layout and focus mode"),
    ActionDefinition("notes_drawer", "Notes Drawer", "Ctrl+Alt+N", "Open or create the NOTES drawer of this section"),
    ActionDefinition("jump_back", "Jump Back", "Ctrl+Alt+Left", "Return to where you were before the last jump"),
    ActionDefinition("word_counts", "Annotate Word Counts", None, "Store word counts in each heading's properties"),
    ActionDefinition("check_dependencies", "Check Dependencies", None, "Report missing external tools"),
)

MENUS: tuple[MenuSpec, ...] = (
    MenuSpec(name="file", title="&File", actions=("file_open", "file_save")),
    MenuSpec(name="view", title="&View", actions=("view_focus",)),
    MenuSpec(name="outline", title="&Outline", actions=("notes_drawer", "jump_back", "word_counts")),
    MenuSpec(name="tools", title="&Tools", actions=("check_dependencies",)),
)


def build_actions(callbacks: Mapping[str, Callable[[], Any]]) -> Dict[str, WindowAction]:
    """Bind every action definition to its callback.

    Raises:
        KeyError: A definition has no callback.
    """

    actions: Dict[str, WindowAction] = {}
    for definition in ACTION_DEFINITIONS:
        callback = callbacks.get(definition.name)
        if callback is None:
            raise KeyError(f"Missing callback for action '{definition.name}'")
        actions[definition.name] = WindowAction(
            name=definition.name,
            text=definition.text,
            shortcut=definition.shortcut,
            status_tip=definition.status_tip,
            callback=callback,
        )
    return actions


__all__ = [
    "WindowAction",
    "ActionDefinition",
    "MenuSpec",
    "ACTION_DEFINITIONS",
    "MENUS",
    "build_actions",
]
