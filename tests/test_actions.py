"""Tests for the declarative window actions."""

from __future__ import annotations

import pytest

from draftdesk.ui.actions import ACTION_DEFINITIONS, MENUS, build_actions


def _callbacks(calls: list[str]) -> dict:
    return {definition.name: (lambda name=definition.name: calls.append(name)) for definition in ACTION_DEFINITIONS}


def test_build_actions_binds_every_definition() -> None:
    calls: list[str] = []

    actions = build_actions(_callbacks(calls))
    actions["notes_drawer"].trigger()

    assert set(actions) == {definition.name for definition in ACTION_DEFINITIONS}
    assert calls == ["notes_drawer"]


def test_shortcuts() -> None:
    actions = build_actions(_callbacks([]))

    assert actions["view_focus"].shortcut == "F11"
    assert actions["notes_drawer"].shortcut == "Ctrl+Alt+N"
    assert actions["jump_back"].shortcut == "Ctrl+Alt+Left"


def test_missing_callback_is_an_error() -> None:
    callbacks = _callbacks([])
    del callbacks["check_dependencies"]

    with pytest.raises(KeyError):
        build_actions(callbacks)


def test_menus_only_list_known_actions() -> None:
    names = {definition.name for definition in ACTION_DEFINITIONS}

    for menu in MENUS:
        assert set(menu.actions) <= names
