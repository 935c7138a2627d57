"""Tests for the notes drawer manager."""

from __future__ import annotations

import logging

import pytest

from draftdesk.editor.document_model import BlockRef, DocumentPosition, OutlineDocument
from draftdesk.editor.drawers import DEFAULT_RETURN_HINT, DrawerManager
from draftdesk.errors import ErrorCode, NoEnclosingHeading


def test_creates_drawer_directly_below_heading() -> None:
    document = OutlineDocument("* Heading\nBody text\n")

    handle = DrawerManager(document).ensure_drawer(DocumentPosition(1))

    assert handle.created is True
    assert handle.block == BlockRef(name="NOTES", start=1, end=3)
    assert handle.cursor == DocumentPosition(2)
    assert handle.heading.title == "Heading"
    assert document.text == "* Heading\n:NOTES:\n\n:END:\nBody text\n"


def test_second_call_reuses_the_drawer_without_edits() -> None:
    document = OutlineDocument("* Heading\nBody text\n")
    manager = DrawerManager(document)
    first = manager.ensure_drawer(DocumentPosition(1))
    text_after_first = document.text
    version_after_first = document.version_id

    second = manager.ensure_drawer(first.cursor)
    third = manager.ensure_drawer(DocumentPosition(4))

    assert second.created is False and third.created is False
    assert second.cursor == first.cursor == third.cursor
    assert document.text == text_after_first
    assert document.version_id == version_after_first
    assert document.lines().count(":NOTES:") == 1


def test_existing_drawer_gets_an_empty_line_before_its_end_marker() -> None:
    document = OutlineDocument("* H\n:NOTES:\nold note\n:END:\nbody")
    manager = DrawerManager(document)

    handle = manager.ensure_drawer(DocumentPosition(4))

    assert handle.created is False
    assert handle.cursor == DocumentPosition(3)
    assert handle.block == BlockRef(name="NOTES", start=1, end=4)
    assert document.text == "* H\n:NOTES:\nold note\n\n:END:\nbody"

    manager.ensure_drawer(DocumentPosition(0))
    assert document.text == "* H\n:NOTES:\nold note\n\n:END:\nbody"


def test_folded_drawer_is_revealed() -> None:
    document = OutlineDocument("* H\n:NOTES:\n\n:END:\n")
    document.fold_all_drawers()

    handle = DrawerManager(document).ensure_drawer(DocumentPosition(0))

    assert handle.revealed is True
    assert document.is_block_visible(handle.block) is True
    assert document.folded_blocks() == []


def test_drawer_goes_after_planning_line_and_properties(sample_outline: str) -> None:
    document = OutlineDocument(sample_outline)

    handle = DrawerManager(document).ensure_drawer(DocumentPosition(7))

    lines = document.lines()
    assert handle.block.start == 7
    assert lines[3].startswith("SCHEDULED:")
    assert lines[4:7] == (":PROPERTIES:", ":ID: ch1", ":END:")
    assert lines[7:10] == (":NOTES:", "", ":END:")
    assert lines[10] == "It was a dark night."


def test_nested_heading_owns_its_own_drawer(sample_outline: str) -> None:
    document = OutlineDocument(sample_outline)

    handle = DrawerManager(document).ensure_drawer(DocumentPosition(9))

    assert handle.heading.title == "Scene A"
    assert handle.block.start == 9
    assert document.lines()[8:12] == ("** Scene A", ":NOTES:", "", ":END:")


def test_drawer_further_down_the_section_is_reused() -> None:
    document = OutlineDocument("* H\nintro\n:NOTES:\nidea\n:END:\n")

    handle = DrawerManager(document).ensure_drawer(DocumentPosition(0))

    assert handle.created is False
    assert handle.block.start == 2
    assert document.lines().count(":NOTES:") == 1


def test_heading_on_last_line_without_newline() -> None:
    document = OutlineDocument("* Only")

    handle = DrawerManager(document).ensure_drawer(DocumentPosition(0))

    assert document.text == "* Only\n:NOTES:\n\n:END:"
    assert handle.cursor == DocumentPosition(2)


def test_no_enclosing_heading_leaves_document_untouched() -> None:
    original = "Preface\n* H\n"
    document = OutlineDocument(original)
    version = document.version_id

    with pytest.raises(NoEnclosingHeading) as excinfo:
        DrawerManager(document).ensure_drawer(DocumentPosition(0))

    error = excinfo.value
    assert error.error_code == ErrorCode.NO_ENCLOSING_HEADING
    assert error.to_dict()["message"] == "No heading found above the cursor"
    assert error.details == {"line": 0}
    assert document.text == original
    assert document.version_id == version
    assert document.dirty is False


def test_unterminated_drawer_is_closed_at_end_of_section(caplog: pytest.LogCaptureFixture) -> None:
    document = OutlineDocument("* H\n:NOTES:\nidea\n\n* I\n")

    with caplog.at_level(logging.WARNING, logger="draftdesk.editor.drawers"):
        handle = DrawerManager(document).ensure_drawer(DocumentPosition(2))

    assert handle.created is False
    assert handle.cursor == DocumentPosition(3)
    assert document.text == "* H\n:NOTES:\nidea\n\n:END:\n\n* I\n"
    assert "no end marker" in caplog.text


def test_custom_drawer_name_and_hint() -> None:
    document = OutlineDocument("* Plot\n")
    manager = DrawerManager(document, name="RESEARCH", return_hint="Press Esc.")

    created = manager.ensure_drawer(DocumentPosition(0))
    opened = manager.ensure_drawer(DocumentPosition(0))

    assert document.lines()[1] == ":RESEARCH:"
    assert created.hint == "Created RESEARCH under 'Plot'. Press Esc."
    assert opened.hint == "Opened RESEARCH under 'Plot'. Press Esc."


def test_custom_name_with_hyphen_is_found_again() -> None:
    document = OutlineDocument("* Plot\nBody\n")
    manager = DrawerManager(document, name="RESEARCH-2")

    handles = [manager.ensure_drawer(DocumentPosition(0)) for _ in range(3)]

    assert [handle.created for handle in handles] == [True, False, False]
    assert document.lines().count(":RESEARCH-2:") == 1
    assert document.text == "* Plot\n:RESEARCH-2:\n\n:END:\nBody\n"


@pytest.mark.parametrize("name", ["MY NOTES", "Notes.v2", "END", "properties", ""])
def test_names_that_cannot_round_trip_are_rejected(name: str) -> None:
    document = OutlineDocument("* Plot\n")

    with pytest.raises(ValueError):
        DrawerManager(document, name=name)

    assert document.text == "* Plot\n"


def test_default_hint_explains_how_to_return(caplog: pytest.LogCaptureFixture) -> None:
    document = OutlineDocument("* Plot\n")

    with caplog.at_level(logging.DEBUG, logger="draftdesk"):
        handle = DrawerManager(document).ensure_drawer(DocumentPosition(0))

    assert handle.hint.endswith(DEFAULT_RETURN_HINT)
    assert DEFAULT_RETURN_HINT not in caplog.text


def test_edit_lock_is_held_during_the_edit() -> None:
    class RecordingDocument(OutlineDocument):
        def __init__(self, text: str) -> None:
            super().__init__(text)
            self.locked = 0

        def edit_lock(self):  # type: ignore[override]
            self.locked += 1
            return super().edit_lock()

    document = RecordingDocument("* H\n")

    DrawerManager(document).ensure_drawer(DocumentPosition(0))

    assert document.locked == 1
