"""Tests for :mod:`draftdesk.editor.document_model`."""

from __future__ import annotations

from pathlib import Path

import pytest

from draftdesk.editor.document_model import BlockRef, DocumentPosition, HeadingRef, OutlineDocument
from draftdesk.errors import ErrorCode, PositionOutOfRange


def test_text_round_trips_byte_for_byte(sample_outline: str) -> None:
    document = OutlineDocument(sample_outline)

    assert document.text == sample_outline
    assert document.line_count == 13
    assert document.line_at(12) == ""
    assert document.line_at(13) is None


def test_headings_are_parsed_with_level_and_title(sample_outline: str) -> None:
    document = OutlineDocument(sample_outline)

    assert list(document.headings()) == [
        HeadingRef(line=2, level=1, title="Chapter One"),
        HeadingRef(line=8, level=2, title="Scene A"),
        HeadingRef(line=10, level=1, title="Chapter Two"),
    ]


def test_bold_text_is_not_a_heading() -> None:
    document = OutlineDocument("*bold* text\n*\n")

    assert list(document.headings()) == []


def test_find_enclosing_heading_picks_nearest_heading_above(sample_outline: str) -> None:
    document = OutlineDocument(sample_outline)

    assert document.find_enclosing_heading(DocumentPosition(9)) == HeadingRef(8, 2, "Scene A")
    assert document.find_enclosing_heading(DocumentPosition(10)).title == "Chapter Two"
    assert document.find_enclosing_heading(DocumentPosition(1)) is None


def test_find_enclosing_heading_rejects_positions_outside_the_buffer(sample_outline: str) -> None:
    document = OutlineDocument(sample_outline)

    with pytest.raises(PositionOutOfRange) as excinfo:
        document.find_enclosing_heading(DocumentPosition(50))

    assert excinfo.value.error_code == ErrorCode.POSITION_OUT_OF_RANGE
    assert excinfo.value.details == {"line": 50, "line_count": 13}


def test_metadata_region_covers_planning_and_properties(sample_outline: str) -> None:
    document = OutlineDocument(sample_outline)
    chapter_one = document.heading_at(2)
    scene = document.heading_at(8)

    assert document.metadata_end(chapter_one) == 7
    assert document.metadata_end(scene) == 9


def test_section_and_subtree_ends(sample_outline: str) -> None:
    document = OutlineDocument(sample_outline)
    chapter_one = document.heading_at(2)
    chapter_two = document.heading_at(10)

    assert document.section_end(chapter_one) == 8
    assert document.subtree_end(chapter_one) == 10
    assert document.section_end(chapter_two) == 13


def test_read_region_after_heading(sample_outline: str) -> None:
    document = OutlineDocument(sample_outline)

    region = document.read_region_after_heading(document.heading_at(2))

    assert (region.start, region.end) == (7, 8)
    assert region.text == "It was a dark night."


def test_find_block_boundaries_is_case_insensitive(sample_outline: str) -> None:
    document = OutlineDocument(sample_outline)

    block = document.find_block_boundaries(DocumentPosition(4), "properties")

    assert block == BlockRef(name="PROPERTIES", start=4, end=6)
    assert list(block.body_lines()) == [5]


def test_unterminated_drawer_has_no_boundaries() -> None:
    document = OutlineDocument("* H\n:NOTES:\ntext\n* I\n:END:")

    assert document.find_block_boundaries(DocumentPosition(1), "NOTES") is None


def test_insert_block_inserts_complete_drawer_in_one_edit() -> None:
    document = OutlineDocument("* H\nbody")
    version = document.version_id

    block = document.insert_block(DocumentPosition(1), "NOTES")

    assert block == BlockRef(name="NOTES", start=1, end=3)
    assert document.text == "* H\n:NOTES:\n\n:END:\nbody"
    assert document.version_id == version + 1
    assert document.dirty is True


def test_insert_lines_rejects_index_past_end() -> None:
    document = OutlineDocument("* H")

    with pytest.raises(PositionOutOfRange):
        document.insert_lines(5, ["x"])


def test_folded_drawers_shift_with_insertions(sample_outline: str) -> None:
    document = OutlineDocument(sample_outline)

    assert document.fold_all_drawers() == 1
    properties = document.folded_blocks()[0]
    assert document.is_block_visible(properties) is False

    document.insert_lines(0, ["new first line"])

    assert [block.start for block in document.folded_blocks()] == [5]
    document.set_block_visibility(document.folded_blocks()[0], True)
    assert document.folded_blocks() == []


def test_replace_text_forgets_folds_that_no_longer_start_a_drawer(sample_outline: str) -> None:
    document = OutlineDocument(sample_outline)
    document.fold_all_drawers()

    document.replace_text("* Chapter One\nplain text")

    assert document.folded_blocks() == []


def test_replace_text_moves_folds_with_their_drawer() -> None:
    text = "* A\n:NOTES:\nx\n:END:\n* B\n:LOGBOOK:\ny\n:END:"
    document = OutlineDocument(text)
    document.set_block_visibility(BlockRef(name="NOTES", start=1, end=3), False)

    document.replace_text("intro line\n" + text)

    assert [block.start for block in document.folded_blocks()] == [2]
    assert document.is_block_visible(BlockRef(name="LOGBOOK", start=6, end=8)) is True

    document.replace_text(document.text.replace(":NOTES:", "NOTES"))

    assert document.folded_blocks() == []


def test_set_property_creates_drawer_after_heading() -> None:
    document = OutlineDocument("* H\nBody\n")
    heading = document.heading_at(0)

    document.set_property(heading, "WORDCOUNT", "1")
    assert document.text == "* H\n:PROPERTIES:\n:WORDCOUNT: 1\n:END:\nBody\n"

    document.set_property(heading, "wordcount", "2")
    assert document.get_property(heading, "WORDCOUNT") == "2"
    assert document.text.count(":PROPERTIES:") == 1


def test_set_property_appends_to_existing_drawer(sample_outline: str) -> None:
    document = OutlineDocument(sample_outline)
    heading = document.heading_at(2)

    document.set_property(heading, "WORDCOUNT", "9")

    assert document.get_property(heading, "ID") == "ch1"
    assert document.get_property(heading, "WORDCOUNT") == "9"
    assert document.lines()[4:8] == (":PROPERTIES:", ":ID: ch1", ":WORDCOUNT: 9", ":END:")


def test_from_file_normalizes_newlines(tmp_path: Path) -> None:
    path = tmp_path / "draft.org"
    path.write_bytes(b"\xef\xbb\xbf* A\r\nbody\r\n")

    document = OutlineDocument.from_file(path)

    assert document.text == "* A\nbody\n"
    assert document.metadata.path == path
    assert document.dirty is False
