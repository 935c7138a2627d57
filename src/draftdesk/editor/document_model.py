"""Outline document model: a line buffer with org-style headings and drawers.

Headings are lines starting with one or more ``*`` followed by whitespace.
Drawers are blocks delimited by a ``:NAME:`` start marker and an ``:END:``
end marker. The buffer is stored as ``text.split("\\n")`` so that joining the
lines back reproduces the original text byte for byte.
"""

from __future__ import annotations

import re
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from difflib import SequenceMatcher
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, Optional, Sequence

from ..errors import PositionOutOfRange
from ..utils.file_io import read_text

__all__ = [
    "DocumentMetadata",
    "DocumentPosition",
    "HeadingRef",
    "BlockRef",
    "TextSpan",
    "OutlineDocument",
    "PROPERTIES_DRAWER",
    "validate_drawer_name",
]

PROPERTIES_DRAWER = "PROPERTIES"

_HEADING_PATTERN = re.compile(r"^(?P<stars>\*+)[ \t]+(?P<title>.*?)[ \t]*$")
_DRAWER_NAME_PATTERN = re.compile(r"[\w-]+")
_DRAWER_START_PATTERN = re.compile(r"^[ \t]*:(?P<name>[\w-]+):[ \t]*$")
_RESERVED_DRAWER_NAMES = frozenset({"END", PROPERTIES_DRAWER})
_DRAWER_END_PATTERN = re.compile(r"^[ \t]*:END:[ \t]*$", re.IGNORECASE)
_PLANNING_PATTERN = re.compile(r"^[ \t]*(?:SCHEDULED|DEADLINE|CLOSED):")
_PROPERTY_PATTERN = re.compile(r"^[ \t]*:(?P<name>[^:\s]+):(?:[ \t]+(?P<value>.*?))?[ \t]*$")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class DocumentMetadata:
    """Metadata describing where the document came from."""

    path: Optional[Path] = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)


@dataclass(slots=True, frozen=True)
class DocumentPosition:
    """A 0-based ``(line, column)`` cursor into an outline document."""

    line: int
    column: int = 0


@dataclass(slots=True, frozen=True)
class HeadingRef:
    """A heading line, its depth (number of stars) and title."""

    line: int
    level: int
    title: str


@dataclass(slots=True, frozen=True)
class BlockRef:
    """Line indices of a drawer's start and end markers."""

    name: str
    start: int
    end: int

    def body_lines(self) -> range:
        return range(self.start + 1, self.end)


@dataclass(slots=True, frozen=True)
class TextSpan:
    """Half-open line range ``[start, end)`` with its joined text."""

    start: int
    end: int
    text: str


def drawer_name(line: str | None) -> str | None:
    """Return the drawer name if ``line`` is a drawer start marker."""

    if line is None:
        return None
    match = _DRAWER_START_PATTERN.match(line)
    if match is None:
        return None
    name = match.group("name")
    if name.upper() == "END":
        return None
    return name


def validate_drawer_name(name: str) -> str:
    """Return ``name`` if it can be written as a drawer start marker and found again.

    Raises:
        ValueError: ``name`` is empty, contains characters other than word
            characters and hyphens, or is ``END``/``PROPERTIES``.
    """

    if not _DRAWER_NAME_PATTERN.fullmatch(name or ""):
        raise ValueError(f"Drawer name {name!r} may only contain letters, digits, '_' and '-'")
    if name.upper() in _RESERVED_DRAWER_NAMES:
        raise ValueError(f"Drawer name {name!r} is reserved")
    return name


def is_drawer_end(line: str | None) -> bool:
    return line is not None and _DRAWER_END_PATTERN.match(line) is not None


def is_planning_line(line: str | None) -> bool:
    return line is not None and _PLANNING_PATTERN.match(line) is not None


def parse_heading(line: str | None) -> tuple[int, str] | None:
    """Return ``(level, title)`` for a heading line, else ``None``."""

    if line is None:
        return None
    match = _HEADING_PATTERN.match(line)
    if match is None:
        return None
    return len(match.group("stars")), match.group("title")


class OutlineDocument:
    """Mutable outline document shared by the editor and the drawer manager."""

    def __init__(self, text: str = "", *, metadata: DocumentMetadata | None = None) -> None:
        self._lines: list[str] = text.split("\n")
        self.metadata = metadata or DocumentMetadata()
        self.version_id = 1
        self.dirty = False
        self._folded: set[int] = set()
        self._lock = threading.RLock()

    @classmethod
    def from_file(cls, path: Path | str) -> "OutlineDocument":
        target = Path(path)
        return cls(read_text(target), metadata=DocumentMetadata(path=target))

    # ------------------------------------------------------------------
    # Buffer access
    # ------------------------------------------------------------------
    @property
    def text(self) -> str:
        return "\n".join(self._lines)

    @property
    def line_count(self) -> int:
        return len(self._lines)

    def line_at(self, index: int) -> str | None:
        """Return the line at ``index`` or ``None`` when out of range."""

        if 0 <= index < len(self._lines):
            return self._lines[index]
        return None

    def lines(self) -> tuple[str, ...]:
        return tuple(self._lines)

    def replace_text(self, text: str) -> None:
        """Replace the whole buffer, e.g. after the user typed in the editor."""

        with self._lock:
            if text == self.text:
                return
            previous = self._lines
            self._lines = text.split("\n")
            if self._folded:
                self._folded = self._rebase_folds(previous)
            self._touch()

    @contextmanager
    def edit_lock(self) -> Iterator["OutlineDocument"]:
        """Hold the document lock across a read-decide-write sequence."""

        with self._lock:
            yield self

    def insert_lines(self, index: int, lines: Sequence[str]) -> None:
        """Insert ``lines`` before line ``index`` (``index == line_count`` appends)."""

        if not 0 <= index <= len(self._lines):
            raise PositionOutOfRange(details={"line": index, "line_count": len(self._lines)})
        if not lines:
            return
        with self._lock:
            self._lines[index:index] = list(lines)
            count = len(lines)
            self._folded = {start + count if start >= index else start for start in self._folded}
            self._touch()

    def replace_line(self, index: int, line: str) -> None:
        if self.line_at(index) is None:
            raise PositionOutOfRange(details={"line": index, "line_count": len(self._lines)})
        with self._lock:
            if self._lines[index] != line:
                self._lines[index] = line
                self._touch()

    # ------------------------------------------------------------------
    # Headings
    # ------------------------------------------------------------------
    def heading_at(self, index: int) -> HeadingRef | None:
        parsed = parse_heading(self.line_at(index))
        if parsed is None:
            return None
        level, title = parsed
        return HeadingRef(line=index, level=level, title=title)

    def headings(self) -> Iterator[HeadingRef]:
        for index in range(len(self._lines)):
            heading = self.heading_at(index)
            if heading is not None:
                yield heading

    def find_enclosing_heading(self, pos: DocumentPosition) -> HeadingRef | None:
        """Return the nearest heading at or above ``pos``."""

        if not 0 <= pos.line < len(self._lines):
            raise PositionOutOfRange(details={"line": pos.line, "line_count": len(self._lines)})
        for index in range(pos.line, -1, -1):
            heading = self.heading_at(index)
            if heading is not None:
                return heading
        return None

    def section_end(self, heading: HeadingRef) -> int:
        """Index of the next heading of any level, or ``line_count``."""

        for index in range(heading.line + 1, len(self._lines)):
            if parse_heading(self._lines[index]) is not None:
                return index
        return len(self._lines)

    def subtree_end(self, heading: HeadingRef) -> int:
        """Index of the next heading at the same or a shallower level."""

        for index in range(heading.line + 1, len(self._lines)):
            parsed = parse_heading(self._lines[index])
            if parsed is not None and parsed[0] <= heading.level:
                return index
        return len(self._lines)

    def metadata_end(self, heading: HeadingRef) -> int:
        """First line after the heading, its planning line and property drawer."""

        index = heading.line + 1
        if is_planning_line(self.line_at(index)):
            index += 1
        if (drawer_name(self.line_at(index)) or "").upper() == PROPERTIES_DRAWER:
            block = self.find_block_boundaries(DocumentPosition(index), PROPERTIES_DRAWER)
            if block is not None:
                index = block.end + 1
        return index

    def read_region_after_heading(self, heading: HeadingRef) -> TextSpan:
        """Return the section body from the end of the metadata region to the next heading."""

        start = self.metadata_end(heading)
        end = max(start, self.section_end(heading))
        return TextSpan(start=start, end=end, text="\n".join(self._lines[start:end]))

    # ------------------------------------------------------------------
    # Drawers
    # ------------------------------------------------------------------
    def block_name_at(self, index: int) -> str | None:
        return drawer_name(self.line_at(index))

    def find_block_boundaries(self, pos: DocumentPosition, name: str) -> BlockRef | None:
        """Return the drawer named ``name`` whose start marker is at ``pos.line``.

        The end marker must appear before the next heading; an unterminated
        drawer yields ``None``.
        """

        found = drawer_name(self.line_at(pos.line))
        if found is None or found.upper() != name.upper():
            return None
        for index in range(pos.line + 1, len(self._lines)):
            line = self._lines[index]
            if is_drawer_end(line):
                return BlockRef(name=found, start=pos.line, end=index)
            if parse_heading(line) is not None:
                break
        return None

    def insert_block(self, pos: DocumentPosition, name: str, body: str = "") -> BlockRef:
        """Insert a complete drawer before line ``pos.line`` in one edit."""

        body_lines = body.split("\n") if body else [""]
        block_lines = [f":{name}:", *body_lines, ":END:"]
        self.insert_lines(pos.line, block_lines)
        return BlockRef(name=name, start=pos.line, end=pos.line + len(block_lines) - 1)

    def set_block_visibility(self, block: BlockRef, visible: bool) -> None:
        with self._lock:
            if visible:
                self._folded.discard(block.start)
            else:
                self._folded.add(block.start)

    def is_block_visible(self, block: BlockRef) -> bool:
        return block.start not in self._folded

    def fold_all_drawers(self) -> int:
        """Collapse every terminated drawer, the usual state after opening a file."""

        count = 0
        with self._lock:
            for index, line in enumerate(self._lines):
                name = drawer_name(line)
                if name is None:
                    continue
                block = self.find_block_boundaries(DocumentPosition(index), name)
                if block is not None:
                    self._folded.add(block.start)
                    count += 1
        return count

    def folded_blocks(self) -> list[BlockRef]:
        blocks = []
        for start in sorted(self._folded):
            name = drawer_name(self.line_at(start))
            block = self.find_block_boundaries(DocumentPosition(start), name) if name else None
            if block is not None:
                blocks.append(block)
        return blocks

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------
    def property_drawer(self, heading: HeadingRef) -> BlockRef | None:
        index = heading.line + 1
        if is_planning_line(self.line_at(index)):
            index += 1
        return self.find_block_boundaries(DocumentPosition(index), PROPERTIES_DRAWER)

    def get_property(self, heading: HeadingRef, name: str) -> str | None:
        block = self.property_drawer(heading)
        if block is None:
            return None
        for index in block.body_lines():
            match = _PROPERTY_PATTERN.match(self._lines[index])
            if match and match.group("name").upper() == name.upper():
                return match.group("value") or ""
        return None

    def set_property(self, heading: HeadingRef, name: str, value: str) -> None:
        """Set ``name`` in the heading's property drawer, creating the drawer if needed."""

        entry = f":{name}: {value}"
        with self._lock:
            block = self.property_drawer(heading)
            if block is None:
                index = heading.line + 1
                if is_planning_line(self.line_at(index)):
                    index += 1
                self.insert_lines(index, [f":{PROPERTIES_DRAWER}:", entry, ":END:"])
                return
            for index in block.body_lines():
                match = _PROPERTY_PATTERN.match(self._lines[index])
                if match and match.group("name").upper() == name.upper():
                    self.replace_line(index, entry)
                    return
            self.insert_lines(block.end, [entry])

    def _rebase_folds(self, previous: list[str]) -> set[int]:
        """Carry folds to the lines their markers moved to; drop folds whose marker was edited."""

        moved: dict[int, int] = {}
        matcher = SequenceMatcher(None, previous, self._lines, autojunk=False)
        for tag, old_start, old_end, new_start, _new_end in matcher.get_opcodes():
            if tag == "equal":
                for offset in range(old_end - old_start):
                    moved[old_start + offset] = new_start + offset
        return {
            moved[start]
            for start in self._folded
            if start in moved and drawer_name(self._lines[moved[start]]) is not None
        }

    def _touch(self) -> None:
        self.version_id += 1
        self.dirty = True
        self.metadata.updated_at = _utcnow()
