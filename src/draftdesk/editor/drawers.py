"""Notes drawer management.

``DrawerManager.ensure_drawer`` opens the ``NOTES`` drawer of the heading
enclosing a position, creating it right below the heading's metadata region
when it does not exist yet. Repeated calls never create a second drawer.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import ContextManager, Protocol, Sequence

from ..errors import NoEnclosingHeading
from .document_model import BlockRef, DocumentPosition, HeadingRef, TextSpan, validate_drawer_name

__all__ = [
    "DEFAULT_DRAWER_NAME",
    "DEFAULT_RETURN_HINT",
    "DrawerHandle",
    "DrawerManager",
    "OutlineDocumentModel",
]

LOGGER = logging.getLogger(__name__)

DEFAULT_DRAWER_NAME = "NOTES"
DEFAULT_RETURN_HINT = "Use Jump Back (Ctrl+Alt+Left) to return to where you were."


class OutlineDocumentModel(Protocol):
    """Document capabilities the drawer manager relies on."""

    def edit_lock(self) -> ContextManager[object]:
        ...

    def line_at(self, index: int) -> str | None:
        ...

    def find_enclosing_heading(self, pos: DocumentPosition) -> HeadingRef | None:
        ...

    def metadata_end(self, heading: HeadingRef) -> int:
        ...

    def read_region_after_heading(self, heading: HeadingRef) -> TextSpan:
        ...

    def block_name_at(self, index: int) -> str | None:
        ...

    def find_block_boundaries(self, pos: DocumentPosition, name: str) -> BlockRef | None:
        ...

    def insert_block(self, pos: DocumentPosition, name: str, body: str = "") -> BlockRef:
        ...

    def insert_lines(self, index: int, lines: Sequence[str]) -> None:
        ...

    def set_block_visibility(self, block: BlockRef, visible: bool) -> None:
        ...

    def is_block_visible(self, block: BlockRef) -> bool:
        ...


@dataclass(slots=True, frozen=True)
class DrawerHandle:
    """Outcome of :meth:`DrawerManager.ensure_drawer`.

    ``cursor`` is the empty line the user should type into; ``hint`` is a
    transient message for the status bar and is never written to the log.
    """

    heading: HeadingRef
    block: BlockRef
    cursor: DocumentPosition
    created: bool
    revealed: bool = False
    hint: str = ""


class DrawerManager:
    """Locate or create the notes drawer under the heading enclosing a position.

    ``name`` is checked with :func:`validate_drawer_name`; a name the document
    model cannot find again would get a new drawer on every call.
    """

    def __init__(
        self,
        document: OutlineDocumentModel,
        *,
        name: str = DEFAULT_DRAWER_NAME,
        return_hint: str = DEFAULT_RETURN_HINT,
    ) -> None:
        self._document = document
        self._name = validate_drawer_name(name)
        self._return_hint = return_hint

    @property
    def name(self) -> str:
        return self._name

    def ensure_drawer(self, pos: DocumentPosition) -> DrawerHandle:
        """Open (or create) the drawer and return where the cursor belongs.

        Raises:
            NoEnclosingHeading: ``pos`` has no heading at or above it. The
                document is left untouched.
        """

        document = self._document
        with document.edit_lock():
            heading = document.find_enclosing_heading(pos)
            if heading is None:
                raise NoEnclosingHeading(line=pos.line)

            anchor = DocumentPosition(document.metadata_end(heading))
            if self._starts_drawer(anchor):
                existing = self._terminated_block(heading, anchor)
            else:
                existing = self._find_in_section(heading)
            if existing is not None:
                block = existing
                revealed = not document.is_block_visible(block)
                if revealed:
                    document.set_block_visibility(block, True)
                block, cursor = self._open_tail(block)
                created = False
            else:
                block = document.insert_block(anchor, self._name)
                cursor = DocumentPosition(block.start + 1)
                revealed = False
                created = True
                LOGGER.debug(
                    "Created %s drawer under heading %r (line %d)",
                    self._name,
                    heading.title,
                    heading.line,
                )

        return DrawerHandle(
            heading=heading,
            block=block,
            cursor=cursor,
            created=created,
            revealed=revealed,
            hint=self._format_hint(heading, created),
        )

    def _starts_drawer(self, anchor: DocumentPosition) -> bool:
        found = self._document.block_name_at(anchor.line)
        return found is not None and found.upper() == self._name.upper()

    def _find_in_section(self, heading: HeadingRef) -> BlockRef | None:
        """Return a drawer with our name placed further down the section by hand."""

        region = self._document.read_region_after_heading(heading)
        for index in range(region.start, region.end):
            found = self._document.block_name_at(index)
            if found is not None and found.upper() == self._name.upper():
                block = self._document.find_block_boundaries(DocumentPosition(index), self._name)
                if block is not None:
                    return block
        return None

    def _terminated_block(self, heading: HeadingRef, anchor: DocumentPosition) -> BlockRef:
        """Return the existing drawer, closing it at the end of the section if unterminated."""

        document = self._document
        block = document.find_block_boundaries(anchor, self._name)
        if block is not None:
            return block

        region = document.read_region_after_heading(heading)
        close_at = region.end
        while close_at > anchor.line + 1 and (document.line_at(close_at - 1) or "").strip() == "":
            close_at -= 1
        LOGGER.warning(
            "%s drawer under heading %r had no end marker; closing it at line %d",
            self._name,
            heading.title,
            close_at,
        )
        document.insert_lines(close_at, [":END:"])
        block = document.find_block_boundaries(anchor, self._name)
        if block is None:  # pragma: no cover - insert_lines just placed the marker
            raise RuntimeError(f"Unable to close the {self._name} drawer at line {anchor.line}")
        return block

    def _open_tail(self, block: BlockRef) -> tuple[BlockRef, DocumentPosition]:
        """Place the cursor on an empty line directly above the end marker."""

        last_body = block.end - 1
        if last_body > block.start and (self._document.line_at(last_body) or "").strip() == "":
            return block, DocumentPosition(last_body)
        self._document.insert_lines(block.end, [""])
        return BlockRef(name=block.name, start=block.start, end=block.end + 1), DocumentPosition(block.end)

    def _format_hint(self, heading: HeadingRef, created: bool) -> str:
        verb = "Created" if created else "Opened"
        title = heading.title or "untitled heading"
        return f"{verb} {self._name} under '{title}'. {self._return_hint}"
