"""Per-heading word counts and ``WORDCOUNT`` property annotation."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable

from .document_model import HeadingRef, OutlineDocument, drawer_name, is_drawer_end, is_planning_line

__all__ = [
    "DEFAULT_WORDCOUNT_PROPERTY",
    "HeadingWordCount",
    "count_words",
    "heading_word_counts",
    "annotate_word_counts",
]

LOGGER = logging.getLogger(__name__)

DEFAULT_WORDCOUNT_PROPERTY = "WORDCOUNT"
_WORD_PATTERN = re.compile(r"[\w'-]+")


@dataclass(slots=True, frozen=True)
class HeadingWordCount:
    """Words directly under a heading (``own``) and in its whole subtree (``total``)."""

    heading: HeadingRef
    own: int
    total: int


def count_words(text: str) -> int:
    return sum(1 for match in _WORD_PATTERN.finditer(text) if any(ch.isalnum() for ch in match.group()))


def _prose_lines(lines: Iterable[str]) -> Iterable[str]:
    """Yield section lines that are manuscript text, skipping drawers and planning lines."""

    inside_drawer = False
    for line in lines:
        if inside_drawer:
            if is_drawer_end(line):
                inside_drawer = False
            continue
        if drawer_name(line) is not None:
            inside_drawer = True
            continue
        if is_planning_line(line):
            continue
        yield line


def heading_word_counts(document: OutlineDocument) -> list[HeadingWordCount]:
    headings = list(document.headings())
    lines = document.lines()
    own_counts = []
    for heading in headings:
        body = lines[heading.line + 1 : document.section_end(heading)]
        own_counts.append(count_words("\n".join(_prose_lines(body))))

    results = []
    for position, heading in enumerate(headings):
        total = own_counts[position]
        for later in range(position + 1, len(headings)):
            if headings[later].level <= heading.level:
                break
            total += own_counts[later]
        results.append(HeadingWordCount(heading=heading, own=own_counts[position], total=total))
    return results


def annotate_word_counts(
    document: OutlineDocument,
    *,
    property_name: str = DEFAULT_WORDCOUNT_PROPERTY,
) -> list[HeadingWordCount]:
    """Store each heading's subtree total in its property drawer.

    Counts are computed once up front; writing properties only adds drawer
    lines, which are excluded from counting, so the totals stay valid.
    """

    with document.edit_lock():
        counts = heading_word_counts(document)
        # Bottom-up so inserting property drawers does not shift headings still to visit.
        for entry in reversed(counts):
            document.set_property(entry.heading, property_name, str(entry.total))
    LOGGER.debug("Annotated %d heading(s) with %s", len(counts), property_name)
    return counts
