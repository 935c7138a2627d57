"""Return markers saved before the cursor jumps elsewhere."""

from __future__ import annotations

from collections import deque

from .document_model import DocumentPosition

__all__ = ["MarkRing"]


class MarkRing:
    """Bounded stack of positions; the oldest marker is dropped when full."""

    def __init__(self, capacity: int = 16) -> None:
        if capacity < 1:
            raise ValueError("MarkRing capacity must be at least 1")
        self._marks: deque[DocumentPosition] = deque(maxlen=capacity)

    def push(self, position: DocumentPosition) -> None:
        self._marks.append(position)

    def pop(self) -> DocumentPosition | None:
        return self._marks.pop() if self._marks else None

    def peek(self) -> DocumentPosition | None:
        return self._marks[-1] if self._marks else None

    def shift(self, from_line: int, count: int) -> None:
        """Move markers at or below ``from_line`` down by ``count`` lines after an insertion."""

        if count == 0:
            return
        self._marks = deque(
            (
                DocumentPosition(mark.line + count, mark.column) if mark.line >= from_line else mark
                for mark in self._marks
            ),
            maxlen=self._marks.maxlen,
        )

    def __len__(self) -> int:
        return len(self._marks)
