"""Structured error types surfaced to the user.

Errors carry a machine-readable code alongside the human message so the
window, the CLI and tests can all react to the same failure consistently.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


class ErrorCode:
    """Constants for error codes."""

    NO_ENCLOSING_HEADING = "no_enclosing_heading"
    POSITION_OUT_OF_RANGE = "position_out_of_range"


@dataclass
class DraftdeskError(Exception):
    """Base exception for all draftdesk errors.

    Attributes:
        error_code: Machine-readable error identifier.
        message: Human-readable error description.
        details: Additional structured error information.
        suggestion: Actionable guidance for recovery.
    """

    error_code: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)
    suggestion: str = ""

    def __post_init__(self) -> None:
        Exception.__init__(self, self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a dictionary for status reporting."""
        result: dict[str, Any] = {
            "error": self.error_code,
            "message": self.message,
        }
        if self.details:
            result["details"] = dict(self.details)
        if self.suggestion:
            result["suggestion"] = self.suggestion
        return result

    def user_message(self) -> str:
        """Return the message followed by the suggestion, when one exists."""
        if self.suggestion:
            return f"{self.message}. {self.suggestion}"
        return self.message

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"


@dataclass
class NoEnclosingHeading(DraftdeskError):
    """Raised when a drawer is requested at a position with no heading above it."""

    error_code: str = field(default=ErrorCode.NO_ENCLOSING_HEADING)
    message: str = field(default="No heading found above the cursor")
    details: dict[str, Any] = field(default_factory=dict)
    suggestion: str = field(default="Move the cursor into a section and try again")

    line: int | None = field(default=None)

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.line is not None:
            self.details.setdefault("line", self.line)


@dataclass
class PositionOutOfRange(DraftdeskError):
    """Raised when a document position does not address an existing line."""

    error_code: str = field(default=ErrorCode.POSITION_OUT_OF_RANGE)
    message: str = field(default="Position is outside the document")
    details: dict[str, Any] = field(default_factory=dict)
    suggestion: str = ""


__all__ = [
    "ErrorCode",
    "DraftdeskError",
    "NoEnclosingHeading",
    "PositionOutOfRange",
]
