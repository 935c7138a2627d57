"""Check that the external tools the desk relies on are installed.

A requirement is either a single capability name or an OR-group of names,
any one of which satisfies it. Missing requirements are reported, never
raised: an incomplete toolchain should not stop the editor from starting.
"""

from __future__ import annotations

import importlib.util
import logging
import shutil
from collections.abc import Set
from typing import Callable, Iterable, Sequence, Union

__all__ = [
    "Requirement",
    "Resolver",
    "DEFAULT_REQUIREMENTS",
    "DependencyChecker",
    "executable_resolver",
    "module_resolver",
    "any_resolver",
    "format_missing",
    "requirements_from_config",
    "configured_requirements",
]

LOGGER = logging.getLogger(__name__)

Requirement = Union[str, Sequence[str], Set]
Resolver = Callable[[str], bool]

DEFAULT_REQUIREMENTS: tuple[Requirement, ...] = (
    "pandoc",
    ("xelatex", "pdflatex", "lualatex"),
    ("aspell", "hunspell"),
    ("scrot", "import", "gnome-screenshot"),
)


def executable_resolver(name: str) -> bool:
    """True when ``name`` is an executable on ``PATH``."""

    return shutil.which(name) is not None


def module_resolver(name: str) -> bool:
    """True when ``name`` is an importable Python module."""

    try:
        return importlib.util.find_spec(name) is not None
    except (ImportError, ValueError):
        return False


def any_resolver(*resolvers: Resolver) -> Resolver:
    """Combine resolvers; a name resolves if any of them accepts it."""

    def _resolve(name: str) -> bool:
        return any(resolver(name) for resolver in resolvers)

    return _resolve


def _group_members(requirement: Requirement) -> tuple[str, ...]:
    if isinstance(requirement, str):
        return (requirement,)
    if isinstance(requirement, Set):
        members = tuple(sorted(requirement))
    else:
        members = tuple(requirement)
    if not members:
        raise ValueError("An OR-group requirement needs at least one capability name")
    return members


def _format_token(requirement: Requirement, members: tuple[str, ...]) -> str:
    if isinstance(requirement, str):
        return requirement
    return f"({' or '.join(members)})"


class DependencyChecker:
    """Report which requirements of a requirement list are unsatisfied."""

    def __init__(self, resolver: Resolver | None = None) -> None:
        self._resolver = resolver or executable_resolver

    def is_satisfied(self, requirement: Requirement) -> bool:
        return any(self._resolver(name) for name in _group_members(requirement))

    def find_missing(self, spec: Iterable[Requirement]) -> list[str]:
        """Return one token per unsatisfied requirement, in input order.

        OR-groups are reported as a single ``"(a or b)"`` token.
        """

        missing = [
            _format_token(requirement, _group_members(requirement))
            for requirement in spec
            if not self.is_satisfied(requirement)
        ]
        if missing:
            LOGGER.info("Missing dependencies: %s", ", ".join(missing))
        return missing


def format_missing(tokens: Sequence[str]) -> str:
    """Human-readable, comma-joined report for the diagnostic command."""

    if not tokens:
        return "All dependencies are installed."
    return f"Missing dependencies: {', '.join(tokens)}"


def requirements_from_config(entries: Iterable[object] | str) -> list[Requirement]:
    """Turn JSON settings entries (strings or lists of strings) into requirements.

    A bare string is one requirement, not a list of one-letter names.
    """

    if isinstance(entries, str):
        entries = [entries]
    requirements: list[Requirement] = []
    for entry in entries:
        if isinstance(entry, str):
            name = entry.strip()
            if name:
                requirements.append(name)
            continue
        if isinstance(entry, (list, tuple)):
            group = tuple(str(item).strip() for item in entry if str(item).strip())
            if group:
                requirements.append(group)
                continue
        LOGGER.warning("Ignoring invalid dependency entry %r", entry)
    return requirements


def configured_requirements(required_tools: Iterable[object] | str | None) -> list[Requirement]:
    """Requirements from the ``required_tools`` setting, or the defaults when it is empty."""

    requirements = requirements_from_config(required_tools) if required_tools else []
    return requirements or list(DEFAULT_REQUIREMENTS)
