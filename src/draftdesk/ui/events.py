"""Event bus connecting the editing session to whatever displays it.

The session publishes events; the Qt window (or a test) subscribes. Neither
side imports the other.
"""

from __future__ import annotations

import inspect
import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Callable, DefaultDict, Generic, TypeVar
from weakref import WeakMethod

logger = logging.getLogger(__name__)

E = TypeVar("E", bound="Event")

Handler = Callable[[E], None]


@dataclass(slots=True)
class Event:
    """Base class for all events."""


@dataclass(slots=True)
class FocusModeChanged(Event):
    """Focus mode was entered or left.

    Attributes:
        active: Whether focus mode is now engaged.
        layout_restored: Whether the pre-focus layout was put back on exit.
    """

    active: bool
    layout_restored: bool = False


@dataclass(slots=True)
class NotesDrawerOpened(Event):
    """The notes drawer under a heading is ready for typing.

    Attributes:
        heading: Title of the heading owning the drawer.
        line: Line the cursor was moved to.
        created: Whether the drawer was newly inserted.
    """

    heading: str
    line: int
    created: bool


@dataclass(slots=True)
class StatusMessage(Event):
    """A message for the status bar.

    Attributes:
        message: Text to display.
        timeout_ms: 0 keeps the message, a positive value auto-dismisses it.
    """

    message: str
    timeout_ms: int = 0


@dataclass(slots=True)
class DependenciesChecked(Event):
    """A dependency check finished.

    Attributes:
        missing: Tokens for unsatisfied requirements, in input order.
    """

    missing: tuple[str, ...]


@dataclass(slots=True)
class DocumentChanged(Event):
    """The document text changed outside the editor widget."""

    version_id: int


class EventBus(Generic[E]):
    """Typed publish/subscribe bus.

    Bound methods are held through :class:`weakref.WeakMethod`, so a closed
    window stops receiving events once it is collected. Use it from the UI
    thread only.
    """

    __slots__ = ("_subscribers",)

    def __init__(self) -> None:
        self._subscribers: DefaultDict[type[Event], list[_Resolver]] = defaultdict(list)

    def subscribe(self, event_type: type[E], handler: Handler[E]) -> None:
        self._subscribers[event_type].append(_weak_if_bound(handler))
        logger.debug("%s now listens for %s", _describe(handler), event_type.__name__)

    def unsubscribe(self, event_type: type[E], handler: Handler[E]) -> bool:
        """Drop the earliest registration of ``handler``; False if it was not registered."""

        resolvers = self._subscribers.get(event_type, [])
        for resolver in resolvers:
            if resolver() == handler:
                resolvers.remove(resolver)
                return True
        return False

    def publish(self, event: E) -> None:
        """Call every live handler for ``type(event)`` in subscription order.

        Exceptions are logged per handler; the remaining handlers still run.
        """

        resolvers = self._subscribers.get(type(event))
        if not resolvers:
            return
        collected = False
        for resolver in tuple(resolvers):
            handler = resolver()
            if handler is None:
                collected = True
                continue
            try:
                handler(event)
            except Exception:
                logger.exception("%s failed on %s", _describe(handler), type(event).__name__)
        if collected:
            resolvers[:] = [resolver for resolver in resolvers if resolver() is not None]

    def handler_count(self, event_type: type[E] | None = None) -> int:
        if event_type is None:
            return sum(map(len, self._subscribers.values()))
        return len(self._subscribers.get(event_type, ()))


_Resolver = Callable[[], "Handler | None"]


def _weak_if_bound(handler: Handler) -> _Resolver:
    if inspect.ismethod(handler):
        return WeakMethod(handler)
    return lambda: handler


def _describe(handler: Handler) -> str:
    if inspect.ismethod(handler):
        return f"{type(handler.__self__).__name__}.{handler.__func__.__name__}"
    return getattr(handler, "__name__", repr(handler))


__all__ = [
    "Event",
    "EventBus",
    "Handler",
    "FocusModeChanged",
    "NotesDrawerOpened",
    "StatusMessage",
    "DependenciesChecked",
    "DocumentChanged",
]
