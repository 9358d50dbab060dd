"""Event bus carrying change notifications out of a :class:`MentionsInput`.

Hosts subscribe to the events they care about instead of passing callbacks
into the input. Provider results can arrive on worker threads, so the bus
guards its subscription table with a lock and calls handlers outside of it.

Handlers registered for a base class also receive its subclasses, so
subscribing to :class:`Event` observes everything the input publishes.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, ClassVar, Generic, TypeVar
from weakref import WeakMethod

if TYPE_CHECKING:  # pragma: no cover - imports for type checking only
    from .markup.index import Mention

logger = logging.getLogger(__name__)

E = TypeVar("E", bound="Event")

Handler = Callable[[E], None]


@dataclass(slots=True)
class Event:
    """Base class for all mention input events.

    Subclasses set ``quiet`` when they fire often enough that logging each
    publish would drown the debug log.
    """

    quiet: ClassVar[bool] = False


@dataclass(slots=True)
class MarkupChanged(Event):
    """Emitted after an edit or insertion produced a new markup value.

    Attributes:
        markup: The new persisted value.
        plain_text: Plain text rendered from ``markup``.
        mentions: Mentions parsed from ``markup`` in document order.
    """

    markup: str
    plain_text: str
    mentions: tuple["Mention", ...]


@dataclass(slots=True)
class MentionAdded(Event):
    """Emitted when a suggestion is inserted as a mention."""

    source_type: str
    id: str
    display: str


@dataclass(slots=True)
class MentionRemoved(Event):
    """Emitted for every mention an edit deleted, including partially cut ones.

    ``source_type`` is ``None`` when the mention cannot be traced to a single
    registered source.
    """

    source_type: str | None
    id: str
    display: str


@dataclass(slots=True)
class SuggestionsUpdated(Event):
    """A source's results were merged; ``count`` is the new flattened total."""

    quiet: ClassVar[bool] = True

    generation: int
    source_type: str
    count: int


@dataclass(slots=True)
class SuggestionsCleared(Event):
    generation: int


@dataclass(slots=True)
class FocusChanged(Event):
    index: int


@dataclass(slots=True)
class SelectionRestored(Event):
    """The host must move its caret/selection to ``[start, end)``.

    Published after a mention was inserted or an edit was widened to drop a
    whole mention, since the caret the host observed is no longer valid.
    """

    start: int
    end: int


@dataclass(slots=True, eq=False)
class _Subscription:
    """One registration; bound methods are held weakly so listeners can die."""

    event_type: type
    target: Any
    weak: bool = field(default=False)

    @classmethod
    def create(cls, event_type: type, handler: Handler) -> _Subscription:
        if hasattr(handler, "__self__") and hasattr(handler, "__func__"):
            try:
                return cls(event_type, WeakMethod(handler), weak=True)
            except TypeError:
                # owner does not support weak references
                pass
        return cls(event_type, handler)

    def resolve(self) -> Handler | None:
        return self.target() if self.weak else self.target

    def matches(self, handler: Handler) -> bool:
        resolved = self.resolve()
        return resolved is not None and resolved == handler


class EventBus(Generic[E]):
    """Typed publish-subscribe bus shared by an input and its host.

    Example::

        bus = EventBus()
        bus.subscribe(MentionAdded, lambda event: print(event.display))
    """

    __slots__ = ("_subscriptions", "_lock")

    def __init__(self) -> None:
        self._subscriptions: list[_Subscription] = []
        self._lock = threading.Lock()

    def subscribe(self, event_type: type[E], handler: Handler[E]) -> Callable[[], None]:
        """Register ``handler`` for ``event_type`` and its subclasses.

        Returns a callable that removes this registration. Subscribing the same
        handler twice results in two invocations.
        """

        subscription = _Subscription.create(event_type, handler)
        with self._lock:
            self._subscriptions.append(subscription)
        logger.debug("Subscribed %s to %s", _handler_name(handler), event_type.__name__)
        return lambda: self._drop([subscription])

    def unsubscribe(self, event_type: type[E], handler: Handler[E]) -> bool:
        """Remove the earliest matching registration; return whether one existed."""

        with self._lock:
            for subscription in self._subscriptions:
                if subscription.event_type is event_type and subscription.matches(handler):
                    self._subscriptions.remove(subscription)
                    return True
        return False

    def publish(self, event: Event) -> None:
        """Call every matching handler in subscription order.

        A handler that raises is logged and the remaining handlers still run.
        Registrations whose owner was garbage collected are pruned here.
        """

        with self._lock:
            matching = [sub for sub in self._subscriptions if isinstance(event, sub.event_type)]
        if not matching:
            return
        if not event.quiet:
            logger.debug("Publishing %s to %d handler(s)", type(event).__name__, len(matching))

        dead: list[_Subscription] = []
        for subscription in matching:
            handler = subscription.resolve()
            if handler is None:
                dead.append(subscription)
                continue
            try:
                handler(event)
            except Exception:
                logger.exception("Handler %s failed on %s", _handler_name(handler), type(event).__name__)
        if dead:
            self._drop(dead)

    def clear(self) -> None:
        with self._lock:
            self._subscriptions.clear()

    def handler_count(self, event_type: type[E] | None = None) -> int:
        """Count registrations made for exactly ``event_type`` (or all of them)."""

        with self._lock:
            if event_type is None:
                return len(self._subscriptions)
            return sum(1 for sub in self._subscriptions if sub.event_type is event_type)

    def _drop(self, subscriptions: list[_Subscription]) -> None:
        with self._lock:
            self._subscriptions = [sub for sub in self._subscriptions if sub not in subscriptions]


def _handler_name(handler: Handler) -> str:
    owner = getattr(handler, "__self__", None)
    if owner is not None and hasattr(handler, "__func__"):
        return f"{type(owner).__name__}.{handler.__name__}"
    return getattr(handler, "__qualname__", repr(handler))


__all__ = [
    "Event",
    "EventBus",
    "FocusChanged",
    "Handler",
    "MarkupChanged",
    "MentionAdded",
    "MentionRemoved",
    "SelectionRestored",
    "SuggestionsCleared",
    "SuggestionsUpdated",
]
