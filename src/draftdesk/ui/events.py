"""Event bus and event types for the authoring client core.

Domain managers publish these events instead of calling the view layer
directly; the view layer (and the notifier adapter) subscribe to the
types they care about.
"""

from __future__ import annotations

import inspect
import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import (
    Callable,
    Generic,
    TypeVar,
    TYPE_CHECKING,
)
from weakref import WeakMethod

if TYPE_CHECKING:  # pragma: no cover - imports for type checking only
    from typing import DefaultDict

logger = logging.getLogger(__name__)

E = TypeVar("E", bound="Event")

Handler = Callable[[E], None]


@dataclass(slots=True)
class Event:
    """Base class for all events.

    Subclasses are slot dataclasses::

        @dataclass(slots=True)
        class DraftSaved(Event):
            mode: str
            timestamp: datetime
    """

    pass


# =============================================================================
# Draft Events
# =============================================================================


@dataclass(slots=True)
class DraftSaved(Event):
    """Emitted after the draft slot was overwritten.

    Attributes:
        mode: The authoring mode of the saved draft ("write" or "ai-generate").
        timestamp_ms: The epoch-millisecond timestamp stamped on the record.
    """

    mode: str
    timestamp_ms: int


@dataclass(slots=True)
class DraftCleared(Event):
    """Emitted when the draft slot is explicitly cleared."""

    reason: str = "explicit"


@dataclass(slots=True)
class DraftDiscarded(Event):
    """Emitted when a stored draft is purged during a read.

    Attributes:
        reason: "expired" or "malformed".
        age_seconds: Age of the record when it was discarded, if known.
    """

    reason: str
    age_seconds: float | None = None


@dataclass(slots=True)
class DraftRestored(Event):
    """Emitted when a stored draft is rehydrated into the working session."""

    mode: str
    timestamp_ms: int


# =============================================================================
# Generation Events
# =============================================================================


@dataclass(slots=True)
class GenerationStarted(Event):
    """Emitted when a request is issued on a generation channel.

    Attributes:
        channel: "analyze" or "generate".
        token_id: Identifier of the cancellation token bound to the request.
        prompt: The prompt sent with the request.
    """

    channel: str
    token_id: str
    prompt: str


@dataclass(slots=True)
class GenerationCompleted(Event):
    """Emitted when the current request on a channel succeeds."""

    channel: str
    token_id: str


@dataclass(slots=True)
class GenerationFailed(Event):
    """Emitted when the current request on a channel fails.

    Attributes:
        channel: The channel of the failed request.
        token_id: Identifier of the failed request's token.
        error: The user-facing failure message.
    """

    channel: str
    token_id: str
    error: str


@dataclass(slots=True)
class GenerationCanceled(Event):
    """Emitted when a request ends because its token was revoked."""

    channel: str
    token_id: str


# =============================================================================
# Review Events
# =============================================================================


@dataclass(slots=True)
class ReviewOperationStarted(Event):
    """Emitted when a review-service mutation is issued.

    Attributes:
        operation: "review", "apply_review" or "restore_version".
        content_id: The targeted content item, if any.
    """

    operation: str
    content_id: str | None


@dataclass(slots=True)
class ReviewOperationCompleted(Event):
    operation: str
    content_id: str | None


@dataclass(slots=True)
class ReviewOperationFailed(Event):
    operation: str
    content_id: str | None
    error: str


@dataclass(slots=True)
class ContentInvalidated(Event):
    """Emitted when cached views of a content item must be refetched.

    Attributes:
        content_id: The content item whose cached views are stale.
        reason: The operation that made them stale.
    """

    content_id: str
    reason: str


# =============================================================================
# Session / Notification Events
# =============================================================================


@dataclass(slots=True)
class NoticePosted(Event):
    """Emitted when the user should see a notification (toast).

    Attributes:
        message: The notice body.
        title: Optional headline.
        severity: "success", "error", "warning", "info" or "default".
    """

    message: str
    title: str | None = None
    severity: str = "info"


@dataclass(slots=True)
class SessionReset(Event):
    """Emitted after the client session state was torn down (e.g. logout)."""

    reason: str = "logout"


class EventBus(Generic[E]):
    """A typed publish-subscribe event bus.

    Bound-method handlers are held weakly so a subscriber that goes away
    stops receiving events without unsubscribing; dead entries are dropped
    on the next publish.

    Example::

        bus = EventBus()
        bus.subscribe(NoticePosted, lambda event: print(event.message))
        bus.publish(NoticePosted(message="Saved"))

    Thread Safety:
        Not thread-safe. Use it from the event loop thread only.
    """

    __slots__ = ("_handlers",)

    def __init__(self) -> None:
        self._handlers: DefaultDict[type[Event], list[_HandlerRef]] = defaultdict(list)

    def subscribe(self, event_type: type[E], handler: Handler[E]) -> None:
        """Register ``handler`` for events of exactly ``event_type``.

        Subscribing the same handler twice results in two invocations.
        """
        self._handlers[event_type].append(_HandlerRef(handler))
        logger.debug("%s subscribed to %s", _handler_name(handler), event_type.__name__)

    def unsubscribe(self, event_type: type[E], handler: Handler[E]) -> None:
        """Remove the first registration of ``handler``; unknown handlers are ignored."""
        refs = self._handlers.get(event_type, [])
        position = next((i for i, ref in enumerate(refs) if ref.points_to(handler)), None)
        if position is None:
            return
        del refs[position]
        logger.debug("%s unsubscribed from %s", _handler_name(handler), event_type.__name__)

    def publish(self, event: E) -> None:
        """Invoke every handler registered for the event's type, in order.

        A handler that raises is logged and does not stop the remaining
        handlers. Handlers added while publishing see the next event only.
        """
        event_type = type(event)
        refs = self._handlers.get(event_type)
        if not refs:
            logger.debug("%s published with no subscribers", event_type.__name__)
            return

        for ref in tuple(refs):
            handler = ref.target()
            if handler is None:
                continue
            try:
                handler(event)
            except Exception:
                logger.exception("%s failed while handling %s", _handler_name(handler), event_type.__name__)

        refs[:] = [ref for ref in refs if ref.target() is not None]

    def clear(self) -> None:
        """Remove all registered handlers."""
        self._handlers.clear()
        logger.debug("Event bus cleared")

    def handler_count(self, event_type: type[E] | None = None) -> int:
        """Count live handlers for ``event_type``, or across all types."""
        if event_type is not None:
            groups = [self._handlers.get(event_type, [])]
        else:
            groups = list(self._handlers.values())
        return sum(1 for refs in groups for ref in refs if ref.target() is not None)


class _HandlerRef:
    """A handler reference: weak for bound methods, strong otherwise."""

    __slots__ = ("target",)

    def __init__(self, handler: Handler) -> None:
        self.target: Callable[[], Handler | None] = lambda: handler
        if inspect.ismethod(handler):
            try:
                self.target = WeakMethod(handler)
            except TypeError:
                # Owner without __weakref__ (e.g. __slots__); keep it strongly.
                pass

    def points_to(self, handler: Handler) -> bool:
        current = self.target()
        return current is not None and current == handler


def _handler_name(handler: Handler) -> str:
    if inspect.ismethod(handler):
        return f"{type(handler.__self__).__name__}.{handler.__func__.__name__}"
    return getattr(handler, "__qualname__", None) or repr(handler)


__all__ = [
    "Event",
    "EventBus",
    "Handler",
    # Draft events
    "DraftSaved",
    "DraftCleared",
    "DraftDiscarded",
    "DraftRestored",
    # Generation events
    "GenerationStarted",
    "GenerationCompleted",
    "GenerationFailed",
    "GenerationCanceled",
    # Review events
    "ReviewOperationStarted",
    "ReviewOperationCompleted",
    "ReviewOperationFailed",
    "ContentInvalidated",
    # Session / notification events
    "NoticePosted",
    "SessionReset",
]
