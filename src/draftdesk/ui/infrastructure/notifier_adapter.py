"""Notifier adapter that forwards notices from the event bus.

Domain controllers never talk to the user-facing notification surface
directly; they publish :class:`NoticePosted` and this adapter hands each
notice to whatever :class:`Notifier` the host application provides.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from ...utils.logging import NOTICES_LOGGER
from ..events import EventBus, NoticePosted

_LOGGER = logging.getLogger(__name__)

_SEVERITY_LEVELS: dict[str, int] = {
    "success": logging.INFO,
    "info": logging.INFO,
    "default": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


@runtime_checkable
class Notifier(Protocol):
    """A fire-and-forget user notification surface (e.g. a toast)."""

    def notify(self, message: str, *, title: str | None = None, severity: str = "info") -> None:
        ...


class NotifierAdapter:
    """Adapter forwarding :class:`NoticePosted` events to a notifier.

    The adapter subscribes on construction and stays subscribed until
    :meth:`detach` is called. A notifier that raises is logged and never
    affects the operation that produced the notice.

    Attributes:
        _event_bus: The bus the adapter listens on.
        _notifier: The notification surface notices are forwarded to.
        _attached: Whether the adapter is currently subscribed.
    """

    __slots__ = ("_event_bus", "_notifier", "_attached", "__weakref__")

    def __init__(self, event_bus: EventBus, notifier: Notifier) -> None:
        self._event_bus = event_bus
        self._notifier = notifier
        self._attached = False
        self.attach()

    @property
    def notifier(self) -> Notifier:
        return self._notifier

    @property
    def attached(self) -> bool:
        return self._attached

    def attach(self) -> None:
        if self._attached:
            return
        self._event_bus.subscribe(NoticePosted, self._on_notice)
        self._attached = True

    def detach(self) -> None:
        if not self._attached:
            return
        self._event_bus.unsubscribe(NoticePosted, self._on_notice)
        self._attached = False

    def _on_notice(self, event: NoticePosted) -> None:
        try:
            self._notifier.notify(event.message, title=event.title, severity=event.severity)
        except Exception:
            _LOGGER.warning("Notifier %r failed for notice %r", self._notifier, event.message, exc_info=True)


class LoggingNotifier:
    """Notifier that writes notices to a logger; used by the CLI."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger(NOTICES_LOGGER)

    def notify(self, message: str, *, title: str | None = None, severity: str = "info") -> None:
        level = _SEVERITY_LEVELS.get(severity, logging.INFO)
        if title:
            self._logger.log(level, "%s: %s", title, message)
        else:
            self._logger.log(level, "%s", message)


@dataclass(slots=True)
class Notice:
    message: str
    title: str | None = None
    severity: str = "info"


class RecordingNotifier:
    """Notifier that keeps every notice in memory.

    Handy for tests and for front ends that render notices in batches.
    """

    def __init__(self) -> None:
        self.notices: list[Notice] = []

    def notify(self, message: str, *, title: str | None = None, severity: str = "info") -> None:
        self.notices.append(Notice(message=message, title=title, severity=severity))

    def messages(self) -> list[str]:
        return [notice.message for notice in self.notices]

    def clear(self) -> None:
        self.notices.clear()


__all__ = ["LoggingNotifier", "Notice", "Notifier", "NotifierAdapter", "RecordingNotifier"]
