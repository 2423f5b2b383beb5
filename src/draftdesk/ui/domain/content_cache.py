"""In-memory cache of content views keyed by content id."""

from __future__ import annotations

import logging
from typing import Any

from ..events import ContentInvalidated, EventBus

LOGGER = logging.getLogger(__name__)


class ContentCache:
    """Holds locally fetched views of content items.

    The review controller invalidates entries after mutations; every
    invalidation is announced with :class:`ContentInvalidated` so views
    that render the item know to refetch it.
    """

    def __init__(self, event_bus: EventBus | None = None) -> None:
        self._bus = event_bus
        self._entries: dict[str, Any] = {}

    def get(self, content_id: str) -> Any | None:
        return self._entries.get(content_id)

    def put(self, content_id: str, view: Any) -> None:
        self._entries[content_id] = view

    def invalidate(self, content_id: str, *, reason: str = "mutation") -> bool:
        """Drop the cached view for ``content_id`` and announce it.

        The announcement is published even when nothing was cached, since
        views outside this cache may still hold the item.
        """
        removed = self._entries.pop(content_id, None) is not None
        LOGGER.debug(
            "ContentCache.invalidate: content_id=%s, reason=%s, cached=%s",
            content_id,
            reason,
            removed,
        )
        if self._bus is not None:
            self._bus.publish(ContentInvalidated(content_id=content_id, reason=reason))
        return removed

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, content_id: object) -> bool:
        return content_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)


__all__ = ["ContentCache"]
