"""Draft store domain service.

Persists the single in-progress authoring draft with time-based expiry.
Persistence is best-effort: every storage failure is logged and absorbed
so the authoring flow keeps working without a durable backend.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Callable

from ..events import DraftCleared, DraftDiscarded, DraftSaved, Event, EventBus
from ..models.draft_models import (
    DRAFT_EXPIRY,
    DraftInput,
    DraftRecord,
    MalformedDraftError,
)

if TYPE_CHECKING:  # pragma: no cover
    from ...services.storage import KeyValueStorage

LOGGER = logging.getLogger(__name__)

DRAFT_STORAGE_KEY = "blog_generation_draft"

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DraftStore:
    """Domain manager for the single global draft slot.

    Saving always replaces whatever draft was stored before, regardless of
    which post it belonged to. Reads treat expired or malformed records as
    absent and purge them.

    Events Emitted:
        - DraftSaved: After the slot was overwritten
        - DraftCleared: After an explicit clear
        - DraftDiscarded: When a read purged an expired or malformed record
    """

    def __init__(
        self,
        storage: KeyValueStorage | None,
        event_bus: EventBus | None = None,
        *,
        key: str = DRAFT_STORAGE_KEY,
        max_age: timedelta = DRAFT_EXPIRY,
        clock: Clock | None = None,
    ) -> None:
        """Initialize the draft store.

        Args:
            storage: Durable key-value storage, or None when persistence
                is unavailable (every operation then degrades to a no-op).
            event_bus: Optional bus for publishing draft events.
            key: Storage key of the single draft slot.
            max_age: Records older than this are expired.
            clock: Returns the current UTC time; injectable for tests.
        """
        self._storage = storage
        self._bus = event_bus
        self._key = key
        self._max_age = max_age
        self._clock = clock or _utcnow
        self._has_draft = False
        self._draft_restored = False

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def key(self) -> str:
        return self._key

    @property
    def max_age(self) -> timedelta:
        return self._max_age

    @property
    def has_draft(self) -> bool:
        """Whether the last save/load/clear left a valid draft behind."""
        return self._has_draft

    @property
    def draft_restored(self) -> bool:
        """Whether the current session was rehydrated from the stored draft."""
        return self._draft_restored

    def mark_restored(self, value: bool = True) -> None:
        self._draft_restored = value

    @property
    def available(self) -> bool:
        return self._storage is not None

    # ------------------------------------------------------------------
    # Slot operations
    # ------------------------------------------------------------------

    def save(self, draft: DraftInput) -> None:
        """Stamp ``draft`` with the current time and overwrite the slot."""
        if self._storage is None:
            LOGGER.debug("DraftStore.save: skipping - no storage")
            return

        try:
            record = draft.stamp(self._clock())
            body = record.to_json()
        except (TypeError, ValueError, RecursionError) as exc:
            LOGGER.warning("DraftStore.save: draft is not serializable: %s", exc)
            return

        try:
            self._storage.set(self._key, body)
        except Exception as exc:
            LOGGER.warning("DraftStore.save: failed: %s", exc)
            return

        self._has_draft = True
        LOGGER.debug(
            "DraftStore.save: mode=%s, prompt_length=%d, timestamp=%d",
            record.mode.value,
            len(record.prompt),
            record.timestamp_ms,
        )
        self._publish(DraftSaved(mode=record.mode.value, timestamp_ms=record.timestamp_ms))

    def load(self) -> DraftRecord | None:
        """Return the stored draft if it is well-formed and not expired.

        Expired or malformed records are deleted as a side effect.
        """
        text = self._read()
        if text is None:
            self._has_draft = False
            return None

        try:
            record = DraftRecord.from_json(text)
        except MalformedDraftError as exc:
            LOGGER.warning("DraftStore.load: discarding malformed draft: %s", exc)
            self._purge("malformed")
            return None

        age = record.age(self._clock())
        if age > self._max_age:
            LOGGER.debug(
                "DraftStore.load: discarding expired draft (age=%.0fs)",
                age.total_seconds(),
            )
            self._purge("expired", age_seconds=age.total_seconds())
            return None

        self._has_draft = True
        return record

    def clear(self) -> None:
        """Delete the slot. Safe to call when nothing is stored."""
        self._has_draft = False
        if self._storage is None:
            return
        try:
            self._storage.delete(self._key)
        except Exception as exc:
            LOGGER.warning("DraftStore.clear: failed: %s", exc)
            return
        LOGGER.debug("DraftStore.clear: slot cleared")
        self._publish(DraftCleared())

    def peek_validity(self) -> bool:
        """True iff a valid draft is stored. Never mutates storage."""
        text = self._read()
        if text is None:
            return False
        try:
            record = DraftRecord.from_json(text)
        except MalformedDraftError:
            return False
        return record.is_valid(self._clock(), max_age=self._max_age)

    # ------------------------------------------------------------------
    # Internal Helpers
    # ------------------------------------------------------------------

    def _read(self) -> str | None:
        if self._storage is None:
            return None
        try:
            return self._storage.get(self._key)
        except Exception as exc:
            LOGGER.warning("DraftStore: unable to read draft: %s", exc)
            return None

    def _purge(self, reason: str, *, age_seconds: float | None = None) -> None:
        self._has_draft = False
        try:
            self._storage.delete(self._key)  # type: ignore[union-attr]
        except Exception as exc:
            LOGGER.warning("DraftStore: unable to purge %s draft: %s", reason, exc)
        self._publish(DraftDiscarded(reason=reason, age_seconds=age_seconds))

    def _publish(self, event: Event) -> None:
        if self._bus is not None:
            self._bus.publish(event)


__all__ = ["DraftStore", "DRAFT_STORAGE_KEY"]
