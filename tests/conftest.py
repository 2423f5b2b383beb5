"""Shared pytest fixtures."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from draftdesk.services.storage import MemoryStorage
from draftdesk.ui.events import Event, EventBus
from draftdesk.ui.infrastructure import NotifierAdapter, RecordingNotifier


class FakeClock:
    """Settable UTC clock for draft expiry tests."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2025, 3, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: Any) -> None:
        self.now = self.now + timedelta(**kwargs)


class EventRecorder:
    """Collects every published event of the subscribed types, in order."""

    def __init__(self, bus: EventBus) -> None:
        self._bus = bus
        self.events: list[Event] = []

    def watch(self, *event_types: type[Event]) -> EventRecorder:
        for event_type in event_types:
            self._bus.subscribe(event_type, self.events.append)
        return self

    def of_type(self, event_type: type[Event]) -> list[Any]:
        return [event for event in self.events if isinstance(event, event_type)]


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def recorder(event_bus: EventBus) -> EventRecorder:
    return EventRecorder(event_bus)


@pytest.fixture
def notifier(event_bus: EventBus) -> RecordingNotifier:
    recording = RecordingNotifier()
    adapter = NotifierAdapter(event_bus, recording)
    # The bus holds bound methods weakly; keep the adapter alive with the notifier.
    recording.adapter = adapter  # type: ignore[attr-defined]
    return recording
