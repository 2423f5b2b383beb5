"""
Infrastructure Layer - Adapters for external systems.

This package connects the application/domain layers to the notification
surface supplied by the host application (NotifierAdapter). Adapters
subscribe to the EventBus so domain managers stay free of any view code.
"""

from __future__ import annotations

from draftdesk.ui.infrastructure.notifier_adapter import (
    LoggingNotifier,
    Notice,
    Notifier,
    NotifierAdapter,
    RecordingNotifier,
)

__all__: list[str] = [
    "LoggingNotifier",
    "Notice",
    "Notifier",
    "NotifierAdapter",
    "RecordingNotifier",
]
