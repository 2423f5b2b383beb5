"""State models for remote operations driven by the controllers."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Channel(str, Enum):
    """Cancellable generation channels."""

    ANALYZE = "analyze"
    GENERATE = "generate"


class ReviewOperation(str, Enum):
    """Review-service mutations."""

    REVIEW = "review"
    APPLY_REVIEW = "apply_review"
    RESTORE_VERSION = "restore_version"


@dataclass(slots=True)
class OperationState:
    """Pending/result/error state for one operation.

    ``in_flight`` counts concurrent calls; the operation is pending until
    the last of them settles. ``result`` keeps the last successful payload
    until a newer success replaces it.

    Attributes:
        name: Operation name used in logs and events.
        in_flight: Number of calls currently awaiting a response.
        result: Last successful payload.
        error: Last failure, cleared by the next success.
        updated_at: When the state last changed.
    """

    name: str
    in_flight: int = 0
    result: Any | None = None
    error: BaseException | None = None
    updated_at: datetime = field(default_factory=_utcnow)

    @property
    def is_pending(self) -> bool:
        return self.in_flight > 0

    def mark_started(self) -> None:
        self.in_flight += 1
        self.updated_at = _utcnow()

    def mark_succeeded(self, result: Any) -> None:
        self.in_flight = max(0, self.in_flight - 1)
        self.result = result
        self.error = None
        self.updated_at = _utcnow()

    def mark_failed(self, error: BaseException) -> None:
        self.in_flight = max(0, self.in_flight - 1)
        self.error = error
        self.updated_at = _utcnow()

    def mark_abandoned(self) -> None:
        """Settle a call without touching result or error."""
        self.in_flight = max(0, self.in_flight - 1)
        self.updated_at = _utcnow()

    def reset(self) -> None:
        self.in_flight = 0
        self.result = None
        self.error = None
        self.updated_at = _utcnow()


__all__ = ["Channel", "OperationState", "ReviewOperation"]
