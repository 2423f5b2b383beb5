"""Draft record models and their strict wire format.

A draft is stored as one flat JSON object::

    {
      "mode": "ai-generate",
      "prompt": "write about cats",
      "promptAnalysis": {...} | null,
      "formData": {"title": ..., "content": ..., "content_type": "html",
                   "excerpt": ..., "featured_image": ..., "category": ...,
                   "status": "draft"},
      "timestamp": 1760000000000
    }

The format is versionless. Anything that does not match it exactly is
rejected with :class:`MalformedDraftError` rather than migrated.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Mapping

DRAFT_EXPIRY = timedelta(days=7)

_RECORD_FIELDS = frozenset({"mode", "prompt", "promptAnalysis", "formData", "timestamp"})
_FORM_FIELDS = frozenset(
    {"title", "content", "content_type", "excerpt", "featured_image", "category", "status"}
)


class MalformedDraftError(ValueError):
    """Stored draft text does not match the draft wire format."""


class DraftMode(Enum):
    """Which authoring flow produced the draft."""

    WRITE = "write"
    AI_GENERATE = "ai-generate"


class ContentType(Enum):
    HTML = "html"
    MARKDOWN = "markdown"


class PostStatus(Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    UNPUBLISHED = "unpublished"


@dataclass(slots=True)
class DraftFormData:
    """The post form fields captured with a draft."""

    title: str = ""
    content: str = ""
    content_type: ContentType = ContentType.HTML
    excerpt: str = ""
    featured_image: str = ""
    category: str = ""
    status: PostStatus = PostStatus.DRAFT

    def to_payload(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "content": self.content,
            "content_type": self.content_type.value,
            "excerpt": self.excerpt,
            "featured_image": self.featured_image,
            "category": self.category,
            "status": self.status.value,
        }

    @classmethod
    def from_payload(cls, payload: Any) -> DraftFormData:
        data = _require_exact_fields(payload, _FORM_FIELDS, "formData")
        return cls(
            title=_require_str(data, "title"),
            content=_require_str(data, "content"),
            content_type=_require_enum(data, "content_type", ContentType),
            excerpt=_require_str(data, "excerpt"),
            featured_image=_require_str(data, "featured_image"),
            category=_require_str(data, "category"),
            status=_require_enum(data, "status", PostStatus),
        )


@dataclass(slots=True)
class DraftInput:
    """Everything a caller supplies when saving a draft (no timestamp)."""

    mode: DraftMode = DraftMode.WRITE
    prompt: str = ""
    prompt_analysis: dict[str, Any] | None = None
    form_data: DraftFormData = field(default_factory=DraftFormData)

    def stamp(self, timestamp: datetime) -> DraftRecord:
        return DraftRecord(
            mode=self.mode,
            prompt=self.prompt,
            prompt_analysis=_copy_analysis(self.prompt_analysis),
            form_data=replace(self.form_data),
            timestamp=truncate_to_millis(timestamp),
        )


@dataclass(slots=True)
class DraftRecord:
    """The persisted authoring snapshot.

    Attributes:
        mode: Which authoring flow produced the draft.
        prompt: The AI prompt (may be empty in write mode).
        prompt_analysis: Last successful analysis payload, stored verbatim.
        form_data: The post form fields.
        timestamp: When the record was last written (UTC, millisecond precision).
    """

    mode: DraftMode
    prompt: str
    prompt_analysis: dict[str, Any] | None
    form_data: DraftFormData
    timestamp: datetime

    def age(self, now: datetime) -> timedelta:
        return now - self.timestamp

    def is_valid(self, now: datetime, *, max_age: timedelta = DRAFT_EXPIRY) -> bool:
        """A record is valid while its age does not exceed ``max_age``."""
        return self.age(now) <= max_age

    def without_timestamp(self) -> DraftInput:
        return DraftInput(
            mode=self.mode,
            prompt=self.prompt,
            prompt_analysis=_copy_analysis(self.prompt_analysis),
            form_data=replace(self.form_data),
        )

    @property
    def timestamp_ms(self) -> int:
        return to_millis(self.timestamp)

    def to_payload(self) -> dict[str, Any]:
        return {
            "mode": self.mode.value,
            "prompt": self.prompt,
            "promptAnalysis": self.prompt_analysis,
            "formData": self.form_data.to_payload(),
            "timestamp": self.timestamp_ms,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_payload(), ensure_ascii=False, sort_keys=True)

    @classmethod
    def from_payload(cls, payload: Any) -> DraftRecord:
        data = _require_exact_fields(payload, _RECORD_FIELDS, "draft")
        analysis = data["promptAnalysis"]
        if analysis is not None and not isinstance(analysis, Mapping):
            raise MalformedDraftError("promptAnalysis must be an object or null")
        return cls(
            mode=_require_enum(data, "mode", DraftMode),
            prompt=_require_str(data, "prompt"),
            prompt_analysis=dict(analysis) if analysis is not None else None,
            form_data=DraftFormData.from_payload(data["formData"]),
            timestamp=_require_timestamp(data, "timestamp"),
        )

    @classmethod
    def from_json(cls, text: str) -> DraftRecord:
        try:
            payload = json.loads(text)
        except (TypeError, ValueError, RecursionError) as exc:
            raise MalformedDraftError(f"draft is not valid JSON: {exc}") from exc
        return cls.from_payload(payload)


# ----------------------------------------------------------------------
# Time helpers
# ----------------------------------------------------------------------


def to_millis(value: datetime) -> int:
    return int(round(value.timestamp() * 1000))


def from_millis(value: int) -> datetime:
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc)


def truncate_to_millis(value: datetime) -> datetime:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).replace(
        microsecond=(value.microsecond // 1000) * 1000
    )


# ----------------------------------------------------------------------
# Validation helpers
# ----------------------------------------------------------------------


def _require_exact_fields(payload: Any, expected: frozenset[str], label: str) -> Mapping[str, Any]:
    if not isinstance(payload, Mapping):
        raise MalformedDraftError(f"{label} must be an object")
    keys = set(payload)
    missing = expected - keys
    unknown = keys - expected
    if missing:
        raise MalformedDraftError(f"{label} is missing fields: {sorted(missing)}")
    if unknown:
        raise MalformedDraftError(f"{label} has unknown fields: {sorted(map(str, unknown))}")
    return payload


def _require_str(data: Mapping[str, Any], key: str) -> str:
    value = data[key]
    if not isinstance(value, str):
        raise MalformedDraftError(f"{key} must be a string")
    return value


def _require_enum(data: Mapping[str, Any], key: str, enum_type: type[Enum]) -> Any:
    value = data[key]
    try:
        return enum_type(value)
    except ValueError as exc:
        raise MalformedDraftError(f"{key} has unsupported value {value!r}") from exc


def _require_timestamp(data: Mapping[str, Any], key: str) -> datetime:
    value = data[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MalformedDraftError(f"{key} must be epoch milliseconds")
    try:
        return from_millis(int(value))
    except (OverflowError, OSError, ValueError) as exc:
        raise MalformedDraftError(f"{key} is out of range") from exc


def _copy_analysis(value: Mapping[str, Any] | None) -> dict[str, Any] | None:
    if value is None:
        return None
    return json.loads(json.dumps(value))


__all__ = [
    "DRAFT_EXPIRY",
    "ContentType",
    "DraftFormData",
    "DraftInput",
    "DraftMode",
    "DraftRecord",
    "MalformedDraftError",
    "PostStatus",
    "from_millis",
    "to_millis",
    "truncate_to_millis",
]
