"""Draft use cases.

This module provides use cases for the draft lifecycle:
- SaveDraftUseCase: Capture the working session into the draft slot
- RestoreDraftUseCase: Rehydrate the working session from the draft slot
- CompletePublishUseCase: Drop the draft once the post was published
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Mapping

from ..events import DraftRestored
from ..models.draft_models import (
    ContentType,
    DraftFormData,
    DraftInput,
    DraftMode,
    DraftRecord,
    PostStatus,
)

if TYPE_CHECKING:  # pragma: no cover - imports for type checking only
    from ..domain.draft_store import DraftStore
    from ..domain.generation_controller import GenerationController
    from ..events import EventBus

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class RestoredSession:
    """What the view layer needs to rebuild its working state."""

    mode: DraftMode
    prompt: str
    prompt_analysis: dict[str, Any] | None
    form_data: DraftFormData

    @classmethod
    def from_record(cls, record: DraftRecord) -> RestoredSession:
        draft = record.without_timestamp()
        return cls(
            mode=draft.mode,
            prompt=draft.prompt,
            prompt_analysis=draft.prompt_analysis,
            form_data=draft.form_data,
        )


def build_form_data(values: Mapping[str, Any] | None) -> DraftFormData:
    """Build form data from loosely typed view-layer values.

    Missing keys take their defaults; enum fields accept either the enum
    or its wire value.
    """
    values = values or {}
    return DraftFormData(
        title=str(values.get("title", "") or ""),
        content=str(values.get("content", "") or ""),
        content_type=ContentType(values.get("content_type", ContentType.HTML.value)),
        excerpt=str(values.get("excerpt", "") or ""),
        featured_image=str(values.get("featured_image", "") or ""),
        category=str(values.get("category", "") or ""),
        status=PostStatus(values.get("status", PostStatus.DRAFT.value)),
    )


class SaveDraftUseCase:
    """Use case for writing the working session into the draft slot.

    When ``prompt_analysis`` is not given, the generation controller's
    last successful analysis is stored, so the draft always carries the
    analysis the user last saw.
    """

    __slots__ = ("_draft_store", "_generation")

    def __init__(
        self,
        draft_store: DraftStore,
        generation: GenerationController | None = None,
    ) -> None:
        self._draft_store = draft_store
        self._generation = generation

    def execute(
        self,
        *,
        mode: DraftMode | str,
        prompt: str = "",
        form_data: DraftFormData | Mapping[str, Any] | None = None,
        prompt_analysis: Mapping[str, Any] | None = None,
    ) -> DraftInput:
        if prompt_analysis is None and self._generation is not None:
            prompt_analysis = self._generation.analysis_result
        if not isinstance(form_data, DraftFormData):
            form_data = build_form_data(form_data)
        draft = DraftInput(
            mode=DraftMode(mode),
            prompt=prompt or "",
            prompt_analysis=dict(prompt_analysis) if isinstance(prompt_analysis, Mapping) else None,
            form_data=form_data,
        )
        self._draft_store.save(draft)
        return draft


class RestoreDraftUseCase:
    """Use case for rehydrating the working session on reload."""

    __slots__ = ("_draft_store", "_event_bus")

    def __init__(self, draft_store: DraftStore, event_bus: EventBus) -> None:
        self._draft_store = draft_store
        self._event_bus = event_bus

    def execute(self) -> RestoredSession | None:
        """Return the restored session, or None when no valid draft exists."""
        record = self._draft_store.load()
        if record is None:
            LOGGER.debug("RestoreDraftUseCase: no draft to restore")
            return None

        self._draft_store.mark_restored(True)
        LOGGER.debug(
            "RestoreDraftUseCase: restored %s draft from %d",
            record.mode.value,
            record.timestamp_ms,
        )
        self._event_bus.publish(DraftRestored(mode=record.mode.value, timestamp_ms=record.timestamp_ms))
        return RestoredSession.from_record(record)


class CompletePublishUseCase:
    """Use case run by the publish flow once the post was stored remotely."""

    __slots__ = ("_draft_store",)

    def __init__(self, draft_store: DraftStore) -> None:
        self._draft_store = draft_store

    def execute(self) -> None:
        self._draft_store.clear()
        self._draft_store.mark_restored(False)
