"""Tests for the draft and session use cases."""

from __future__ import annotations

from typing import Any, Mapping

import pytest

from draftdesk.services.storage import MemoryStorage
from draftdesk.ui.application import (
    CompletePublishUseCase,
    RestoreDraftUseCase,
    SaveDraftUseCase,
    SessionTeardownUseCase,
    build_form_data,
)
from draftdesk.ui.domain import ContentCache, DraftStore, GenerationController, ReviewController
from draftdesk.ui.events import DraftRestored, EventBus, SessionReset
from draftdesk.ui.models.draft_models import ContentType, DraftFormData, DraftMode, PostStatus


class _StubService:
    """Answers every generation and review call immediately."""

    async def analyze_prompt(self, prompt: str) -> Any:
        return {"topic": prompt}

    async def generate_blog(self, prompt: str, analysis: Mapping[str, Any] | None = None) -> Any:
        return {"title": prompt}

    async def review_blog(self, content_id: str | None = None, payload: Mapping[str, Any] | None = None) -> Any:
        return {"overall_score": 75}

    async def apply_review(self, content_id: str, payload: Mapping[str, Any]) -> Any:
        return {"id": content_id}

    async def restore_version(self, content_id: str, version: int) -> Any:
        return {"id": content_id, "version": version}


@pytest.fixture
def draft_store(memory_storage: MemoryStorage, event_bus: EventBus, clock) -> DraftStore:
    return DraftStore(memory_storage, event_bus, clock=clock)


@pytest.fixture
def generation(event_bus: EventBus) -> GenerationController:
    return GenerationController(_StubService(), event_bus)


@pytest.fixture
def review(event_bus: EventBus) -> ReviewController:
    return ReviewController(_StubService(), event_bus, ContentCache(event_bus))


# =============================================================================
# Save / Restore Tests
# =============================================================================


class TestSaveDraftUseCase:
    def test_saves_form_values(self, draft_store: DraftStore) -> None:
        use_case = SaveDraftUseCase(draft_store)

        draft = use_case.execute(
            mode="write",
            form_data={"title": "Hello", "content_type": "markdown", "status": "published"},
        )

        assert draft.mode is DraftMode.WRITE
        assert draft.form_data.content_type is ContentType.MARKDOWN
        assert draft.form_data.status is PostStatus.PUBLISHED
        record = draft_store.load()
        assert record is not None
        assert record.form_data.title == "Hello"

    @pytest.mark.asyncio
    async def test_uses_last_analysis_when_none_given(
        self, draft_store: DraftStore, generation: GenerationController
    ) -> None:
        await generation.analyze_prompt("cats")
        use_case = SaveDraftUseCase(draft_store, generation)

        use_case.execute(mode=DraftMode.AI_GENERATE, prompt="cats")

        record = draft_store.load()
        assert record is not None
        assert record.prompt_analysis == {"topic": "cats"}


class TestRestoreDraftUseCase:
    def test_restores_saved_session(self, draft_store: DraftStore, event_bus: EventBus, recorder) -> None:
        recorder.watch(DraftRestored)
        SaveDraftUseCase(draft_store).execute(
            mode="ai-generate",
            prompt="cats",
            prompt_analysis={"topic": "cats"},
            form_data=DraftFormData(title="Cats"),
        )

        session = RestoreDraftUseCase(draft_store, event_bus).execute()

        assert session is not None
        assert session.mode is DraftMode.AI_GENERATE
        assert session.prompt == "cats"
        assert session.prompt_analysis == {"topic": "cats"}
        assert session.form_data.title == "Cats"
        assert draft_store.draft_restored is True
        assert len(recorder.of_type(DraftRestored)) == 1

    def test_nothing_to_restore(self, draft_store: DraftStore, event_bus: EventBus, recorder) -> None:
        recorder.watch(DraftRestored)

        assert RestoreDraftUseCase(draft_store, event_bus).execute() is None
        assert draft_store.draft_restored is False
        assert recorder.events == []

    def test_expired_draft_is_not_restored(self, draft_store: DraftStore, event_bus: EventBus, clock) -> None:
        SaveDraftUseCase(draft_store).execute(mode="write", form_data={"title": "Old"})
        clock.advance(days=8)

        assert RestoreDraftUseCase(draft_store, event_bus).execute() is None


class TestCompletePublishUseCase:
    def test_clears_draft_after_publish(self, draft_store: DraftStore, event_bus: EventBus) -> None:
        SaveDraftUseCase(draft_store).execute(mode="write", form_data={"title": "Done"})
        RestoreDraftUseCase(draft_store, event_bus).execute()

        CompletePublishUseCase(draft_store).execute()

        assert draft_store.load() is None
        assert draft_store.draft_restored is False


def test_build_form_data_defaults() -> None:
    assert build_form_data(None) == DraftFormData()


# =============================================================================
# Session Teardown Tests
# =============================================================================


class TestSessionTeardownUseCase:
    @pytest.mark.asyncio
    async def test_teardown_resets_everything(
        self,
        draft_store: DraftStore,
        generation: GenerationController,
        review: ReviewController,
        event_bus: EventBus,
        recorder,
    ) -> None:
        recorder.watch(SessionReset)
        await generation.analyze_prompt("cats")
        await review.review("blog-1")
        review.content_cache.put("blog-1", {"title": "Cats"})
        SaveDraftUseCase(draft_store).execute(mode="write", form_data={"title": "Cats"})

        SessionTeardownUseCase(generation, review, draft_store, event_bus).execute()

        assert generation.analysis_result is None
        assert review.review_result is None
        assert len(review.content_cache) == 0
        assert draft_store.load() is None
        assert [event.reason for event in recorder.of_type(SessionReset)] == ["logout"]

    def test_teardown_can_keep_draft(
        self,
        draft_store: DraftStore,
        generation: GenerationController,
        review: ReviewController,
        event_bus: EventBus,
    ) -> None:
        SaveDraftUseCase(draft_store).execute(mode="write", form_data={"title": "Keep"})

        SessionTeardownUseCase(generation, review, draft_store, event_bus).execute(
            "expired-session", clear_draft=False
        )

        assert draft_store.load() is not None
