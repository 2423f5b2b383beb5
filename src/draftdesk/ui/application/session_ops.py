"""Session use cases.

- SessionTeardownUseCase: Reset all client-session state (e.g. on logout)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..events import SessionReset

if TYPE_CHECKING:  # pragma: no cover - imports for type checking only
    from ..domain.draft_store import DraftStore
    from ..domain.generation_controller import GenerationController
    from ..domain.review_controller import ReviewController
    from ..events import EventBus

LOGGER = logging.getLogger(__name__)


class SessionTeardownUseCase:
    """Use case for tearing the client session down.

    Steps:
    1. Cancel every in-flight generation channel and forget results
    2. Reset review operation state and drop cached content views
    3. Clear the draft slot
    4. Publish SessionReset
    """

    __slots__ = ("_generation", "_review", "_draft_store", "_event_bus")

    def __init__(
        self,
        generation: GenerationController,
        review: ReviewController,
        draft_store: DraftStore,
        event_bus: EventBus,
    ) -> None:
        self._generation = generation
        self._review = review
        self._draft_store = draft_store
        self._event_bus = event_bus

    def execute(self, reason: str = "logout", *, clear_draft: bool = True) -> None:
        LOGGER.debug("SessionTeardownUseCase: reason=%s, clear_draft=%s", reason, clear_draft)
        self._generation.reset()
        self._review.reset()
        self._review.content_cache.clear()
        if clear_draft:
            self._draft_store.clear()
        self._draft_store.mark_restored(False)
        self._event_bus.publish(SessionReset(reason=reason))
