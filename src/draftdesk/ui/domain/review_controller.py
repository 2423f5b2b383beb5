"""Review controller domain service.

Drives the review-service mutations (AI review, apply review, restore
version) against a content item. Unlike the generation controller there
is no shared cancellation channel: each call may target a different
content item, so concurrent calls all run to completion.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping, Protocol

from ...services.errors import (
    ContentIdRequiredError,
    LocalValidationError,
    describe_failure,
)
from ..events import (
    Event,
    EventBus,
    NoticePosted,
    ReviewOperationCompleted,
    ReviewOperationFailed,
    ReviewOperationStarted,
)
from ..models.operation_models import OperationState, ReviewOperation
from .content_cache import ContentCache

LOGGER = logging.getLogger(__name__)


class ReviewService(Protocol):
    """The remote review/versioning capability used by the controller."""

    def review_blog(
        self,
        content_id: str | None = None,
        payload: Mapping[str, Any] | None = None,
    ) -> Awaitable[Any]:
        ...

    def apply_review(self, content_id: str, payload: Mapping[str, Any]) -> Awaitable[Any]:
        ...

    def restore_version(self, content_id: str, version: int) -> Awaitable[Any]:
        ...


@dataclass(frozen=True, slots=True)
class _OperationNotices:
    success: str | None
    failure_title: str
    failure_fallback: str
    invalidates: bool


_NOTICES: dict[ReviewOperation, _OperationNotices] = {
    ReviewOperation.REVIEW: _OperationNotices(
        success=None,
        failure_title="Review Failed",
        failure_fallback="Failed to review blog post",
        invalidates=False,
    ),
    ReviewOperation.APPLY_REVIEW: _OperationNotices(
        success="Review suggestions applied successfully",
        failure_title="Apply Failed",
        failure_fallback="Failed to apply review suggestions",
        invalidates=True,
    ),
    ReviewOperation.RESTORE_VERSION: _OperationNotices(
        success="Version restored successfully",
        failure_title="Restore Failed",
        failure_fallback="Failed to restore version",
        invalidates=True,
    ),
}


class ReviewController:
    """Domain manager for the review workflow of persisted content.

    Events Emitted:
        - ReviewOperationStarted: When a mutation is issued
        - ReviewOperationCompleted: When a mutation succeeds
        - ReviewOperationFailed: When a mutation fails
        - NoticePosted: Success/failure notifications
        - ContentInvalidated: Via the content cache, after apply/restore
    """

    def __init__(
        self,
        service: ReviewService,
        event_bus: EventBus,
        content_cache: ContentCache | None = None,
    ) -> None:
        self._service = service
        self._bus = event_bus
        self._cache = content_cache if content_cache is not None else ContentCache(event_bus)
        self._states: dict[ReviewOperation, OperationState] = {
            operation: OperationState(name=operation.value) for operation in ReviewOperation
        }

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def content_cache(self) -> ContentCache:
        return self._cache

    @property
    def review_state(self) -> OperationState:
        return self._states[ReviewOperation.REVIEW]

    @property
    def apply_state(self) -> OperationState:
        return self._states[ReviewOperation.APPLY_REVIEW]

    @property
    def restore_state(self) -> OperationState:
        return self._states[ReviewOperation.RESTORE_VERSION]

    @property
    def is_reviewing(self) -> bool:
        return self.review_state.is_pending

    @property
    def is_applying(self) -> bool:
        return self.apply_state.is_pending

    @property
    def is_restoring(self) -> bool:
        return self.restore_state.is_pending

    @property
    def review_result(self) -> Any | None:
        return self.review_state.result

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def review(
        self,
        content_id: str | None = None,
        payload: Mapping[str, Any] | None = None,
    ) -> Any:
        """Request an AI review of a stored post or of an ad hoc payload."""
        return await self._run(
            ReviewOperation.REVIEW,
            content_id,
            lambda: self._service.review_blog(content_id, payload),
        )

    async def apply_review(
        self,
        content_id: str | None,
        payload: Mapping[str, Any],
    ) -> Any:
        """Apply review suggestions to a stored post.

        Raises:
            ContentIdRequiredError: ``content_id`` is missing; raised
                before any network call.
        """
        if not content_id:
            raise ContentIdRequiredError()
        return await self._run(
            ReviewOperation.APPLY_REVIEW,
            content_id,
            lambda: self._service.apply_review(content_id, payload),
        )

    async def restore_version(self, content_id: str | None, version: int) -> Any:
        """Restore a stored post to a previous version."""
        if not content_id:
            raise ContentIdRequiredError(message="Blog ID is required to restore a version")
        if isinstance(version, bool) or not isinstance(version, int) or version < 0:
            raise LocalValidationError(
                message=f"Version must be a non-negative integer, got {version!r}",
                parameter="version",
            )
        return await self._run(
            ReviewOperation.RESTORE_VERSION,
            content_id,
            lambda: self._service.restore_version(content_id, version),
        )

    def reset(self) -> None:
        for state in self._states.values():
            state.reset()

    # ------------------------------------------------------------------
    # Internal Helpers
    # ------------------------------------------------------------------

    async def _run(
        self,
        operation: ReviewOperation,
        content_id: str | None,
        request: Callable[[], Awaitable[Any]],
    ) -> Any:
        notices = _NOTICES[operation]
        state = self._states[operation]
        state.mark_started()
        LOGGER.debug(
            "ReviewController: %s started, content_id=%s, in_flight=%d",
            operation.value,
            content_id,
            state.in_flight,
        )
        self._publish(ReviewOperationStarted(operation=operation.value, content_id=content_id))

        try:
            result = await request()
        except Exception as exc:
            state.mark_failed(exc)
            message = describe_failure(exc, notices.failure_fallback)
            LOGGER.warning(
                "ReviewController: %s failed, content_id=%s, error=%s",
                operation.value,
                content_id,
                exc,
            )
            self._publish(NoticePosted(message=message, title=notices.failure_title, severity="error"))
            self._publish(
                ReviewOperationFailed(operation=operation.value, content_id=content_id, error=message)
            )
            raise
        except BaseException:
            state.mark_abandoned()
            raise

        state.mark_succeeded(result)
        LOGGER.debug("ReviewController: %s completed, content_id=%s", operation.value, content_id)
        if notices.invalidates and content_id:
            self._cache.invalidate(content_id, reason=operation.value)
        if notices.success:
            self._publish(NoticePosted(message=notices.success, title="Success", severity="success"))
        self._publish(ReviewOperationCompleted(operation=operation.value, content_id=content_id))
        return result

    def _publish(self, event: Event) -> None:
        self._bus.publish(event)


__all__ = ["ReviewController", "ReviewService"]
