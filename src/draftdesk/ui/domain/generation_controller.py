"""Generation controller domain service.

Drives the two cancellable AI calls (prompt analysis and content
generation) and is the single source of truth for their pending/result
state. Each call runs on its own channel; a new call on a channel
supersedes the one in flight, and a superseded call never touches state
and never produces a user-facing error.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping, Protocol

from ...services.errors import OperationCanceled, describe_failure
from ..events import (
    Event,
    EventBus,
    GenerationCanceled,
    GenerationCompleted,
    GenerationFailed,
    GenerationStarted,
    NoticePosted,
)
from ..models.operation_models import Channel
from .cancellation import CancellationCoordinator

LOGGER = logging.getLogger(__name__)


class GenerationService(Protocol):
    """The remote AI capability used by the controller."""

    def analyze_prompt(self, prompt: str) -> Awaitable[Any]:
        ...

    def generate_blog(
        self, prompt: str, analysis: Mapping[str, Any] | None = None
    ) -> Awaitable[Any]:
        ...


@dataclass(frozen=True, slots=True)
class _ChannelNotices:
    success: str
    failure_title: str
    failure_fallback: str


_NOTICES: dict[Channel, _ChannelNotices] = {
    Channel.ANALYZE: _ChannelNotices(
        success="Prompt analyzed successfully",
        failure_title="Analysis Failed",
        failure_fallback="Failed to analyze prompt",
    ),
    Channel.GENERATE: _ChannelNotices(
        success="Blog content generated successfully",
        failure_title="Generation Failed",
        failure_fallback="Failed to generate blog content",
    ),
}


class GenerationController:
    """Single-flight controller for prompt analysis and blog generation.

    Events Emitted:
        - GenerationStarted: When a request is issued on a channel
        - GenerationCompleted: When the current request succeeds
        - GenerationFailed: When the current request fails
        - GenerationCanceled: When a request ends because it was superseded
          or cancelled
        - NoticePosted: Success and failure notifications (never for
          cancellations)
    """

    def __init__(self, service: GenerationService, event_bus: EventBus) -> None:
        """Initialize the controller.

        Args:
            service: The remote generation service.
            event_bus: The event bus for publishing events and notices.
        """
        self._service = service
        self._bus = event_bus
        self._coordinator = CancellationCoordinator()
        self._results: dict[Channel, Any] = {}
        self._errors: dict[Channel, BaseException] = {}
        self._last_channel: Channel | None = None

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def is_analyzing(self) -> bool:
        return self._coordinator.active(Channel.ANALYZE.value) is not None

    @property
    def is_generating(self) -> bool:
        return self._coordinator.active(Channel.GENERATE.value) is not None

    @property
    def analysis_result(self) -> Any | None:
        """Payload of the last successful analysis, kept until superseded."""
        return self._results.get(Channel.ANALYZE)

    @property
    def generation_result(self) -> Any | None:
        return self._results.get(Channel.GENERATE)

    @property
    def analysis_error(self) -> BaseException | None:
        return self._errors.get(Channel.ANALYZE)

    @property
    def generation_error(self) -> BaseException | None:
        return self._errors.get(Channel.GENERATE)

    @property
    def last_channel(self) -> Channel | None:
        return self._last_channel

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def analyze_prompt(self, prompt: str) -> Any:
        """Analyze ``prompt`` and return the analysis payload.

        Raises:
            OperationCanceled: The call was superseded or cancelled.
            RemoteServiceError: The service failed (also reported via a notice).
        """
        return await self._run(
            Channel.ANALYZE,
            prompt,
            lambda: self._service.analyze_prompt(prompt),
        )

    async def generate_blog(
        self,
        prompt: str,
        analysis: Mapping[str, Any] | None = None,
    ) -> Any:
        """Generate blog content from ``prompt`` (and an optional analysis)."""
        return await self._run(
            Channel.GENERATE,
            prompt,
            lambda: self._service.generate_blog(prompt, analysis),
        )

    def cancel_request(self) -> None:
        """Cancel the request on the most recently used channel, if any."""
        if self._last_channel is None:
            LOGGER.debug("GenerationController.cancel_request: nothing to cancel")
            return
        self._coordinator.cancel(self._last_channel.value)

    def cancel_all(self) -> None:
        self._coordinator.cancel_all()

    def reset(self) -> None:
        """Cancel every channel and forget all results (session teardown)."""
        self._coordinator.reset()
        self._results.clear()
        self._errors.clear()
        self._last_channel = None
        LOGGER.debug("GenerationController.reset: state cleared")

    # ------------------------------------------------------------------
    # Internal Helpers
    # ------------------------------------------------------------------

    async def _run(self, channel: Channel, prompt: str, request: Callable[[], Awaitable[Any]]) -> Any:
        notices = _NOTICES[channel]
        token = self._coordinator.begin(channel.value)
        self._last_channel = channel

        LOGGER.debug(
            "GenerationController: %s started, token=%s, prompt_length=%d",
            channel.value,
            token.token_id,
            len(prompt or ""),
        )
        self._publish(GenerationStarted(channel=channel.value, token_id=token.token_id, prompt=prompt))

        try:
            result = await token.run(request())
        except OperationCanceled:
            LOGGER.debug(
                "GenerationController: %s cancelled, token=%s",
                channel.value,
                token.token_id,
            )
            self._publish(GenerationCanceled(channel=channel.value, token_id=token.token_id))
            raise
        except asyncio.CancelledError:
            # The awaiting task itself was cancelled; free the channel.
            self._coordinator.release(channel.value, token)
            token.cancel()
            self._publish(GenerationCanceled(channel=channel.value, token_id=token.token_id))
            raise
        except Exception as exc:
            self._coordinator.release(channel.value, token)
            self._errors[channel] = exc
            message = describe_failure(exc, notices.failure_fallback)
            LOGGER.warning(
                "GenerationController: %s failed, token=%s, error=%s",
                channel.value,
                token.token_id,
                exc,
            )
            self._publish(NoticePosted(message=message, title=notices.failure_title, severity="error"))
            self._publish(GenerationFailed(channel=channel.value, token_id=token.token_id, error=message))
            raise

        self._coordinator.release(channel.value, token)
        self._results[channel] = result
        self._errors.pop(channel, None)
        LOGGER.debug(
            "GenerationController: %s completed, token=%s",
            channel.value,
            token.token_id,
        )
        self._publish(NoticePosted(message=notices.success, title="Success", severity="success"))
        self._publish(GenerationCompleted(channel=channel.value, token_id=token.token_id))
        return result

    def _publish(self, event: Event) -> None:
        self._bus.publish(event)


__all__ = ["GenerationController", "GenerationService"]
