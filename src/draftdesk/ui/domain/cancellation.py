"""Per-channel cancellation tokens.

Each logical channel ("analyze", "generate") has at most one live token.
Beginning a new operation on a channel revokes the previous token before
the new request is issued, so a slow stale response can never overwrite a
newer result: the last *issued* request wins, not the last to arrive.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import uuid
from typing import Any, Awaitable, TypeVar

from ...services.errors import OperationCanceled

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


class CancellationToken:
    """A revocable handle for one operation attempt.

    Cancellation is irreversible. A token can carry the asyncio task that
    performs its request; revoking the token cancels that task too.
    """

    __slots__ = ("_channel", "_token_id", "_cancelled", "_task")

    def __init__(self, channel: str) -> None:
        self._channel = channel
        self._token_id = f"{channel}-{uuid.uuid4().hex[:8]}"
        self._cancelled = False
        self._task: asyncio.Future[Any] | None = None

    @property
    def channel(self) -> str:
        return self._channel

    @property
    def token_id(self) -> str:
        return self._token_id

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> bool:
        """Revoke the token. Returns False if it was already revoked."""
        if self._cancelled:
            return False
        self._cancelled = True
        task = self._task
        if task is not None and not task.done():
            task.cancel()
        LOGGER.debug("CancellationToken.cancel: token_id=%s", self._token_id)
        return True

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise self._canceled_error()

    async def run(self, awaitable: Awaitable[T]) -> T:
        """Await ``awaitable`` under this token.

        The request runs in its own task so revoking the token can abort
        it. Whatever the request produced, a revoked token turns the
        outcome into :class:`OperationCanceled`; the flag is checked again
        after the response arrives and before the caller sees it.
        """
        if self._cancelled:
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            raise self._canceled_error()

        task = asyncio.ensure_future(awaitable)
        self._task = task
        try:
            result = await task
        except asyncio.CancelledError:
            if self._cancelled:
                raise self._canceled_error() from None
            raise
        except Exception as exc:
            if self._cancelled:
                LOGGER.debug(
                    "CancellationToken.run: discarding failure of revoked token %s: %s",
                    self._token_id,
                    exc,
                )
                raise self._canceled_error() from None
            raise
        finally:
            self._task = None

        if self._cancelled:
            LOGGER.debug(
                "CancellationToken.run: discarding response of revoked token %s",
                self._token_id,
            )
            raise self._canceled_error()
        return result

    def _canceled_error(self) -> OperationCanceled:
        return OperationCanceled(
            message=f"{self._channel} request was cancelled",
            details={"token_id": self._token_id},
            channel=self._channel,
        )

    def __repr__(self) -> str:
        state = "cancelled" if self._cancelled else "live"
        return f"CancellationToken({self._token_id!r}, {state})"


class CancellationCoordinator:
    """Tracks the active token per channel and supersedes it on new requests."""

    def __init__(self) -> None:
        self._active: dict[str, CancellationToken] = {}

    def begin(self, channel: str) -> CancellationToken:
        """Revoke the channel's current token (if any), then issue a new one."""
        previous = self._active.pop(channel, None)
        if previous is not None and previous.cancel():
            LOGGER.debug(
                "CancellationCoordinator.begin: superseded %s on channel %s",
                previous.token_id,
                channel,
            )
        token = CancellationToken(channel)
        self._active[channel] = token
        return token

    def cancel(self, channel: str) -> bool:
        """Revoke and unregister the channel's token. No-op when idle."""
        token = self._active.pop(channel, None)
        if token is None:
            LOGGER.debug("CancellationCoordinator.cancel: channel %s idle", channel)
            return False
        token.cancel()
        return True

    @staticmethod
    def is_cancelled(token: CancellationToken) -> bool:
        return token.cancelled

    def active(self, channel: str) -> CancellationToken | None:
        return self._active.get(channel)

    def is_current(self, token: CancellationToken) -> bool:
        """True iff ``token`` is the live, registered token of its channel."""
        return not token.cancelled and self._active.get(token.channel) is token

    def release(self, channel: str, token: CancellationToken) -> bool:
        """Unregister ``token`` after its operation settled.

        Does nothing if a newer token already took the channel over.
        """
        if self._active.get(channel) is token:
            del self._active[channel]
            return True
        return False

    def cancel_all(self) -> list[str]:
        channels = list(self._active)
        for channel in channels:
            self.cancel(channel)
        return channels

    def reset(self) -> None:
        """Revoke everything; used on session teardown."""
        cancelled = self.cancel_all()
        if cancelled:
            LOGGER.debug("CancellationCoordinator.reset: cancelled %s", cancelled)

    def channels(self) -> tuple[str, ...]:
        return tuple(self._active)


__all__ = ["CancellationCoordinator", "CancellationToken"]
