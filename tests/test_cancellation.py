"""Tests for per-channel cancellation tokens."""

from __future__ import annotations

import asyncio

import pytest

from draftdesk.services.errors import OperationCanceled
from draftdesk.ui.domain.cancellation import CancellationCoordinator, CancellationToken


# =============================================================================
# Token Tests
# =============================================================================


class TestCancellationToken:
    """Tests for CancellationToken."""

    def test_token_id_carries_channel(self) -> None:
        token = CancellationToken("analyze")

        assert token.channel == "analyze"
        assert token.token_id.startswith("analyze-")
        assert token.cancelled is False

    def test_cancel_is_irreversible_and_reports_first_call(self) -> None:
        token = CancellationToken("generate")

        assert token.cancel() is True
        assert token.cancel() is False
        assert token.cancelled is True

    def test_raise_if_cancelled(self) -> None:
        token = CancellationToken("generate")
        token.raise_if_cancelled()

        token.cancel()

        with pytest.raises(OperationCanceled) as excinfo:
            token.raise_if_cancelled()
        assert excinfo.value.channel == "generate"

    @pytest.mark.asyncio
    async def test_run_returns_result_of_live_token(self) -> None:
        async def request() -> str:
            return "ok"

        token = CancellationToken("analyze")

        assert await token.run(request()) == "ok"

    @pytest.mark.asyncio
    async def test_run_on_revoked_token_never_starts_request(self) -> None:
        started = False

        async def request() -> str:
            nonlocal started
            started = True
            return "ok"

        token = CancellationToken("analyze")
        token.cancel()

        with pytest.raises(OperationCanceled):
            await token.run(request())
        assert started is False

    @pytest.mark.asyncio
    async def test_cancel_aborts_pending_request(self) -> None:
        loop = asyncio.get_running_loop()
        response: asyncio.Future[str] = loop.create_future()
        token = CancellationToken("generate")

        runner = asyncio.ensure_future(token.run(response))
        await asyncio.sleep(0)
        token.cancel()

        with pytest.raises(OperationCanceled):
            await runner

    @pytest.mark.asyncio
    async def test_failure_after_revocation_becomes_cancellation(self) -> None:
        token = CancellationToken("analyze")

        async def request() -> str:
            token.cancel()
            raise RuntimeError("socket closed")

        with pytest.raises(OperationCanceled):
            await token.run(request())

    @pytest.mark.asyncio
    async def test_response_arriving_after_revocation_is_discarded(self) -> None:
        token = CancellationToken("analyze")

        async def request() -> str:
            token.cancel()
            return "stale"

        with pytest.raises(OperationCanceled):
            await token.run(request())

    @pytest.mark.asyncio
    async def test_failure_of_live_token_propagates(self) -> None:
        async def request() -> str:
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            await CancellationToken("analyze").run(request())


# =============================================================================
# Coordinator Tests
# =============================================================================


class TestCancellationCoordinator:
    """Tests for CancellationCoordinator."""

    def test_begin_supersedes_previous_token(self) -> None:
        coordinator = CancellationCoordinator()

        first = coordinator.begin("analyze")
        second = coordinator.begin("analyze")

        assert first.cancelled is True
        assert second.cancelled is False
        assert coordinator.active("analyze") is second
        assert coordinator.is_current(second)
        assert not coordinator.is_current(first)

    def test_channels_are_independent(self) -> None:
        coordinator = CancellationCoordinator()

        analyze = coordinator.begin("analyze")
        coordinator.begin("generate")

        assert analyze.cancelled is False
        assert set(coordinator.channels()) == {"analyze", "generate"}

    def test_cancel_on_idle_channel_is_noop(self) -> None:
        coordinator = CancellationCoordinator()

        assert coordinator.cancel("analyze") is False

    def test_cancel_revokes_and_unregisters(self) -> None:
        coordinator = CancellationCoordinator()
        token = coordinator.begin("generate")

        assert coordinator.cancel("generate") is True
        assert CancellationCoordinator.is_cancelled(token)
        assert coordinator.active("generate") is None

    def test_release_ignores_superseded_token(self) -> None:
        coordinator = CancellationCoordinator()
        first = coordinator.begin("analyze")
        second = coordinator.begin("analyze")

        assert coordinator.release("analyze", first) is False
        assert coordinator.active("analyze") is second
        assert coordinator.release("analyze", second) is True
        assert coordinator.active("analyze") is None

    def test_cancel_all_and_reset(self) -> None:
        coordinator = CancellationCoordinator()
        analyze = coordinator.begin("analyze")
        generate = coordinator.begin("generate")

        coordinator.reset()

        assert analyze.cancelled and generate.cancelled
        assert coordinator.channels() == ()
