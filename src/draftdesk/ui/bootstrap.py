"""Client bootstrap module.

This module provides the factory function that creates and wires together
all components of the authoring client core, returning a configured
context ready to drive from a front end or the CLI.

The bootstrap process:
1. Creates the event bus
2. Resolves storage and the remote API client
3. Instantiates the domain managers
4. Attaches the notifier adapter
5. Creates the application use cases

Usage:
    from draftdesk.ui.bootstrap import create_client_context

    context = create_client_context(settings, notifier=my_toasts)
    result = await context.generation.analyze_prompt("Write about cats")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable

from ..services.api_client import BlogApiClient, ClientSettings
from ..services.settings import Settings
from ..services.storage import JsonFileStorage, KeyValueStorage
from .application import (
    CompletePublishUseCase,
    RestoreDraftUseCase,
    SaveDraftUseCase,
    SessionTeardownUseCase,
)
from .domain import ContentCache, DraftStore, GenerationController, ReviewController
from .events import EventBus
from .infrastructure import LoggingNotifier, Notifier, NotifierAdapter

_LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class ClientContext:
    """Everything a front end needs to drive the authoring client."""

    settings: Settings
    event_bus: EventBus
    api_client: BlogApiClient
    draft_store: DraftStore
    content_cache: ContentCache
    generation: GenerationController
    review: ReviewController
    notifier_adapter: NotifierAdapter
    save_draft: SaveDraftUseCase
    restore_draft: RestoreDraftUseCase
    complete_publish: CompletePublishUseCase
    teardown: SessionTeardownUseCase

    async def aclose(self) -> None:
        """Cancel in-flight generation and release the HTTP client."""
        self.generation.cancel_all()
        self.notifier_adapter.detach()
        await self.api_client.aclose()


def create_client_context(
    settings: Settings,
    *,
    storage: KeyValueStorage | None = None,
    api_client: BlogApiClient | None = None,
    notifier: Notifier | None = None,
    clock: Callable[[], datetime] | None = None,
) -> ClientContext:
    """Create and wire all client components.

    Args:
        settings: The resolved user settings.
        storage: Optional durable storage for the draft slot. When None, a
            :class:`JsonFileStorage` rooted at ``settings.storage_dir`` (or
            the default storage directory) is used.
        api_client: Optional pre-built API client (tests inject one with a
            mock transport).
        notifier: The user-facing notification surface. Defaults to a
            :class:`LoggingNotifier`.
        clock: Optional UTC clock for the draft store.

    Returns:
        The wired :class:`ClientContext`.
    """
    _LOGGER.info("Bootstrapping draftdesk client...")

    # =========================================================================
    # 1. Create Event Bus
    # =========================================================================
    event_bus = EventBus()
    _LOGGER.debug("Created event bus")

    # =========================================================================
    # 2. Resolve Storage and API Client
    # =========================================================================
    if storage is None:
        storage = JsonFileStorage(settings.storage_path())
        _LOGGER.debug("Using JSON file storage at %s", storage.directory)

    if api_client is None:
        api_client = BlogApiClient(
            ClientSettings(
                base_url=settings.base_url,
                access_token=settings.access_token,
                request_timeout=settings.request_timeout,
                default_headers=settings.default_headers or None,
            )
        )
        _LOGGER.debug("Created API client for %s", settings.base_url)

    # =========================================================================
    # 3. Create Domain Managers
    # =========================================================================
    draft_store = DraftStore(
        storage,
        event_bus,
        max_age=timedelta(days=settings.draft_expiry_days),
        clock=clock,
    )
    content_cache = ContentCache(event_bus)
    generation = GenerationController(api_client, event_bus)
    review = ReviewController(api_client, event_bus, content_cache)
    _LOGGER.debug("Created domain managers")

    # =========================================================================
    # 4. Attach Infrastructure Adapters
    # =========================================================================
    notifier_adapter = NotifierAdapter(event_bus, notifier or LoggingNotifier())
    _LOGGER.debug("Attached notifier adapter")

    # =========================================================================
    # 5. Create Use Cases
    # =========================================================================
    context = ClientContext(
        settings=settings,
        event_bus=event_bus,
        api_client=api_client,
        draft_store=draft_store,
        content_cache=content_cache,
        generation=generation,
        review=review,
        notifier_adapter=notifier_adapter,
        save_draft=SaveDraftUseCase(draft_store, generation),
        restore_draft=RestoreDraftUseCase(draft_store, event_bus),
        complete_publish=CompletePublishUseCase(draft_store),
        teardown=SessionTeardownUseCase(generation, review, draft_store, event_bus),
    )
    _LOGGER.info("Client bootstrap complete")
    return context


__all__ = ["ClientContext", "create_client_context"]
