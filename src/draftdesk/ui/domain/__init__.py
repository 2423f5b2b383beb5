"""Domain layer of the authoring client.

Domain managers encapsulate state and business rules, independent of the
view layer. Each receives its dependencies through the constructor and
reports state changes through the event bus.

Domain Managers:
    - DraftStore: The single persisted authoring draft
    - CancellationCoordinator: Per-channel cancellation tokens
    - GenerationController: Prompt analysis and blog generation
    - ReviewController: Review, apply-review and restore-version mutations
    - ContentCache: Locally cached content views keyed by content id
"""

from __future__ import annotations

from .cancellation import CancellationCoordinator, CancellationToken
from .content_cache import ContentCache
from .draft_store import DRAFT_STORAGE_KEY, DraftStore
from .generation_controller import GenerationController, GenerationService
from .review_controller import ReviewController, ReviewService

__all__: list[str] = [
    "CancellationCoordinator",
    "CancellationToken",
    "ContentCache",
    "DRAFT_STORAGE_KEY",
    "DraftStore",
    "GenerationController",
    "GenerationService",
    "ReviewController",
    "ReviewService",
]
