"""Application layer of the authoring client.

Use cases orchestrate domain managers for a single user action or
workflow. They receive their dependencies via constructor injection and
never touch the view layer directly.

Use Cases:
    - Draft Operations: Save, Restore, Complete Publish
    - Session Operations: Session Teardown
"""

from __future__ import annotations

from .draft_ops import (
    CompletePublishUseCase,
    RestoreDraftUseCase,
    RestoredSession,
    SaveDraftUseCase,
    build_form_data,
)
from .session_ops import SessionTeardownUseCase

__all__: list[str] = [
    "CompletePublishUseCase",
    "RestoreDraftUseCase",
    "RestoredSession",
    "SaveDraftUseCase",
    "SessionTeardownUseCase",
    "build_form_data",
]
