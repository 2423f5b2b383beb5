"""Service layer helpers (API client, storage, settings, errors)."""

from .api_client import BlogApiClient, ClientSettings
from .errors import (
    ContentIdRequiredError,
    DraftDeskError,
    LocalValidationError,
    OperationCanceled,
    RemoteServiceError,
    StorageError,
)
from .storage import JsonFileStorage, KeyValueStorage, MemoryStorage

__all__ = [
    "BlogApiClient",
    "ClientSettings",
    "ContentIdRequiredError",
    "DraftDeskError",
    "LocalValidationError",
    "OperationCanceled",
    "RemoteServiceError",
    "StorageError",
    "JsonFileStorage",
    "KeyValueStorage",
    "MemoryStorage",
]
