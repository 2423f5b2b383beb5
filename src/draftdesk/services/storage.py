"""Durable key-value storage adapters used by the draft store."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Protocol, runtime_checkable

from .errors import StorageError

__all__ = ["KeyValueStorage", "JsonFileStorage", "MemoryStorage", "default_storage_dir"]

LOGGER = logging.getLogger(__name__)
_STORAGE_DIR = Path.home() / ".draftdesk" / "storage"
_SAFE_KEY = re.compile(r"^[A-Za-z0-9_.-]+$")


def default_storage_dir() -> Path:
    return _STORAGE_DIR


@runtime_checkable
class KeyValueStorage(Protocol):
    """Minimal text key-value contract (the browser ``localStorage`` shape)."""

    def get(self, key: str) -> str | None:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def delete(self, key: str) -> None:
        ...


class JsonFileStorage:
    """Stores each key as a ``<key>.json`` file inside ``directory``.

    Writes go through a temp file followed by an atomic replace so a crash
    never leaves a half-written value behind.
    """

    def __init__(self, directory: Path | str | None = None) -> None:
        self._directory = Path(directory).expanduser() if directory else default_storage_dir()

    @property
    def directory(self) -> Path:
        return self._directory

    def path_for(self, key: str) -> Path:
        if not key or not _SAFE_KEY.match(key):
            raise StorageError(message=f"Invalid storage key: {key!r}", key=key)
        return self._directory / f"{key}.json"

    def get(self, key: str) -> str | None:
        path = self.path_for(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as exc:
            raise StorageError(message=f"Unable to read {path}: {exc}", key=key) from exc

    def set(self, key: str, value: str) -> None:
        path = self.path_for(key)
        tmp_path = path.with_suffix(".tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(value, encoding="utf-8")
            tmp_path.replace(path)
        except OSError as exc:
            raise StorageError(message=f"Unable to write {path}: {exc}", key=key) from exc
        LOGGER.debug("JsonFileStorage.set: key=%s, bytes=%d", key, len(value))

    def delete(self, key: str) -> None:
        path = self.path_for(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            raise StorageError(message=f"Unable to delete {path}: {exc}", key=key) from exc
        LOGGER.debug("JsonFileStorage.delete: key=%s", key)


class MemoryStorage:
    """Process-local storage, used for ephemeral sessions and tests."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def delete(self, key: str) -> None:
        self._values.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._values)

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __len__(self) -> int:
        return len(self._values)
