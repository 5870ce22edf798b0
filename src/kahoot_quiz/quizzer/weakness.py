"""Persistence for the set of questions the user keeps missing."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Iterable, Mapping, MutableMapping, Protocol

__all__ = [
    "WEAKNESS_KEY",
    "StoreError",
    "KeyValueStore",
    "MemoryStore",
    "JsonFileStore",
    "WeaknessTracker",
]

WEAKNESS_KEY = "kahoot-quiz-weaknesses"

logger = logging.getLogger(__name__)


class StoreError(RuntimeError):
    """Raised when the backing store cannot be read or written."""


class KeyValueStore(Protocol):
    """String key/value storage that survives between sessions."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...


class MemoryStore:
    """Dict-backed store, used by tests and throwaway sessions."""

    def __init__(self, initial: Mapping[str, str] | None = None) -> None:
        self._data: MutableMapping[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


class JsonFileStore:
    """All keys in one JSON object file, replaced atomically on each write."""

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def get(self, key: str) -> str | None:
        value = self._read().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        payload = self._read()
        payload[key] = value
        _atomic_write_json(self._path, payload)

    def _read(self) -> MutableMapping[str, Any]:
        if not self._path.is_file():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise StoreError(f"Failed to parse store file: {self._path}") from exc
        except OSError as exc:
            raise StoreError(f"Failed to read store file: {self._path}") from exc
        if not isinstance(data, dict):
            raise StoreError(f"Store file is not a JSON object: {self._path}")
        return data


class WeaknessTracker:
    """Reads and writes the weakness set under :data:`WEAKNESS_KEY`.

    The set holds question *texts*. It is serialized as a sorted JSON array
    of strings.
    """

    def __init__(self, store: KeyValueStore, *, key: str = WEAKNESS_KEY) -> None:
        self._store = store
        self._key = key

    def load(self) -> set[str]:
        raw = self._store.get(self._key)
        if raw is None:
            return set()
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(
                "Ignoring unreadable weakness payload", extra={"key": self._key}
            )
            return set()
        if not isinstance(data, list):
            logger.warning(
                "Ignoring non-list weakness payload", extra={"key": self._key}
            )
            return set()
        return {item for item in data if isinstance(item, str)}

    def save(self, weaknesses: Iterable[str]) -> None:
        items = sorted(set(weaknesses))
        self._store.set(self._key, json.dumps(items, ensure_ascii=False))
        logger.info("Saved weaknesses", extra={"count": len(items)})

    def clear(self) -> None:
        self.save(())


def _atomic_write_json(path: Path, payload: Mapping[str, Any]) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        handle = tempfile.NamedTemporaryFile(
            "w",
            delete=False,
            encoding="utf-8",
            dir=str(path.parent),
        )
        try:
            json.dump(payload, handle, indent=2, sort_keys=True, ensure_ascii=False)
            handle.flush()
            os.fsync(handle.fileno())
        finally:
            handle.close()
        os.replace(handle.name, path)
    except OSError as exc:
        raise StoreError(f"Failed to write store file: {path}") from exc
    try:
        path.chmod(0o600)
    except PermissionError:  # pragma: no cover - depends on filesystem
        pass
