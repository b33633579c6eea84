from __future__ import annotations

import json
import threading
from contextlib import contextmanager
from typing import Any, Iterator, Optional, Protocol

from ..core.constants import STORAGE_PREFIX


class Store(Protocol):
    """Key-value blob store. No transactions, no partial writes mid-call."""

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, blob: str) -> None:
        raise NotImplementedError


class InMemoryStore(Store):
    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, blob: str) -> None:
        self._data[key] = blob

    def keys(self) -> list[str]:
        return sorted(self._data)


class UnitOfWork:
    """Serializes read-modify-write sequences against one shared store.

    Re-entrant: a tally issue that marks attendance that recomputes
    evolution runs inside a single critical section.
    """

    def __init__(self):
        self._lock = threading.RLock()

    @contextmanager
    def atomic(self) -> Iterator[None]:
        with self._lock:
            yield


class JsonCollection:
    """A list of JSON rows persisted as one blob under a namespaced key."""

    def __init__(self, store: Store, name: str):
        self._store = store
        self._key = f"{STORAGE_PREFIX}{name}"

    @property
    def key(self) -> str:
        return self._key

    def load(self) -> list[dict[str, Any]]:
        raw = self._store.get(self._key)
        if not raw:
            return []
        rows = json.loads(raw)
        return list(rows or [])

    def save(self, rows: list[dict[str, Any]]) -> None:
        self._store.set(self._key, json.dumps(rows, ensure_ascii=False))

    def upsert(self, row: dict[str, Any], *, key_field: str = "id") -> None:
        rows = self.load()
        for idx, existing in enumerate(rows):
            if existing.get(key_field) == row[key_field]:
                rows[idx] = row
                break
        else:
            rows.append(row)
        self.save(rows)


class JsonDocument:
    """A single JSON object persisted under a namespaced key."""

    def __init__(self, store: Store, name: str):
        self._store = store
        self._key = f"{STORAGE_PREFIX}{name}"

    def load(self) -> Optional[dict[str, Any]]:
        raw = self._store.get(self._key)
        if not raw:
            return None
        return json.loads(raw)

    def save(self, doc: dict[str, Any]) -> None:
        self._store.set(self._key, json.dumps(doc, ensure_ascii=False))
