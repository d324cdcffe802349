"""Lock-guarded holder of the cache's current mapping.

The store exposes a handful of primitive operations, each executed under one
lock, so readers never observe a half-applied change. Whole-content
replacement installs a fresh dict instead of mutating the old one in place,
which keeps two refresh generations from ever mixing.
"""

from __future__ import annotations

import threading
from collections.abc import Hashable
from types import MappingProxyType
from typing import Dict, Generic, Mapping, Optional, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class SnapshotStore(Generic[K, V]):
    """Thread-safe mapping that can be swapped as a whole."""

    def __init__(self, initial: Optional[Mapping[K, V]] = None) -> None:
        self._data: Dict[K, V] = dict(initial or {})
        self._lock = threading.Lock()

    def replace_all(self, mapping: Mapping[K, V]) -> None:
        """Discard the current content and install a copy of ``mapping``."""
        fresh = dict(mapping)
        with self._lock:
            self._data = fresh

    def upsert(self, key: K, value: V) -> None:
        """Insert or overwrite a single entry."""
        with self._lock:
            self._data[key] = value

    def upsert_all(self, mapping: Mapping[K, V]) -> None:
        """Insert or overwrite every entry of ``mapping`` in one step."""
        entries = dict(mapping)
        with self._lock:
            self._data.update(entries)

    def clear_all(self) -> None:
        with self._lock:
            self._data = {}

    def read_snapshot(self) -> Mapping[K, V]:
        """Return a read-only copy of the current content.

        Later changes to the store do not show up in the returned mapping,
        and the mapping itself cannot be mutated.
        """
        with self._lock:
            copy = dict(self._data)
        return MappingProxyType(copy)

    def get(self, key: K) -> Optional[V]:
        """Return value for `key` or None if missing."""
        with self._lock:
            return self._data.get(key)

    def contains(self, key: K) -> bool:
        with self._lock:
            return key in self._data

    def size(self) -> int:
        with self._lock:
            return len(self._data)
