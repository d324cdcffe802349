"""Self-refreshing, thread-safe key-value cache.

A :class:`RefreshableCache` holds a mapping that a background thread replaces
wholesale every ``refresh_interval`` with whatever the configured loader
returns. Callers can read, write single entries, clear, take immutable
snapshots and ask for an immediate refresh; direct writes are visible at once
and are overwritten by the next refresh.

Usage
-----
    with (
        RefreshableCache.builder()
        .frequency(timedelta(seconds=30))
        .supplier(load_topics)
        .build()
    ) as cache:
        cache.get("orders")
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Hashable
from datetime import timedelta
from enum import Enum
from typing import Any, Generic, Mapping, Optional, TypeVar, Union

from .config.models import (
    DEFAULT_CACHE_NAME,
    Loader,
    RefreshConfig,
    validate_interval,
)
from .exceptions import ClosedCache, InvalidArgument
from .utils.scheduler import CacheStats, RefreshScheduler
from .utils.snapshot_store import SnapshotStore

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

_MISSING: Any = object()


class CacheState(Enum):
    """Cache lifecycle states."""

    OPEN = "open"
    CLOSED = "closed"  # Terminal


class RefreshableCacheBuilder(Generic[K, V]):
    """Collects cache parameters; nothing is started until :meth:`build`."""

    def __init__(self) -> None:
        self._interval: Optional[timedelta] = None
        self._loader: Optional[Loader] = None
        self._name = DEFAULT_CACHE_NAME
        self._close_timeout: Optional[float] = None

    def frequency(
        self, interval: Union[timedelta, float]
    ) -> "RefreshableCacheBuilder[K, V]":
        """Set the refresh interval (a timedelta or a number of seconds)."""
        self._interval = validate_interval(interval)
        return self

    def supplier(self, loader: Loader) -> "RefreshableCacheBuilder[K, V]":
        """Set the zero-argument callable producing the cache content."""
        if loader is None:
            raise InvalidArgument("supplier can't be None")
        if not callable(loader):
            raise InvalidArgument(f"supplier must be callable, got {loader!r}")
        self._loader = loader
        return self

    def name(self, name: str) -> "RefreshableCacheBuilder[K, V]":
        if not name:
            raise InvalidArgument("name can't be empty")
        self._name = name
        return self

    def close_timeout(self, seconds: float) -> "RefreshableCacheBuilder[K, V]":
        """Bound how long :meth:`RefreshableCache.close` waits for the worker."""
        self._close_timeout = seconds
        return self

    def build(self) -> "RefreshableCache[K, V]":
        if self._interval is None:
            raise InvalidArgument("frequency is required")
        if self._loader is None:
            raise InvalidArgument("supplier is required")
        values: dict = {
            "refresh_interval": self._interval,
            "loader": self._loader,
            "name": self._name,
        }
        if self._close_timeout is not None:
            values["close_timeout_seconds"] = self._close_timeout
        return RefreshableCache(RefreshConfig.create(**values))


class RefreshableCache(Generic[K, V]):
    """In-memory cache refreshed by a single background thread.

    All data operations raise :class:`ClosedCache` once :meth:`close` has
    been called. Use the cache as a context manager to close it on every
    exit path.
    """

    def __init__(self, config: RefreshConfig) -> None:
        self.config = config
        self._store: SnapshotStore[K, V] = SnapshotStore()
        self._scheduler = RefreshScheduler(
            config.name, config.interval_seconds, config.loader, self._store
        )
        self._state = CacheState.OPEN
        self._state_lock = threading.Lock()
        self._scheduler.start()
        logger.info(
            f"refreshable_cache.{config.name}.opened",
            extra={"interval_seconds": config.interval_seconds},
        )

    @staticmethod
    def builder() -> RefreshableCacheBuilder[Any, Any]:
        return RefreshableCacheBuilder()

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def state(self) -> CacheState:
        return self._state

    def _check_open(self, operation: str) -> None:
        if self._state is CacheState.CLOSED:
            raise ClosedCache(self.name, operation)

    @staticmethod
    def _check_key(key: Any) -> None:
        if key is None:
            raise InvalidArgument("key can't be None")

    def get(self, key: K) -> Optional[V]:
        """Return the value for `key`, or None if it is not cached."""
        self._check_open("get")
        self._check_key(key)
        return self._store.get(key)

    def put(self, key: Union[K, Mapping[K, V]], value: V = _MISSING) -> None:
        """Insert or overwrite entries.

        Called as ``put(key, value)`` for one entry or ``put(mapping)`` for
        several. The change is visible immediately and lasts until the next
        refresh replaces the content.
        """
        self._check_open("put")
        if value is _MISSING:
            if not isinstance(key, Mapping):
                raise InvalidArgument(
                    f"put() with one argument needs a mapping, got {key!r}"
                )
            for k, v in key.items():
                self._check_key(k)
                if v is None:
                    raise InvalidArgument(f"value for key {k!r} can't be None")
            self._store.upsert_all(key)
            return
        self._check_key(key)
        if value is None:
            raise InvalidArgument(f"value for key {key!r} can't be None")
        self._store.upsert(key, value)  # type: ignore[arg-type]

    def clear(self) -> None:
        self._check_open("clear")
        self._store.clear_all()

    def size(self) -> int:
        self._check_open("size")
        return self._store.size()

    def snapshot(self) -> Mapping[K, V]:
        """Return a read-only copy of the whole content."""
        self._check_open("snapshot")
        return self._store.read_snapshot()

    def request_update(self) -> None:
        """Trigger a refresh in the background and return immediately."""
        self._check_open("request update")
        self._scheduler.request()

    def stats(self) -> CacheStats:
        """Return refresh counters; still available after close."""
        return self._scheduler.stats()

    def close(self) -> None:
        """Stop the refresh thread and reject further operations.

        Waits for an in-flight refresh to finish, up to
        ``close_timeout_seconds``. Calling close again does nothing.
        """
        with self._state_lock:
            if self._state is CacheState.CLOSED:
                return
            self._state = CacheState.CLOSED
        stopped = self._scheduler.stop(self.config.close_timeout_seconds)
        logger.info(
            f"refreshable_cache.{self.name}.closed",
            extra={"worker_stopped": stopped},
        )

    def __len__(self) -> int:
        return self.size()

    def __contains__(self, key: object) -> bool:
        self._check_open("check membership")
        return self._store.contains(key)  # type: ignore[arg-type]

    def __enter__(self) -> "RefreshableCache[K, V]":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"RefreshableCache(name={self.name!r}, state={self._state.value}, "
            f"interval={self.config.refresh_interval})"
        )
