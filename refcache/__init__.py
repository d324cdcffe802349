"""
Refreshable cache package.

A thread-safe in-memory key-value cache whose content is periodically
replaced by a user-supplied loader, with point writes, manual refresh and
immutable snapshots. See README.md for usage.
"""

from .__version__ import __version__
from .cache import CacheState, CacheStats, RefreshableCache, RefreshableCacheBuilder
from .exceptions import (
    ClosedCache,
    InvalidArgument,
    LoaderFailure,
    RefreshableCacheError,
)

__all__ = [
    "__version__",
    "CacheState",
    "CacheStats",
    "ClosedCache",
    "InvalidArgument",
    "LoaderFailure",
    "RefreshableCache",
    "RefreshableCacheBuilder",
    "RefreshableCacheError",
]
