"""Exception hierarchy for the refreshable cache.

Caller-facing errors (:class:`InvalidArgument`, :class:`ClosedCache`) are
raised synchronously from the call that triggered them. :class:`LoaderFailure`
only ever lives on the background refresh thread, where it is logged.
"""

from __future__ import annotations

from typing import Optional


class RefreshableCacheError(Exception):
    """Base class for all refcache errors."""


class InvalidArgument(RefreshableCacheError, ValueError):
    """A required argument was missing or not acceptable."""


class ClosedCache(RefreshableCacheError, RuntimeError):
    """An operation was attempted on a cache that has been closed."""

    def __init__(self, name: str, operation: str) -> None:
        super().__init__(f"Cache '{name}' is closed; cannot {operation}")
        self.name = name
        self.operation = operation


class LoaderFailure(RefreshableCacheError):
    """The loader raised, or returned something that is not a mapping.

    Attributes
    ----------
    name : str
        Name of the cache whose refresh failed.
    cause : Exception, optional
        The original exception raised by the loader, if any.
    """

    def __init__(
        self, name: str, message: str, cause: Optional[BaseException] = None
    ) -> None:
        super().__init__(f"Refresh of cache '{name}' failed: {message}")
        self.name = name
        self.cause = cause
