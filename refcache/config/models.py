"""Config models for the refreshable cache.

``RefreshConfig`` is the validated, immutable parameter set a cache is built
from. ``EnvSettings`` carries process-level defaults read from the
environment (and an optional ``.env`` file) with the ``REFCACHE_`` prefix.
"""

from __future__ import annotations

import math
from datetime import timedelta
from typing import Annotated, Any, Callable, Mapping

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..exceptions import InvalidArgument

DEFAULT_CACHE_NAME = "refreshable-cache"

Loader = Callable[[], Mapping[Any, Any]]


def _require_positive(value: timedelta) -> timedelta:
    if value <= timedelta(0):
        raise ValueError("refresh interval must be positive")
    return value


RefreshInterval = Annotated[timedelta, AfterValidator(_require_positive)]

_interval_adapter: TypeAdapter[timedelta] = TypeAdapter(RefreshInterval)
_MAX_INTERVAL_SECONDS = timedelta.max.total_seconds()


def validate_interval(value: Any) -> timedelta:
    """Coerce ``value`` to a positive :class:`~datetime.timedelta`.

    Accepts a ``timedelta`` or a number of seconds.

    Raises
    ------
    InvalidArgument
        If ``value`` is None, not a duration, not positive, or too large
        for a timedelta.
    """
    if value is None:
        raise InvalidArgument("refresh interval can't be None")
    if isinstance(value, bool):
        raise InvalidArgument(f"refresh interval must be a duration, got {value!r}")
    if isinstance(value, (int, float)) and not (
        math.isfinite(value) and value < _MAX_INTERVAL_SECONDS
    ):
        raise InvalidArgument(f"refresh interval out of range: {value!r}")
    try:
        return _interval_adapter.validate_python(value)
    except ValidationError as exc:
        raise InvalidArgument(f"invalid refresh interval {value!r}: {exc}") from exc


class RefreshConfig(BaseModel):
    """Immutable configuration of a single cache.

    Attributes
    ----------
    refresh_interval: timedelta
        Time between the end of one refresh and the start of the next.
    loader: Callable[[], Mapping]
        Zero-argument callable whose result replaces the cache content.
        Called on the background refresh thread.
    name: str
        Label used in log records and the worker thread name.
    close_timeout_seconds: float
        Upper bound on how long close() waits for the refresh thread.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    refresh_interval: RefreshInterval
    loader: Loader
    name: str = Field(DEFAULT_CACHE_NAME, min_length=1)
    close_timeout_seconds: float = Field(30.0, gt=0)

    @classmethod
    def create(cls, **values: Any) -> "RefreshConfig":
        """Validate ``values`` and raise :class:`InvalidArgument` on failure."""
        try:
            return cls.model_validate(values)
        except ValidationError as exc:
            raise InvalidArgument(str(exc)) from exc

    @property
    def interval_seconds(self) -> float:
        return self.refresh_interval.total_seconds()


class EnvSettings(BaseSettings):
    """Environment-driven settings and .env support.

    Attributes
    ----------
    log_level: str
        Logging level name (e.g., "DEBUG", "INFO"). Defaults to "INFO".
    default_interval_seconds: float
        Refresh interval used by the CLI when none is given. Defaults to 60.
    close_timeout_seconds: float
        Upper bound on how long ``close()`` waits for the refresh thread.
        Defaults to 30.
    """

    model_config = SettingsConfigDict(env_file=".env", env_prefix="REFCACHE_")

    log_level: str = Field("INFO")
    default_interval_seconds: float = Field(
        60.0,
        gt=0,
        description="Refresh interval used when none is configured explicitly",
    )
    close_timeout_seconds: float = Field(
        30.0,
        gt=0,
        description="Maximum seconds close() waits for the refresh thread",
    )
