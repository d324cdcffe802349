"""
Background refresh scheduling for the refreshable cache.

A single worker thread per cache waits for whichever comes first: the refresh
interval elapsing, a manual refresh request, or shutdown. Each wake-up other
than shutdown runs the loader exactly once and swaps the result into the
snapshot store. Loader failures are logged and counted, and the previous
snapshot stays in place.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from ..config.models import Loader
from ..exceptions import LoaderFailure
from .snapshot_store import SnapshotStore

logger = logging.getLogger(__name__)


class SchedulerState(Enum):
    """Refresh worker states."""

    IDLE = "idle"  # Waiting for the next tick or request
    RUNNING = "running"  # Loader in flight
    STOPPED = "stopped"  # Worker exited, terminal


@dataclass(frozen=True)
class CacheStats:
    """Point-in-time view of refresh activity.

    Attributes
    ----------
    refresh_count : int
        Number of loader runs whose result was installed.
    failure_count : int
        Number of loader runs that failed.
    last_refreshed_at : float, optional
        Epoch seconds of the last successful swap.
    last_error : str, optional
        Message of the most recent loader failure.
    """

    refresh_count: int = 0
    failure_count: int = 0
    last_refreshed_at: Optional[float] = None
    last_error: Optional[str] = None


class RefreshScheduler:  # pylint: disable=too-many-instance-attributes
    """
    Single-thread refresher feeding a :class:`SnapshotStore`.

    At most one loader call is ever in flight. Manual requests that arrive
    while a refresh is running collapse into a single follow-up run.
    """

    def __init__(
        self,
        name: str,
        interval_seconds: float,
        loader: Loader,
        store: SnapshotStore[Any, Any],
    ):
        """
        Initialize scheduler.

        Parameters
        ----------
        name : str
            Identifier used for the thread name and log events
        interval_seconds : float
            Delay between the end of one refresh and the start of the next
        loader : callable
            Zero-argument callable returning the new cache content
        store : SnapshotStore
            Store whose content is replaced on each successful refresh
        """
        self.name = name
        self.interval_seconds = interval_seconds
        self._loader = loader
        self._store = store
        self._cond = threading.Condition()
        self._requested = False
        self._stopping = False
        self._state = SchedulerState.IDLE
        self._stats = CacheStats()
        self._thread = threading.Thread(
            target=self._run, name=f"{name}-refresher", daemon=True
        )

    @property
    def state(self) -> SchedulerState:
        with self._cond:
            return self._state

    def is_alive(self) -> bool:
        return self._thread.is_alive()

    def stats(self) -> CacheStats:
        with self._cond:
            return self._stats

    def start(self) -> None:
        """Start the worker thread."""
        self._thread.start()
        logger.debug(
            f"refresh_scheduler.{self.name}.started",
            extra={"interval_seconds": self.interval_seconds},
        )

    def request(self) -> None:
        """Ask for a refresh as soon as the worker is free; never blocks on it."""
        with self._cond:
            self._requested = True
            self._cond.notify_all()

    def stop(self, timeout: Optional[float] = None) -> bool:
        """
        Signal shutdown and wait for the worker to exit.

        Parameters
        ----------
        timeout : float, optional
            Maximum seconds to wait; None waits for an in-flight loader call
            to finish however long it takes

        Returns
        -------
        bool
            True if the worker has exited; False on timeout or when called
            from the worker thread itself
        """
        with self._cond:
            self._stopping = True
            self._cond.notify_all()
        if threading.current_thread() is self._thread:
            # Called from the loader; the loop exits once this run returns
            logger.debug(f"refresh_scheduler.{self.name}.stop_from_worker")
            return False
        if self._thread.ident is not None:
            self._thread.join(timeout)
        stopped = not self._thread.is_alive()
        if not stopped:
            logger.warning(
                f"refresh_scheduler.{self.name}.stop_timeout",
                extra={"timeout": timeout},
            )
        return stopped

    def _wait_for_trigger(self, deadline: float) -> bool:
        """Block until the deadline passes or a request arrives.

        Returns False when shutdown was signalled instead. Must be called
        with the condition held.
        """
        while not self._stopping and not self._requested:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            self._cond.wait(min(remaining, threading.TIMEOUT_MAX))
        return not self._stopping

    def _run(self) -> None:
        deadline = time.monotonic() + self.interval_seconds
        while True:
            with self._cond:
                if not self._wait_for_trigger(deadline):
                    break
                manual = self._requested
                self._requested = False
                self._state = SchedulerState.RUNNING
            try:
                self._refresh_once(manual)
            except Exception as exc:
                self._record_failure(f"{type(exc).__name__}: {exc}")
                logger.exception(
                    f"refresh_scheduler.{self.name}.unexpected_error",
                    extra={"manual": manual},
                )
            finally:
                with self._cond:
                    self._state = SchedulerState.IDLE
            deadline = time.monotonic() + self.interval_seconds
        with self._cond:
            self._state = SchedulerState.STOPPED
        logger.debug(f"refresh_scheduler.{self.name}.stopped")

    def _load(self) -> Dict[Any, Any]:
        try:
            result = self._loader()
        except Exception as exc:
            message = f"{type(exc).__name__}: {exc}"
            raise LoaderFailure(self.name, message, exc) from exc
        if not isinstance(result, Mapping):
            raise LoaderFailure(
                self.name,
                f"loader returned {type(result).__name__}, expected a mapping",
            )
        # Lazy mappings may fail while being read
        try:
            return dict(result)
        except Exception as exc:
            message = f"reading loader result failed: {type(exc).__name__}: {exc}"
            raise LoaderFailure(self.name, message, exc) from exc

    def _record_failure(self, message: str) -> None:
        with self._cond:
            self._stats = replace(
                self._stats,
                failure_count=self._stats.failure_count + 1,
                last_error=message,
            )

    def _refresh_once(self, manual: bool) -> None:
        started = time.monotonic()
        try:
            mapping = self._load()
            self._store.replace_all(mapping)
        except LoaderFailure as failure:
            self._record_failure(str(failure))
            logger.error(
                f"refresh_scheduler.{self.name}.failed",
                exc_info=failure,
                extra={"manual": manual, "error": str(failure)},
            )
            return

        with self._cond:
            self._stats = replace(
                self._stats,
                refresh_count=self._stats.refresh_count + 1,
                last_refreshed_at=time.time(),
            )
        logger.debug(
            f"refresh_scheduler.{self.name}.refreshed",
            extra={
                "manual": manual,
                "entries": len(mapping),
                "duration_seconds": round(time.monotonic() - started, 4),
            },
        )
