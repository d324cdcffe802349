"""Command-line interface to mirror a JSON file in a refreshable cache.

The file is re-read on every refresh interval. With ``--once`` a single
refresh is requested and the resulting snapshot is printed as JSON; otherwise
the command keeps running and logs the cache size until interrupted.

Usage
-----
    python -m refcache.cli --source topics.json --interval 10
    python -m refcache.cli --source topics.json --once
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
import time
from typing import Optional, Sequence

from .cache import RefreshableCache
from .exceptions import InvalidArgument
from .config.models import EnvSettings
from .loaders import json_file_loader
from .observability import setup_logging

logger = logging.getLogger(__name__)


def _wait_for_first_refresh(cache: RefreshableCache, wait_seconds: float) -> bool:
    """Poll the cache stats until one refresh attempt finished or time runs out."""
    deadline = time.monotonic() + wait_seconds
    while time.monotonic() < deadline:
        stats = cache.stats()
        if stats.refresh_count or stats.failure_count:
            return stats.refresh_count > 0
        time.sleep(0.05)
    return cache.stats().refresh_count > 0


def _run_once(cache: RefreshableCache, wait_seconds: float) -> None:
    cache.request_update()
    if not _wait_for_first_refresh(cache, wait_seconds):
        logger.error(
            "cli.refresh_failed",
            extra={"last_error": cache.stats().last_error, "wait": wait_seconds},
        )
        raise SystemExit(1)
    snapshot = dict(cache.snapshot())
    json.dump(snapshot, sys.stdout, indent=2, sort_keys=True, default=str)
    sys.stdout.write("\n")


def _run_forever(cache: RefreshableCache) -> None:
    try:
        while True:
            time.sleep(cache.config.interval_seconds)
            stats = cache.stats()
            logger.info(
                "cli.status",
                extra={
                    "entries": cache.size(),
                    "refresh_count": stats.refresh_count,
                    "failure_count": stats.failure_count,
                },
            )
    except KeyboardInterrupt:
        pass


def main(argv: Optional[Sequence[str]] = None) -> None:
    """CLI entrypoint for mirroring a JSON file.

    Provides two modes:
    - foreground loop (default) that logs status every interval
    - one-shot mode with --once that prints the loaded snapshot
    """
    settings = EnvSettings()
    parser = argparse.ArgumentParser(description="Refreshable cache CLI")
    parser.add_argument("--source", required=True, help="Path to a JSON object file")
    parser.add_argument(
        "--interval",
        type=float,
        default=settings.default_interval_seconds,
        help="Refresh interval in seconds",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Refresh once, print the snapshot as JSON and exit",
    )
    parser.add_argument(
        "--wait",
        type=float,
        default=5.0,
        help="Seconds to wait for the refresh in --once mode (default 5)",
    )
    parser.add_argument(
        "--log-level",
        dest="log_level",
        choices=[
            "CRITICAL",
            "ERROR",
            "WARNING",
            "INFO",
            "DEBUG",
        ],
        help="Logging level (overrides environment)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (once sets DEBUG)",
    )
    args = parser.parse_args(argv)

    # Determine effective log level
    env_level = settings.log_level.upper()
    effective_level = args.log_level or ("DEBUG" if args.verbose > 0 else env_level)
    setup_logging(effective_level)

    try:
        builder = (
            RefreshableCache.builder()
            .name(f"file:{os.path.basename(args.source)}")
            .frequency(args.interval)
            .supplier(json_file_loader(args.source))
            .close_timeout(settings.close_timeout_seconds)
        )
    except InvalidArgument as exc:
        parser.error(f"--interval: {exc}")

    with builder.build() as cache:
        if args.once:
            _run_once(cache, args.wait)
        else:
            _run_forever(cache)


if __name__ == "__main__":
    main()
