"""Pytest configuration for test suite.

Ensures the project root is on ``sys.path`` so ``import refcache`` resolves
to the local sources regardless of the working directory pytest chooses, and
provides a polling helper for assertions about the background refresher.
"""

from __future__ import annotations

import logging
import sys
import time
from pathlib import Path
from typing import Callable

import pytest


def _ensure_project_root_on_syspath() -> None:
    project_root = Path(__file__).resolve().parents[1]
    project_root_str = str(project_root)
    if project_root_str not in sys.path:
        # Prepend to prefer local sources over site-packages
        sys.path.insert(0, project_root_str)


_ensure_project_root_on_syspath()


@pytest.fixture
def wait_until() -> Callable[..., bool]:
    """Return a helper that polls ``predicate`` until true or ``timeout`` ends."""

    def _wait(predicate: Callable[[], bool], timeout: float = 5.0) -> bool:
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if predicate():
                return True
            time.sleep(0.02)
        return predicate()

    return _wait


@pytest.fixture
def restore_logging():
    """Undo process-wide logging changes made by ``setup_logging``."""
    package_logger = logging.getLogger("refcache")
    root = logging.getLogger()
    saved_level = package_logger.level
    saved_root_level = root.level
    saved_handlers = list(root.handlers)
    yield
    package_logger.setLevel(saved_level)
    root.setLevel(saved_root_level)
    for handler in list(root.handlers):
        if handler not in saved_handlers:
            root.removeHandler(handler)
    structlog = sys.modules.get("structlog")
    if structlog is not None:
        structlog.reset_defaults()
