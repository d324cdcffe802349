"""Tests for cache builder validation."""

from __future__ import annotations

import threading
from datetime import timedelta

import pytest

from refcache import InvalidArgument, RefreshableCache, RefreshableCacheBuilder


def _loader():
    return {"k": "v"}


def test_null_frequency():
    with pytest.raises(InvalidArgument):
        RefreshableCache.builder().frequency(None)


def test_null_supplier():
    with pytest.raises(InvalidArgument):
        RefreshableCache.builder().supplier(None)


def test_non_callable_supplier():
    with pytest.raises(InvalidArgument, match="callable"):
        RefreshableCache.builder().supplier({"k": "v"})


@pytest.mark.parametrize("interval", [0, -1, timedelta(0), timedelta(seconds=-5)])
def test_non_positive_frequency(interval):
    with pytest.raises(InvalidArgument):
        RefreshableCache.builder().frequency(interval)


@pytest.mark.parametrize("interval", ["soon", True, object()])
def test_frequency_must_be_duration(interval):
    with pytest.raises(InvalidArgument):
        RefreshableCache.builder().frequency(interval)


def test_empty_name():
    with pytest.raises(InvalidArgument):
        RefreshableCache.builder().name("")


def test_build_requires_frequency_and_supplier():
    """Test build fails before any worker thread starts."""
    threads_before = threading.active_count()

    with pytest.raises(InvalidArgument, match="frequency"):
        RefreshableCache.builder().supplier(_loader).build()
    with pytest.raises(InvalidArgument, match="supplier"):
        RefreshableCache.builder().frequency(timedelta(seconds=1)).build()

    assert threading.active_count() <= threads_before


def test_invalid_close_timeout_fails_at_build():
    builder = (
        RefreshableCache.builder()
        .frequency(timedelta(seconds=1))
        .supplier(_loader)
        .close_timeout(0)
    )
    with pytest.raises(InvalidArgument):
        builder.build()


def test_build_produces_open_empty_cache():
    """Test a built cache starts empty and carries its configuration."""
    builder = RefreshableCache.builder()
    assert isinstance(builder, RefreshableCacheBuilder)

    with (
        builder.frequency(1.5).supplier(_loader).name("topics").build()
    ) as cache:
        assert cache.size() == 0
        assert cache.name == "topics"
        assert cache.config.refresh_interval == timedelta(seconds=1.5)
        assert cache.config.loader is _loader
        assert any(t.name == "topics-refresher" for t in threading.enumerate())
