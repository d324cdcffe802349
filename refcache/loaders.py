"""Ready-made loader factories.

A loader is any zero-argument callable returning a mapping. The helpers here
cover the two common cases: mirroring a JSON document on disk and serving a
fixed mapping. JSON parsing prefers `orjson` when available, falling back to
the standard library's `json` module so `orjson` stays optional.
"""

from __future__ import annotations

import json as _json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Union

try:
    import orjson as _orjson_mod  # type: ignore[assignment]
except ImportError:  # pragma: no cover - optional dependency
    _orjson_mod = None  # type: ignore[assignment]
    _loads_orjson: Optional[Callable[[bytes], Any]] = None
else:

    def _loads_orjson(buf: bytes) -> Any:
        loader = getattr(_orjson_mod, "loads")  # type: ignore[assignment]
        return loader(buf)


logger = logging.getLogger(__name__)


def _parse_json(raw: bytes) -> Any:
    if _loads_orjson is not None:
        return _loads_orjson(raw)
    return _json.loads(raw.decode("utf-8"))


def json_file_loader(path: Union[str, Path]) -> Callable[[], Dict[str, Any]]:
    """Return a loader that re-reads a JSON object from `path` on every call.

    Parameters
    ----------
    path: str or Path
        File holding a single JSON object; its top-level keys become the
        cache keys.

    Raises
    ------
    ValueError
        From the returned loader, when the document is not a JSON object.
    OSError
        From the returned loader, when the file cannot be read.
    """
    source = Path(path)

    def load() -> Dict[str, Any]:
        raw = source.read_bytes()
        data = _parse_json(raw)
        if not isinstance(data, dict):
            raise ValueError(
                f"{source} must contain a JSON object, got {type(data).__name__}"
            )
        logger.debug(
            "loaders.json_file.read",
            extra={"path": str(source), "entries": len(data)},
        )
        return data

    return load


def static_loader(mapping: Mapping[Any, Any]) -> Callable[[], Dict[Any, Any]]:
    """Return a loader that always yields a fresh copy of `mapping`."""
    frozen = dict(mapping)

    def load() -> Dict[Any, Any]:
        return dict(frozen)

    return load
