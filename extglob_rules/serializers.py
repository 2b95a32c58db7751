from __future__ import annotations

import time
from typing import Any, Dict, Tuple

import msgpack


def serialize_translation(pattern: str, source: str, version: str) -> bytes:
    """Pack a translated pattern into a compact msgpack blob.

    The pattern itself is stored alongside the source so a reader can
    detect key collisions instead of trusting the key alone.
    """
    payload: Dict[str, Any] = {
        "pattern": pattern,
        "source": source,
        "version": version,
        "cached_at": time.time(),
    }
    return msgpack.packb(payload, use_bin_type=True)


def deserialize_translation(data: bytes, pattern: str, version: str) -> Tuple[str, float]:
    """Unpack a blob written by :func:`serialize_translation`.

    Returns:
        Tuple of (regex source, cached_at timestamp)

    Raises:
        ValueError: if the blob is malformed or belongs to another pattern
            or cache version
    """
    payload = msgpack.unpackb(data, raw=False)
    if not isinstance(payload, dict):
        raise ValueError("translation entry is not a map")
    if payload.get("pattern") != pattern:
        raise ValueError(f"entry holds pattern {payload.get('pattern')!r}, expected {pattern!r}")
    if payload.get("version") != version:
        raise ValueError(f"entry version {payload.get('version')!r} does not match {version!r}")
    source = payload.get("source")
    if not isinstance(source, str):
        raise ValueError("translation entry has no source")
    return source, float(payload.get("cached_at", 0.0))
