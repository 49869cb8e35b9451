"""
Request fingerprinting for the dedup cache.
"""
import hashlib
import json
from typing import Any

from .config import AjaxConfig


def _serialize_data(data: Any) -> str:
    if data is None:
        return ""
    if isinstance(data, str):
        return data
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return json.dumps(data, ensure_ascii=False, default=repr)


def fingerprint(config: AjaxConfig) -> str:
    """Derive the cache key of a request.

    The key covers base URL, URL, method and serialized data. Missing base
    URL or data count as empty strings, so a request without ``base_url``
    and one with ``base_url=""`` share a key.

    ``query`` and headers are not part of the key: two non-GET calls that
    differ only in ``query`` share one request. GET data ends up in the URL
    query but is covered through ``data``. The SHA-256 digest is only a
    compact, uniform key, not a security boundary.
    """
    components = [
        config.base_url or "",
        config.url or "",
        (config.method or "").upper(),
        _serialize_data(config.data),
    ]
    hasher = hashlib.sha256()
    hasher.update(json.dumps(components, ensure_ascii=False).encode())
    return hasher.hexdigest()
