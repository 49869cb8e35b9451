"""
Request builder utilities for fetch_ajax.
"""
import logging
import re
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union
from urllib.parse import quote

from ..config import default_serializer

logger = logging.getLogger("fetch_ajax.request_builder")

GET_FAMILY_METHODS = frozenset({"GET", "HEAD"})

# Characters encodeURI leaves untouched besides letters, digits and "-_.~"
_ENCODE_URI_SAFE = ";,/?:@&=+$!*'()#"

_ABSOLUTE_URL = re.compile(r"^[a-zA-Z][a-zA-Z\d+\-.]*://")


class FormData:
    """Ordered multipart form fields. A name may appear more than once."""

    def __init__(self, fields: Optional[List[Tuple[str, Any]]] = None) -> None:
        self._fields: List[Tuple[str, Any]] = list(fields or [])

    def append(self, name: str, value: Any) -> None:
        self._fields.append((name, value))

    def get_all(self, name: str) -> List[Any]:
        return [value for key, value in self._fields if key == name]

    def __iter__(self) -> Iterator[Tuple[str, Any]]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __repr__(self) -> str:
        return f"FormData({[name for name, _ in self._fields]!r})"


def is_absolute_url(url: str) -> bool:
    return bool(_ABSOLUTE_URL.match(url))


def resolve_url(url: str, base_url: Optional[str] = None) -> str:
    """Join ``url`` onto ``base_url`` with exactly one slash between them.

    Absolute URLs are returned unchanged.
    """
    if not base_url or is_absolute_url(url):
        return url
    if not base_url.endswith("/"):
        base_url += "/"
    if url.startswith("/"):
        url = url[1:]
    return base_url + url


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    return str(value)


def encode_uri(value: str) -> str:
    """Percent-encode like JavaScript's encodeURI."""
    return quote(value, safe=_ENCODE_URI_SAFE)


def build_get_url(url: str, data: Any = None, is_encode_url: bool = False) -> str:
    """Append ``data`` to the query string of ``url``.

    Dict data becomes ``key=value`` pairs in insertion order. With
    ``is_encode_url`` the pairs are URI-encoded twice, matching servers that
    decode the query twice. String data is appended as is.
    """
    if isinstance(data, dict):
        pairs = [f"{key}={_format_value(value)}" for key, value in data.items()]
        if not pairs:
            return url
        extra = "&".join(pairs)
        if is_encode_url:
            extra = encode_uri(encode_uri(extra))
    elif data:
        extra = str(data)
    else:
        return url

    separator = "&" if "?" in url else "?"
    return f"{url}{separator}{extra}"


def build_form_data(data: Dict[str, Any]) -> FormData:
    """Build a multipart form from a dict; list-valued ``files`` are split."""
    form = FormData()
    for key, value in data.items():
        if key == "files" and isinstance(value, (list, tuple)):
            for file in value:
                form.append(key, file)
        else:
            form.append(key, value)
    return form


def build_body(
    data: Any = None,
    is_file: bool = False,
    serializer: Optional[Any] = None,
) -> Optional[Union[str, bytes, FormData]]:
    """Build the request body for a non-GET request."""
    if data is None:
        return None
    if isinstance(data, (FormData, str, bytes)):
        return data
    if is_file and isinstance(data, dict):
        return build_form_data(data)
    return (serializer or default_serializer).serialize(data)


def has_header(headers: Dict[str, str], name: str) -> bool:
    """Case-insensitive header presence check."""
    lower = name.lower()
    return any(key.lower() == lower for key in headers)


def ensure_content_type(
    headers: Dict[str, str],
    body: Any,
    content_type: Optional[str],
) -> Dict[str, str]:
    """Set a default content-type for serialized bodies unless one is present.

    Applies to every method that carries a body (PUT and POST, but also
    PATCH or DELETE with data), not only the two the config field is named
    after. FormData bodies are left alone so httpx can set the multipart
    boundary.
    """
    if body is None or isinstance(body, FormData) or not content_type:
        return headers
    if not has_header(headers, "content-type"):
        headers["content-type"] = content_type
    return headers
