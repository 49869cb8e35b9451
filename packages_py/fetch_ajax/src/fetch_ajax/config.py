"""
Configuration for fetch_ajax.
"""
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Union
import json

from .types import CacheMode, Credentials, Method, Mode

if TYPE_CHECKING:
    from .cancellation import AbortSignal


@dataclass
class AjaxConfig:
    """Request configuration.

    Every field is optional; ``None`` means "not set" and is filled from the
    client defaults by ``merge_config``. ``url`` is required by the time a
    call is dispatched.

    Flags:
    - is_file: build a multipart body from ``data`` (list-valued ``files``
      entries are appended one by one)
    - is_no_alert: do not send failure messages to the message sink
    - is_use_origin: return the raw httpx.Response instead of the parsed body
    - is_encode_url: double URI-encode query strings built from ``data``
    - is_out_stop: bypass ``stop_ajax()`` and ``abort_all()``

    Cache policy (``cache_timeout``, seconds):
    - None: drop the cache entry as soon as the call settles
    - 0: never share or store this call
    - > 0: keep the settled entry for that many seconds
    - < 0: keep the entry until explicitly cleared
    """

    url: Optional[str] = None
    method: Optional[Method] = None
    base_url: Optional[str] = None
    headers: Optional[Dict[str, str]] = None
    data: Optional[Any] = None
    query: Optional[Union[str, Dict[str, Union[str, int, float, bool]]]] = None
    timeout: Optional[float] = None
    timeout_error_message: Optional[str] = None
    timeout_error_status: Optional[int] = None
    stopped_error_message: Optional[str] = None
    credentials: Optional[Credentials] = None
    mode: Optional[Mode] = None
    cache: Optional[CacheMode] = None
    keepalive: Optional[bool] = None
    ignore: Optional[List[int]] = None
    is_file: Optional[bool] = None
    is_no_alert: Optional[bool] = None
    is_use_origin: Optional[bool] = None
    is_encode_url: Optional[bool] = None
    is_out_stop: Optional[bool] = None
    signal: Optional["AbortSignal"] = None
    cache_timeout: Optional[float] = None
    debug: Optional[bool] = None
    default_put_and_post_content_type: Optional[str] = None


# Fields copied by merge_config, in order. Anything not listed is never merged.
MERGEABLE_FIELDS = (
    "url",
    "method",
    "base_url",
    "headers",
    "data",
    "query",
    "timeout",
    "timeout_error_message",
    "timeout_error_status",
    "stopped_error_message",
    "credentials",
    "mode",
    "cache",
    "keepalive",
    "ignore",
    "is_file",
    "is_no_alert",
    "is_use_origin",
    "is_encode_url",
    "is_out_stop",
    "signal",
    "cache_timeout",
    "debug",
    "default_put_and_post_content_type",
)

DEFAULT_TIMEOUT = 120.0
DEFAULT_CONTENT_TYPE = "application/json; charset=UTF-8"

DEFAULT_AJAX_CONFIG = AjaxConfig(
    credentials="include",
    mode="cors",
    timeout=DEFAULT_TIMEOUT,
    timeout_error_message="timeout",
    timeout_error_status=504,
    stopped_error_message="Ajax has been stopped!",
    method="post",
    default_put_and_post_content_type=DEFAULT_CONTENT_TYPE,
    debug=False,
)


class DefaultSerializer:
    """Default JSON serializer."""

    def serialize(self, data: Any) -> str:
        """Serialize data to JSON string."""
        return json.dumps(data, ensure_ascii=False)

    def deserialize(self, text: str) -> Any:
        """Deserialize JSON string to data."""
        return json.loads(text)


default_serializer = DefaultSerializer()


def merge_config(
    base: Optional[AjaxConfig] = None,
    override: Optional[AjaxConfig] = None,
) -> AjaxConfig:
    """Merge ``override`` on top of ``base``.

    Only MERGEABLE_FIELDS are considered and ``None`` values in ``override``
    never replace a value from ``base``. Headers are combined key by key, and
    always copied so request interceptors can mutate the result without
    touching either input.
    """
    merged = replace(base) if base is not None else AjaxConfig()
    headers = dict(merged.headers or {})
    if override is not None:
        for name in MERGEABLE_FIELDS:
            value = getattr(override, name)
            if value is not None:
                setattr(merged, name, value)
        headers.update(override.headers or {})
    merged.headers = headers
    if merged.ignore is not None:
        merged.ignore = list(merged.ignore)
    return merged


def config_from_options(
    config: Optional[AjaxConfig] = None,
    **options: Any,
) -> AjaxConfig:
    """Build an AjaxConfig from an optional config plus keyword overrides."""
    unknown = set(options) - set(MERGEABLE_FIELDS)
    if unknown:
        raise TypeError(f"Unknown ajax option(s): {sorted(unknown)}")
    return merge_config(config, AjaxConfig(**options))


def validate_config(config: AjaxConfig) -> None:
    """Validate a merged request configuration."""
    if not config.url:
        raise ValueError("url is required")

    if not config.method:
        raise ValueError("method is required")

    if config.timeout is not None and config.timeout < 0:
        raise ValueError(f"Invalid timeout: {config.timeout}")
