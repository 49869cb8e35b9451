"""
Fetch-style HTTP client for asyncio.

Shares identical in-flight requests, races every request against a timeout,
and runs request/response interceptor chains. Built on httpx.
"""
from .types import (
    Method,
    Credentials,
    Mode,
    AjaxResult,
    AbortResult,
    ClientLifecycle,
    RequestCallback,
    ErrorRequestCallback,
    ResponseCallback,
    ErrorResponseCallback,
)
from .errors import (
    AbortError,
    FetchError,
    FetchErrorType,
    is_abort_error,
)
from .config import (
    AjaxConfig,
    DEFAULT_AJAX_CONFIG,
    DefaultSerializer,
    merge_config,
    validate_config,
)
from .fingerprint import fingerprint
from .interceptors import (
    AjaxInterceptors,
    Interceptors,
    run_request_interceptors,
    run_response_interceptors,
)
from .cancellation import AbortController, AbortSignal, with_timeout
from .dedup import CacheEntry, DedupCache, MemoryCacheEntryStore
from .core.request_builder import FormData
from .core.transport import FetchInit, FetchTransport, HttpxFetchTransport
from .core.invoker import RequestInvoker
from .client import Ajax, create_ajax

__all__ = [
    # Types
    "Method",
    "Credentials",
    "Mode",
    "AjaxResult",
    "AbortResult",
    "ClientLifecycle",
    "RequestCallback",
    "ErrorRequestCallback",
    "ResponseCallback",
    "ErrorResponseCallback",
    # Errors
    "AbortError",
    "FetchError",
    "FetchErrorType",
    "is_abort_error",
    # Config
    "AjaxConfig",
    "DEFAULT_AJAX_CONFIG",
    "DefaultSerializer",
    "merge_config",
    "validate_config",
    # Fingerprint
    "fingerprint",
    # Interceptors
    "AjaxInterceptors",
    "Interceptors",
    "run_request_interceptors",
    "run_response_interceptors",
    # Cancellation
    "AbortController",
    "AbortSignal",
    "with_timeout",
    # Dedup cache
    "CacheEntry",
    "DedupCache",
    "MemoryCacheEntryStore",
    # Transport
    "FormData",
    "FetchInit",
    "FetchTransport",
    "HttpxFetchTransport",
    "RequestInvoker",
    # Client
    "Ajax",
    "create_ajax",
]

__version__ = "0.1.0"
