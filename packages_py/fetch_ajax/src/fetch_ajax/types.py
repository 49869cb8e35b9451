"""
Type definitions for fetch_ajax.
"""
import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import (
    TYPE_CHECKING,
    Any,
    Awaitable,
    Callable,
    Generator,
    Generic,
    Literal,
    Optional,
    TypeVar,
    Union,
)

if TYPE_CHECKING:
    from .cancellation import AbortController
    from .config import AjaxConfig
    from .errors import FetchError

T = TypeVar("T")

# HTTP methods (both cases accepted, normalized to upper case on the wire)
Method = Literal[
    "get", "GET",
    "delete", "DELETE",
    "head", "HEAD",
    "options", "OPTIONS",
    "post", "POST",
    "put", "PUT",
    "patch", "PATCH",
    "purge", "PURGE",
    "link", "LINK",
    "unlink", "UNLINK",
]

# Cookie policy:
# - omit: never send cookies
# - same-origin: send cookies only to the transport's origin
# - include: always send cookies
Credentials = Literal["omit", "include", "same-origin"]

# Cross-origin policy:
# - same-origin: refuse requests to another origin
# - cors / no-cors: no restriction
Mode = Literal["same-origin", "cors", "no-cors"]

CacheMode = Literal[
    "default", "no-store", "reload", "no-cache", "force-cache", "only-if-cached"
]

# Interceptor callbacks
RequestCallback = Callable[["AjaxConfig"], Optional["AjaxConfig"]]
ErrorRequestCallback = Callable[[BaseException], Any]
ResponseCallback = Callable[[Any], Union[Any, Awaitable[Any]]]
ErrorResponseCallback = Callable[[BaseException], Union[Any, Awaitable[Any]]]


class ClientLifecycle(str, Enum):
    """Lifecycle of an Ajax client. There is no transition back to ACTIVE."""

    ACTIVE = "active"
    STOPPED = "stopped"


@dataclass
class AjaxResult:
    """Internal result of dispatching a call: the shared future and its controls."""

    future: "asyncio.Future[Any]"
    config: "AjaxConfig"
    controller: Optional["AbortController"] = None


@dataclass
class AbortResult(Generic[T]):
    """Result of ``ajax_abort_result``: the pending call plus an abort lever.

    The instance is awaitable, so ``await result`` is equivalent to
    ``await result.promise``.
    """

    promise: "asyncio.Future[T]"
    abort: Callable[[], None]

    def __await__(self) -> Generator[Any, None, T]:
        return asyncio.shield(self.promise).__await__()
