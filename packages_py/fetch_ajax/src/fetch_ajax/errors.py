"""
Error types for fetch_ajax.

Every failure of an ajax call is raised as a FetchError; its ``type`` tells
which stage produced it.
"""
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Optional, Union

if TYPE_CHECKING:
    import httpx

    from .config import AjaxConfig


class FetchErrorType(str, Enum):
    """Kind of failure carried by a FetchError."""

    NETWORK = "network"
    TIMEOUT = "timeout"
    HTTP = "http"
    STOP = "stop"


class AbortError(Exception):
    """Raised by a transport when its abort signal fires mid-request."""

    def __init__(self, reason: Any = None) -> None:
        super().__init__(str(reason) if reason is not None else "The operation was aborted")
        self.reason = reason


def _message_of(message: Union[str, BaseException, Dict[str, Any], Any]) -> str:
    if isinstance(message, str):
        return message
    if isinstance(message, BaseException):
        return str(message) or type(message).__name__
    if isinstance(message, dict):
        for key in ("message", "error", "detail"):
            value = message.get(key)
            if isinstance(value, str):
                return value
    return str(message)


class FetchError(Exception):
    """Unified error raised for network, timeout, HTTP and stop failures.

    Attributes:
        type: The FetchErrorType of the failure
        config: The AjaxConfig of the request that failed
        status: HTTP status (HTTP errors) or configured timeout status
        origin_error: The original, non-string error payload (exception or
            parsed error body), if any
        response: The raw httpx.Response when one was received
    """

    def __init__(
        self,
        message: Union[str, BaseException, Dict[str, Any], Any],
        type: FetchErrorType,
        config: Optional["AjaxConfig"] = None,
        status: Optional[int] = None,
        response: Optional["httpx.Response"] = None,
    ) -> None:
        super().__init__(_message_of(message))
        self.type = type
        self.config = config
        self.status = status
        self.response = response
        self.origin_error = None if isinstance(message, str) else message

    @property
    def message(self) -> str:
        return str(self)

    def __repr__(self) -> str:
        return (
            f"FetchError(type={self.type.value!r}, status={self.status!r}, "
            f"message={str(self)!r})"
        )


def is_abort_error(err: BaseException) -> bool:
    """Return True if err is (or wraps) a cancellation-triggered abort."""
    if isinstance(err, AbortError):
        return True
    if isinstance(err, FetchError) and isinstance(err.origin_error, AbortError):
        return True
    return False
