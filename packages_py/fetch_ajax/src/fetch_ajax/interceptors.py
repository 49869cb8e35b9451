"""
Request and response interceptor chains.

Request interceptors run synchronously on the merged config before the
request is dispatched. Response interceptors are folded over the outcome of
the request, one link after another, like chained ``then(ok, err)`` calls.
"""
import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Generic, List, Optional, Tuple, TypeVar

from .config import AjaxConfig

logger = logging.getLogger("fetch_ajax.interceptors")

F = TypeVar("F", bound=Callable[..., Any])
E = TypeVar("E", bound=Callable[..., Any])


class Interceptors(Generic[F, E]):
    """Ordered registry of (on_fulfilled, on_rejected) pairs.

    ``use`` returns the slot index of the pair. Ejecting a pair leaves an
    empty slot behind, so handles returned earlier stay valid and are never
    reused.
    """

    def __init__(self) -> None:
        self._slots: List[Optional[Tuple[Optional[F], Optional[E]]]] = []

    def use(self, on_fulfilled: Optional[F] = None, on_rejected: Optional[E] = None) -> int:
        """Append a pair to the chain and return its handle."""
        self._slots.append((on_fulfilled, on_rejected))
        return len(self._slots) - 1

    def eject(self, handle: int) -> bool:
        """Remove the pair registered under ``handle``."""
        if 0 <= handle < len(self._slots) and self._slots[handle] is not None:
            self._slots[handle] = None
            return True
        return False

    def handlers(self) -> List[Tuple[Optional[F], Optional[E]]]:
        """Snapshot of the live pairs in registration order."""
        return [slot for slot in self._slots if slot is not None]

    def clear(self) -> None:
        """Eject every pair. Existing handles stay unique."""
        self._slots = [None] * len(self._slots)

    def __len__(self) -> int:
        return len(self.handlers())


@dataclass
class AjaxInterceptors:
    """Request and response chains of one client."""

    request: Interceptors = field(default_factory=Interceptors)
    response: Interceptors = field(default_factory=Interceptors)


def run_request_interceptors(
    chain: Interceptors,
    config: AjaxConfig,
) -> AjaxConfig:
    """Run the request chain over ``config``.

    Each link receives the config produced by the previous one and may either
    mutate it in place or return a replacement. A link that raises has its
    error handler called and the chain goes on with the config as it stands.
    """
    current = config
    for on_fulfilled, on_rejected in chain.handlers():
        if on_fulfilled is None:
            continue
        try:
            result = on_fulfilled(current)
            if isinstance(result, AjaxConfig):
                current = result
        except Exception as error:
            logger.debug(f"run_request_interceptors: interceptor raised {error!r}")
            if on_rejected is None:
                continue
            try:
                on_rejected(error)
            except Exception:
                logger.exception("run_request_interceptors: request error handler raised")
    return current


async def _settle(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


async def run_response_interceptors(
    handlers: List[Tuple[Optional[Callable[..., Any]], Optional[Callable[..., Any]]]],
    operation: Awaitable[Any],
) -> Any:
    """Fold the response handlers over the outcome of ``operation``.

    The outcome is carried forward as success or failure. Each link applies
    its matching handler (sync or async); a missing handler passes the outcome
    through unchanged, and an error raised by link i is what link i + 1 sees.
    """
    failed = False
    error: Optional[BaseException] = None
    value: Any = None
    try:
        value = await operation
    except Exception as exc:
        failed, error = True, exc

    for on_fulfilled, on_rejected in handlers:
        handler = on_rejected if failed else on_fulfilled
        if handler is None:
            continue
        try:
            value = await _settle(handler(error if failed else value))
            failed, error = False, None
        except Exception as exc:
            failed, error = True, exc

    if failed:
        raise error
    return value
