"""
Cooperative cancellation and the timeout race.

An AbortController owns an AbortSignal. Transports watch the signal and drop
the in-flight request when it fires. ``with_timeout`` races an operation
against a timer and aborts through the same controller when the timer wins.
"""
import asyncio
import logging
from typing import Any, Awaitable, Callable, List, Optional, TypeVar

from .errors import AbortError

logger = logging.getLogger("fetch_ajax.cancellation")

T = TypeVar("T")


class AbortSignal:
    """Read side of an AbortController."""

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason: Any = None
        self._listeners: List[Callable[[Any], None]] = []

    @property
    def aborted(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> Any:
        return self._reason

    async def wait(self) -> Any:
        """Wait until the signal fires and return the abort reason."""
        await self._event.wait()
        return self._reason

    def throw_if_aborted(self) -> None:
        if self.aborted:
            raise AbortError(self._reason)

    def add_listener(self, listener: Callable[[Any], None]) -> Callable[[], None]:
        """Call ``listener(reason)`` on abort. Returns an unsubscribe function."""
        if self.aborted:
            listener(self._reason)
            return lambda: None
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener) if listener in self._listeners else None

    def _fire(self, reason: Any) -> None:
        self._reason = reason
        self._event.set()
        listeners, self._listeners = self._listeners, []
        for listener in listeners:
            try:
                listener(reason)
            except Exception:
                logger.exception("AbortSignal: listener raised")


class AbortController:
    """Produces an AbortSignal and triggers it."""

    def __init__(self) -> None:
        self.signal = AbortSignal()

    def abort(self, reason: Any = None) -> None:
        """Fire the signal. Aborting twice is a no-op."""
        if self.signal.aborted:
            return
        logger.debug(f"AbortController.abort: reason={reason!r}")
        self.signal._fire(reason)


def _consume_outcome(task: "asyncio.Future[Any]") -> None:
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.debug(f"with_timeout: abandoned operation finished with {error!r}")


async def with_timeout(
    operation: Awaitable[T],
    timeout: Optional[float],
    on_timeout: Callable[[], BaseException],
) -> T:
    """Race ``operation`` against a ``timeout`` second timer.

    If the timer fires first, ``on_timeout()`` is called (it is expected to
    abort the operation's controller) and the exception it returns is raised.
    Should ``on_timeout`` itself raise, that exception settles the race.
    If the operation settles first the timer is cancelled. With ``timeout``
    None no timer is armed.
    """
    if timeout is None:
        return await operation

    loop = asyncio.get_running_loop()
    task = asyncio.ensure_future(operation)
    deadline: "asyncio.Future[T]" = loop.create_future()

    def _expire() -> None:
        if task.done() or deadline.done():
            return
        try:
            error = on_timeout()
        except Exception as exc:
            logger.exception("with_timeout: on_timeout raised")
            error = exc
        deadline.set_exception(error)

    timer = loop.call_later(timeout, _expire)
    try:
        await asyncio.wait({task, deadline}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        task.cancel()
        deadline.cancel()
        raise
    finally:
        timer.cancel()

    if deadline.done():
        task.add_done_callback(_consume_outcome)
        return deadline.result()

    deadline.cancel()
    return task.result()
