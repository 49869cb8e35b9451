"""
Ajax client: merges configuration, runs the interceptor chains and shares
identical in-flight requests.
"""
import asyncio
import logging
import time
from typing import Any, Optional

import httpx

from .cancellation import AbortController, with_timeout
from .config import (
    DEFAULT_AJAX_CONFIG,
    AjaxConfig,
    config_from_options,
    merge_config,
    validate_config,
)
from .console import print_message
from .core.invoker import RequestInvoker
from .core.transport import FetchTransport, HttpxFetchTransport
from .dedup import CacheEntry, DedupCache
from .errors import FetchError, FetchErrorType
from .fingerprint import fingerprint
from .interceptors import (
    AjaxInterceptors,
    run_request_interceptors,
    run_response_interceptors,
)
from .types import AbortResult, AjaxResult, ClientLifecycle

logger = logging.getLogger("fetch_ajax.client")


class Ajax:
    """HTTP request client with request sharing, timeouts and interceptors.

    Example:
        ajax = Ajax(AjaxConfig(base_url="https://api.example.com"))
        ajax.interceptors.request.use(lambda config: config.headers.update(token="abc"))

        users = await ajax.get("/users", {"page": 1})
        created = await ajax.post("/users", {"name": "test"})

        pending = ajax.get_abort_result("/slow")
        pending.abort()

    Subclasses may override ``handle_message`` (user-facing failure text) and
    ``handle_error_response`` (every non-ignored non-2xx response).
    """

    def __init__(
        self,
        config: Optional[AjaxConfig] = None,
        transport: Optional[FetchTransport] = None,
        httpx_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._defaults = merge_config(DEFAULT_AJAX_CONFIG, config)
        self._owns_transport = transport is None
        self._transport = transport or HttpxFetchTransport(httpx_client)
        self._invoker = RequestInvoker(
            self._transport,
            on_message=self.show_message,
            on_error_response=self.handle_error_response,
        )
        self._cache = DedupCache()
        self._lifecycle = ClientLifecycle.ACTIVE
        self._closed = False
        self.interceptors = AjaxInterceptors()

    @property
    def defaults(self) -> AjaxConfig:
        """Copy of this client's default configuration."""
        return merge_config(self._defaults)

    @property
    def caches(self) -> DedupCache:
        return self._cache

    @property
    def lifecycle(self) -> ClientLifecycle:
        return self._lifecycle

    def stop_ajax(self) -> None:
        """Reject every later call that does not set ``is_out_stop``."""
        logger.debug("Ajax.stop_ajax: client stopped")
        self._lifecycle = ClientLifecycle.STOPPED

    def is_ajax_stopped(self) -> bool:
        return self._lifecycle is ClientLifecycle.STOPPED

    def get_unique_key(self, config: AjaxConfig) -> str:
        """Cache key of a merged config."""
        return fingerprint(config)

    def abort(self, controller: Optional[AbortController] = None) -> None:
        """Abort the request owned by ``controller``."""
        if controller is not None:
            controller.abort()

    def abort_all(self) -> None:
        """Abort every cached request except those marked ``is_out_stop``."""
        for entry in self._cache.entries():
            if not entry.config.is_out_stop:
                self.abort(entry.controller)

    def show_message(self, msg: str, config: Optional[AjaxConfig] = None) -> None:
        """Forward a failure message to ``handle_message`` unless muted.

        A sink that raises is logged; the failure being reported stays the
        one the caller sees.
        """
        if config is not None and config.is_no_alert:
            return
        try:
            self.handle_message(msg or "No message available")
        except Exception:
            logger.exception("Ajax.show_message: message handler raised")

    def handle_message(self, msg: str) -> None:
        """Message sink. Prints to stderr by default."""
        print_message(msg)

    def handle_error_response(self, response: httpx.Response) -> None:
        """Hook for non-2xx responses, e.g. to redirect on 401."""
        logger.error(
            f"HTTP error, status = {response.status_code}, "
            f"statusText = {response.reason_phrase}"
        )

    def _merge_config(self, cfg: AjaxConfig) -> AjaxConfig:
        config = merge_config(self._defaults, cfg)
        validate_config(config)
        return run_request_interceptors(self.interceptors.request, config)

    def _timeout_error(
        self, config: AjaxConfig, controller: Optional[AbortController]
    ) -> FetchError:
        logger.debug(f"Ajax: request to {config.url} timed out after {config.timeout}s")
        error = FetchError(
            config.timeout_error_message or "timeout",
            FetchErrorType.TIMEOUT,
            config,
            config.timeout_error_status,
        )
        self.abort(controller)
        self.show_message(str(error), config)
        return error

    def _core_ajax(self, config: AjaxConfig, key: str = "") -> CacheEntry:
        controller: Optional[AbortController] = None
        if config.signal is None:
            # A caller-provided signal stays under the caller's control.
            controller = AbortController()
            config.signal = controller.signal

        request = with_timeout(
            self._invoker.invoke(config),
            config.timeout,
            lambda: self._timeout_error(config, controller),
        )
        future = asyncio.ensure_future(
            run_response_interceptors(self.interceptors.response.handlers(), request)
        )
        return CacheEntry(
            fingerprint=key,
            future=future,
            config=config,
            controller=controller,
            created_at=time.time(),
        )

    def _cache_ajax(self, cfg: AjaxConfig) -> CacheEntry:
        config = self._merge_config(cfg)
        key = self.get_unique_key(config)
        return self._cache.dedupe(
            key,
            lambda: self._core_ajax(config, key),
            config.cache_timeout,
            debug=bool(config.debug),
        )

    def _all_ajax(self, cfg: AjaxConfig) -> AjaxResult:
        out_stop = cfg.is_out_stop if cfg.is_out_stop is not None else self._defaults.is_out_stop
        if not out_stop and self.is_ajax_stopped():
            future = asyncio.get_running_loop().create_future()
            future.set_exception(
                FetchError(
                    cfg.stopped_error_message or self._defaults.stopped_error_message,
                    FetchErrorType.STOP,
                    cfg,
                )
            )
            return AjaxResult(future=future, config=cfg)
        if self._closed:
            raise RuntimeError("Client has been closed")

        entry = self._cache_ajax(cfg)
        return AjaxResult(future=entry.future, config=entry.config, controller=entry.controller)

    async def ajax(self, config: Optional[AjaxConfig] = None, **options: Any) -> Any:
        """Run a request and return its (possibly shared) result."""
        result = self._all_ajax(config_from_options(config, **options))
        return await asyncio.shield(result.future)

    def ajax_abort_result(
        self, config: Optional[AjaxConfig] = None, **options: Any
    ) -> AbortResult[Any]:
        """Start a request and return it together with an abort function.

        Must be called from a running event loop.
        """
        result = self._all_ajax(config_from_options(config, **options))
        return AbortResult(
            promise=result.future,
            abort=lambda: self.abort(result.controller),
        )

    def _with_method(
        self,
        method: str,
        url: str,
        data: Any,
        config: Optional[AjaxConfig],
        options: Any,
    ) -> AjaxConfig:
        return merge_config(
            AjaxConfig(url=url, method=method, data=data),
            config_from_options(config, **options),
        )

    async def get(
        self,
        url: str,
        data: Any = None,
        config: Optional[AjaxConfig] = None,
        **options: Any,
    ) -> Any:
        """GET request; ``data`` becomes the query string."""
        return await self.ajax(self._with_method("get", url, data, config, options))

    def get_abort_result(
        self,
        url: str,
        data: Any = None,
        config: Optional[AjaxConfig] = None,
        **options: Any,
    ) -> AbortResult[Any]:
        """GET request plus an abort function."""
        return self.ajax_abort_result(self._with_method("get", url, data, config, options))

    async def post(
        self,
        url: str,
        data: Any = None,
        config: Optional[AjaxConfig] = None,
        **options: Any,
    ) -> Any:
        """POST request; ``data`` becomes the body."""
        return await self.ajax(self._with_method("post", url, data, config, options))

    def post_abort_result(
        self,
        url: str,
        data: Any = None,
        config: Optional[AjaxConfig] = None,
        **options: Any,
    ) -> AbortResult[Any]:
        """POST request plus an abort function."""
        return self.ajax_abort_result(self._with_method("post", url, data, config, options))

    async def close(self) -> None:
        """Close the client and the transport it created."""
        self._closed = True
        self._cache.clear()
        if self._owns_transport:
            await self._transport.close()

    async def __aenter__(self) -> "Ajax":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


def create_ajax(
    config: Optional[AjaxConfig] = None,
    transport: Optional[FetchTransport] = None,
    httpx_client: Optional[httpx.AsyncClient] = None,
) -> Ajax:
    """Create an Ajax client."""
    return Ajax(config, transport=transport, httpx_client=httpx_client)
