"""
Request invoker: turns a resolved AjaxConfig into one HTTP exchange and
normalizes the outcome into a parsed result or a FetchError.
"""
import logging
from typing import Any, Callable, Optional, Tuple

import httpx

from ..config import AjaxConfig, default_serializer
from ..console import print_request_panel
from ..errors import AbortError, FetchError, FetchErrorType
from .request_builder import (
    GET_FAMILY_METHODS,
    build_body,
    build_get_url,
    ensure_content_type,
    resolve_url,
)
from .transport import FetchInit, FetchTransport, origin_of

logger = logging.getLogger("fetch_ajax.invoker")

MessageCallback = Callable[[str, AjaxConfig], None]
ErrorResponseHook = Callable[[httpx.Response], None]


def _is_json_response(response: httpx.Response) -> bool:
    content_type = response.headers.get("content-type", "")
    return "application/json" in content_type


class RequestInvoker:
    """Issues requests through a FetchTransport.

    Args:
        transport: Transport performing the HTTP exchange
        on_message: Receives user-facing failure messages
        on_error_response: Called with every non-ignored non-2xx response
        serializer: JSON serializer for bodies and responses
    """

    def __init__(
        self,
        transport: FetchTransport,
        on_message: Optional[MessageCallback] = None,
        on_error_response: Optional[ErrorResponseHook] = None,
        serializer: Optional[Any] = None,
    ) -> None:
        self._transport = transport
        self._on_message = on_message
        self._on_error_response = on_error_response
        self._serializer = serializer or default_serializer

    def build(self, config: AjaxConfig) -> Tuple[str, FetchInit]:
        """Resolve URL, headers and body for ``config``."""
        method = (config.method or "GET").upper()
        url = resolve_url(config.url or "", config.base_url)
        headers = dict(config.headers or {})

        if method in GET_FAMILY_METHODS:
            body = None
            url = build_get_url(url, config.data, bool(config.is_encode_url))
        else:
            if config.query:
                url = build_get_url(url, config.query, bool(config.is_encode_url))
            body = build_body(config.data, bool(config.is_file), self._serializer)
            ensure_content_type(headers, body, config.default_put_and_post_content_type)

        init = FetchInit(
            method=method,
            headers=headers,
            body=body,
            credentials=config.credentials,
            mode=config.mode,
            cache=config.cache,
            keepalive=config.keepalive,
            signal=config.signal,
            origin=origin_of(config.base_url),
        )
        return url, init

    async def invoke(self, config: AjaxConfig) -> Any:
        """Perform the request described by ``config``.

        Returns the parsed body, or the raw httpx.Response when
        ``is_use_origin`` is set or the status is in ``ignore``.
        """
        url, init = self.build(config)
        logger.debug(f"RequestInvoker.invoke: method={init.method}, url={url}")
        if config.debug:
            print_request_panel(init.method, url, init.headers, init.body)

        try:
            response = await self._transport.fetch(url, init)
        except AbortError as err:
            logger.debug(f"RequestInvoker.invoke: aborted {init.method} {url}")
            raise FetchError(err, FetchErrorType.NETWORK, config) from err
        except Exception as err:
            self._notify(str(err) or type(err).__name__, config)
            raise FetchError(err, FetchErrorType.NETWORK, config) from err

        status = response.status_code
        if not response.is_success:
            if status in (config.ignore or []):
                logger.debug(f"RequestInvoker.invoke: ignoring status {status} for {url}")
                return response
            if self._on_error_response is not None:
                self._on_error_response(response)
            if config.is_use_origin:
                self._notify(response.reason_phrase or f"HTTP {status}", config)
                raise FetchError(
                    f"HTTP {status}", FetchErrorType.HTTP, config, status, response=response
                )
            error = self.parse_error_body(response)
            self._notify(response.text or response.reason_phrase, config)
            raise FetchError(
                error or response.reason_phrase or f"HTTP {status}",
                FetchErrorType.HTTP,
                config,
                status,
                response=response,
            )

        if config.is_use_origin:
            return response
        return self.parse_body(response)

    def parse_body(self, response: httpx.Response) -> Any:
        """Parse a success body as JSON, falling back to the raw text."""
        text = response.text
        try:
            return self._serializer.deserialize(text)
        except ValueError:
            return text

    def parse_error_body(self, response: httpx.Response) -> Any:
        """Parse an error body: JSON when the content-type says so, else text."""
        if _is_json_response(response):
            try:
                return self._serializer.deserialize(response.text)
            except ValueError:
                logger.debug("RequestInvoker.parse_error_body: invalid JSON error body")
        return response.text

    def _notify(self, msg: str, config: AjaxConfig) -> None:
        if self._on_message is not None:
            self._on_message(msg, config)
