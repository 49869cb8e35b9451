"""
HTTP transport for fetch_ajax.

A FetchTransport performs one HTTP exchange and honors an abort signal. The
default implementation runs on httpx.AsyncClient.
"""
import asyncio
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Tuple, Union
from urllib.parse import urlparse

import httpx

from ..cancellation import AbortSignal
from ..errors import AbortError
from ..types import CacheMode, Credentials, Mode
from .request_builder import FormData, has_header

logger = logging.getLogger("fetch_ajax.transport")

_NO_CACHE_MODES = frozenset({"no-store", "no-cache", "reload"})


def _is_ssl_verify_disabled_by_env() -> bool:
    """
    Check if SSL verification is disabled via environment variables.

    Returns True if any of these are set:
    - NODE_TLS_REJECT_UNAUTHORIZED=0
    - SSL_CERT_VERIFY=0
    """
    node_tls = os.environ.get("NODE_TLS_REJECT_UNAUTHORIZED", "")
    ssl_cert_verify = os.environ.get("SSL_CERT_VERIFY", "")
    return node_tls == "0" or ssl_cert_verify == "0"


@dataclass
class FetchInit:
    """Fully resolved parameters of one HTTP exchange."""

    method: str = "GET"
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[Union[str, bytes, FormData]] = None
    credentials: Optional[Credentials] = None
    mode: Optional[Mode] = None
    cache: Optional[CacheMode] = None
    keepalive: Optional[bool] = None
    signal: Optional[AbortSignal] = None
    origin: Optional[str] = None


class FetchTransport(Protocol):
    """Transport interface used by the request invoker."""

    async def fetch(self, url: str, init: FetchInit) -> httpx.Response:
        """Perform the request. Raise AbortError if ``init.signal`` fires first."""
        ...

    async def close(self) -> None:
        """Release transport resources."""
        ...


def origin_of(url: Optional[str]) -> Optional[str]:
    """Return ``scheme://host[:port]`` of an absolute URL."""
    if not url:
        return None
    parsed = urlparse(url)
    if not parsed.scheme or not parsed.netloc:
        return None
    return f"{parsed.scheme}://{parsed.netloc}".lower()


def _is_file_value(value: Any) -> bool:
    return isinstance(value, (bytes, bytearray, tuple)) or hasattr(value, "read")


def split_form_data(form: FormData) -> Tuple[Dict[str, Any], List[Tuple[str, Any]]]:
    """Split a FormData into httpx ``data`` and ``files`` arguments."""
    data: Dict[str, Any] = {}
    files: List[Tuple[str, Any]] = []
    for name, value in form:
        if _is_file_value(value):
            files.append((name, value))
            continue
        text = value if isinstance(value, str) else str(value)
        if name in data:
            existing = data[name]
            data[name] = existing + [text] if isinstance(existing, list) else [existing, text]
        else:
            data[name] = text
    return data, files


def _form_pairs(data: Dict[str, Any]) -> List[Tuple[str, str]]:
    pairs: List[Tuple[str, str]] = []
    for name, value in data.items():
        for item in value if isinstance(value, list) else [value]:
            pairs.append((name, item))
    return pairs


class HttpxFetchTransport:
    """FetchTransport on top of httpx.AsyncClient.

    Args:
        httpx_client: Client to send requests with. A client is created (and
            owned) when omitted.
        origin: Origin used for ``same-origin`` credentials/mode checks.
            Falls back to the origin of the request's base URL.
        timeout: httpx-level timeout. The request deadline is enforced by
            the ajax timeout race, so this defaults to no limit.
    """

    def __init__(
        self,
        httpx_client: Optional[httpx.AsyncClient] = None,
        origin: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self._owns_client = httpx_client is None
        if httpx_client is not None:
            self._client = httpx_client
        else:
            verify_ssl = not _is_ssl_verify_disabled_by_env()
            self._client = httpx.AsyncClient(timeout=timeout, verify=verify_ssl)
        self._origin = origin_of(origin) if origin else None
        self._closed = False

    @property
    def client(self) -> httpx.AsyncClient:
        return self._client

    def build_request(self, url: str, init: FetchInit) -> httpx.Request:
        """Translate FetchInit into an httpx.Request."""
        headers = dict(init.headers)
        if init.cache in _NO_CACHE_MODES and not has_header(headers, "cache-control"):
            headers["cache-control"] = "no-store" if init.cache == "no-store" else "no-cache"

        kwargs: Dict[str, Any] = {"headers": headers}
        if isinstance(init.body, FormData):
            data, files = split_form_data(init.body)
            if not files:
                # httpx only encodes multipart when files are present
                files = [(name, (None, value)) for name, value in _form_pairs(data)]
                data = {}
            if data:
                kwargs["data"] = data
            if files:
                kwargs["files"] = files
        elif init.body is not None:
            kwargs["content"] = init.body

        request = self._client.build_request(init.method.upper(), url, **kwargs)

        origin = self._origin or origin_of(init.origin)
        target = origin_of(str(request.url))
        cross_origin = origin is not None and target != origin

        if init.mode == "same-origin" and cross_origin:
            raise httpx.RequestError(
                f"Mode 'same-origin' refuses cross-origin request to {target}",
                request=request,
            )
        if init.credentials == "omit" or (init.credentials == "same-origin" and cross_origin):
            request.headers.pop("cookie", None)
        return request

    async def fetch(self, url: str, init: FetchInit) -> httpx.Response:
        """Send the request, dropping it if ``init.signal`` fires first."""
        if self._closed:
            raise RuntimeError("Transport has been closed")

        request = self.build_request(url, init)
        logger.debug(f"HttpxFetchTransport.fetch: {request.method} {request.url}")

        signal = init.signal
        if signal is None:
            return await self._client.send(request)

        signal.throw_if_aborted()
        send = asyncio.ensure_future(self._client.send(request))
        aborted = asyncio.ensure_future(signal.wait())
        try:
            await asyncio.wait({send, aborted}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            send.cancel()
            aborted.cancel()
            raise

        if send.done():
            aborted.cancel()
            return send.result()

        send.cancel()
        logger.debug(f"HttpxFetchTransport.fetch: aborted {request.method} {request.url}")
        raise AbortError(signal.reason)

    async def close(self) -> None:
        """Close the transport (and the httpx client if it owns it)."""
        self._closed = True
        if self._owns_client:
            await self._client.aclose()
