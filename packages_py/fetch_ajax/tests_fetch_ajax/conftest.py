"""
Shared fixtures for fetch_ajax tests.
"""
import asyncio
from typing import Any, Dict, List, Optional

import httpx
import pytest

from fetch_ajax import Ajax, AjaxConfig, HttpxFetchTransport
from fetch_ajax.core.transport import FetchInit
from fetch_ajax.errors import AbortError


class RecordingHandler:
    """httpx.MockTransport handler that records requests and can stall."""

    def __init__(
        self,
        status: int = 200,
        json_body: Any = None,
        text: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
        delay: float = 0.0,
        error: Optional[Exception] = None,
    ) -> None:
        self.status = status
        self.json_body = json_body if json_body is not None else {"success": True}
        self.text = text
        self.headers = headers
        self.delay = delay
        self.error = error
        self.requests: List[httpx.Request] = []

    @property
    def call_count(self) -> int:
        return len(self.requests)

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if self.text is not None:
            return httpx.Response(self.status, text=self.text, headers=self.headers)
        return httpx.Response(self.status, json=self.json_body, headers=self.headers)


class StallingTransport:
    """FetchTransport that never answers until its signal fires."""

    def __init__(self) -> None:
        self.calls: List[FetchInit] = []
        self.aborted = 0

    async def fetch(self, url: str, init: FetchInit) -> httpx.Response:
        self.calls.append(init)
        assert init.signal is not None
        await init.signal.wait()
        self.aborted += 1
        raise AbortError(init.signal.reason)

    async def close(self) -> None:
        pass


class RecordingAjax(Ajax):
    """Ajax client collecting sink messages instead of printing them."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.messages: List[str] = []
        self.error_responses: List[httpx.Response] = []

    def handle_message(self, msg: str) -> None:
        self.messages.append(msg)

    def handle_error_response(self, response: httpx.Response) -> None:
        self.error_responses.append(response)


@pytest.fixture
def handler() -> RecordingHandler:
    """Default handler answering 200 with a JSON body."""
    return RecordingHandler()


@pytest.fixture
async def httpx_client(handler: RecordingHandler):
    """httpx.AsyncClient routed to the recording handler."""
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    yield client
    await client.aclose()


@pytest.fixture
def transport(httpx_client: httpx.AsyncClient) -> HttpxFetchTransport:
    return HttpxFetchTransport(httpx_client)


@pytest.fixture
async def ajax(httpx_client: httpx.AsyncClient):
    """Ajax client against https://api.example.com backed by the handler."""
    client = RecordingAjax(
        AjaxConfig(base_url="https://api.example.com"),
        httpx_client=httpx_client,
    )
    yield client
    await client.close()


@pytest.fixture
def make_handler():
    """Factory for RecordingHandler instances."""
    return RecordingHandler


@pytest.fixture
def stalling_transport() -> StallingTransport:
    return StallingTransport()


@pytest.fixture
async def make_ajax():
    """Factory building RecordingAjax clients; closes everything on teardown.

    Pass either ``handler`` (routed through httpx.MockTransport) or a custom
    ``transport``; remaining keyword arguments become the client defaults.
    """
    clients: List[httpx.AsyncClient] = []
    instances: List[Ajax] = []

    def factory(
        handler: Optional[RecordingHandler] = None,
        transport: Any = None,
        **defaults: Any,
    ) -> RecordingAjax:
        defaults.setdefault("base_url", "https://api.example.com")
        if transport is not None:
            instance = RecordingAjax(AjaxConfig(**defaults), transport=transport)
        else:
            client = httpx.AsyncClient(
                transport=httpx.MockTransport(handler or RecordingHandler())
            )
            clients.append(client)
            instance = RecordingAjax(AjaxConfig(**defaults), httpx_client=client)
        instances.append(instance)
        return instance

    yield factory

    for instance in instances:
        await instance.close()
    for client in clients:
        await client.aclose()
