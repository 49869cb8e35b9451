"""
Core request building, transport and invocation.
"""
from .request_builder import (
    FormData,
    build_body,
    build_form_data,
    build_get_url,
    ensure_content_type,
    resolve_url,
)
from .transport import FetchInit, FetchTransport, HttpxFetchTransport
from .invoker import RequestInvoker

__all__ = [
    "FormData",
    "build_body",
    "build_form_data",
    "build_get_url",
    "ensure_content_type",
    "resolve_url",
    "FetchInit",
    "FetchTransport",
    "HttpxFetchTransport",
    "RequestInvoker",
]
