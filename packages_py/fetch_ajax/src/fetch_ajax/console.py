"""
Console output for fetch_ajax: the default message sink and debug panels.
"""
import json
from typing import Any, Dict, Optional

from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax

error_console = Console(stderr=True)


def mask_auth_header(value: str, visible_chars: int = 15) -> str:
    """Mask an auth header value, keeping its first characters."""
    if len(value) <= visible_chars:
        return "*" * len(value)
    return value[:visible_chars] + "*" * (len(value) - visible_chars)


def _mask_headers_for_logging(headers: Dict[str, str]) -> Dict[str, str]:
    masked = dict(headers)
    for key in masked:
        if key.lower() in ("authorization", "x-api-key", "cookie"):
            masked[key] = mask_auth_header(str(masked[key]))
    return masked


def _format_body(body: Any) -> str:
    if isinstance(body, bytes):
        try:
            return body.decode("utf-8")
        except UnicodeDecodeError:
            return f"<binary data: {len(body)} bytes>"
    if isinstance(body, str):
        try:
            return json.dumps(json.loads(body), indent=2, ensure_ascii=False)
        except ValueError:
            return body
    return str(body)


def print_message(msg: str, console: Optional[Console] = None) -> None:
    """Write a user-facing failure message to stderr."""
    (console or error_console).print(msg, style="bold red", markup=False, highlight=False)


def print_request_panel(
    method: str,
    url: str,
    headers: Dict[str, str],
    body: Any = None,
    console: Optional[Console] = None,
) -> None:
    """Pretty print an outgoing request (debug mode)."""
    target = console or error_console
    target.print(
        Panel(f"[bold cyan]{method}[/bold cyan] {url}", title="[bold blue]Request[/bold blue]")
    )
    target.print("[bold]Headers:[/bold]", _mask_headers_for_logging(headers))
    if body is not None:
        target.print(
            Panel(
                Syntax(_format_body(body), "json", word_wrap=True),
                title="[bold]Request Body[/bold]",
            )
        )
