"""
Rich console output for verbose clients.

Prints request and response panels with credentials masked.
"""
from typing import Any, Dict, Mapping, Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.syntax import Syntax

console = Console(stderr=True)

SENSITIVE_HEADERS = {"authorization", "proxy-authorization", "x-api-key", "cookie"}


def mask_sensitive(value: Optional[str], show_chars: int = 15) -> str:
    """Mask a sensitive value, keeping the first ``show_chars`` characters."""
    if not value:
        return "<none>"
    if len(value) <= show_chars:
        return "*" * len(value)
    return value[:show_chars] + "***"


def mask_headers(headers: Mapping[str, str]) -> Dict[str, str]:
    """Copy of ``headers`` with credentials masked."""
    return {
        key: mask_sensitive(value) if key.lower() in SENSITIVE_HEADERS else value
        for key, value in headers.items()
    }


def format_body(body: Optional[bytes], limit: int = 2048) -> str:
    if not body:
        return ""
    try:
        text = body.decode("utf-8")
    except UnicodeDecodeError:
        return f"<binary data: {len(body)} bytes>"
    if len(text) > limit:
        return f"{text[:limit]}... <{len(text) - limit} more characters>"
    return text


def print_panel(content: Any, title: Optional[str] = None) -> None:
    console.print(Panel(content, title=title))


def print_syntax_panel(code: str, lexer: str = "json", title: Optional[str] = None) -> None:
    console.print(Panel(Syntax(code, lexer, theme="monokai"), title=title, expand=True))


def print_request(method: str, url: str, headers: Mapping[str, str], body: Optional[bytes]) -> None:
    print_panel(f"[bold cyan]{method}[/bold cyan] {escape(url)}", title="[bold blue]Request[/bold blue]")
    console.print("[bold]Headers:[/bold]", mask_headers(headers))
    text = format_body(body)
    if text:
        print_syntax_panel(text, lexer="text", title="[bold]Request Body[/bold]")


def print_response(
    url: Optional[str],
    status_code: Optional[int],
    headers: Optional[Mapping[str, str]],
    body: Optional[bytes],
    error: Optional[BaseException] = None,
) -> None:
    ok = error is None and status_code is not None and status_code < 300
    color = "green" if ok else "red"
    status = status_code if status_code is not None else "-"
    summary = f"[bold {color}]{status}[/bold {color}]"
    if error is not None:
        summary += f" {escape(str(error))}"
    print_panel(summary, title=f"[bold blue]Response[/bold blue] ({escape(url or '')})")
    if headers:
        console.print("[bold]Headers:[/bold]", mask_headers(headers))
    text = format_body(body)
    if text:
        print_syntax_panel(text, lexer="json", title="[bold]Response Body[/bold]")
