from __future__ import annotations
from pathlib import Path
from typing import Optional

import httpx
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .config import SessionConfiguration


class Reporter:
    def __init__(self, console: Console) -> None:
        self.console = console

    def configuration(self, configuration: SessionConfiguration) -> None:
        table = Table(show_header=True, header_style="bold")
        table.add_column("Option", style="bold")
        table.add_column("Value")
        for name, value in configuration.as_dict().items():
            if isinstance(value, bool):
                shown = "✅ on" if value else "❌ off"
            elif value is None:
                shown = "[dim]default[/dim]"
            else:
                shown = str(value)
            table.add_row(name, shown)
        self.console.print(Panel.fit(table, title=Text("Session configuration", style="bold blue")))

    def response(self, response: httpx.Response, body: Optional[bytes] = None, location: Optional[Path] = None) -> None:
        table = Table(show_header=True, header_style="bold")
        table.add_column("Header", style="bold")
        table.add_column("Value")
        for name, value in response.headers.items():
            table.add_row(name, value)
        style = "bold green" if response.is_success else ("bold yellow" if response.is_redirect else "bold red")
        title = Text(f"{response.request.method} {response.url} → HTTP {response.status_code}", style=style)
        self.console.print(Panel.fit(table, title=title))
        if location is not None:
            self.console.print(f"[bold]Saved to[/bold] {location}")
        if body is not None:
            try:
                self.console.print(body.decode(response.encoding or "utf-8"), markup=False, highlight=False)
            except (LookupError, UnicodeDecodeError):
                self.console.print(f"[dim]<{len(body)} bytes of binary data>[/dim]")

    def error(self, error: BaseException) -> None:
        self.console.print(Panel.fit(Text(str(error) or type(error).__name__), title=Text("Error", style="bold red")))

    def exit_code(self, response: Optional[httpx.Response]) -> int:
        if response is None:
            return 1
        return 0 if response.status_code < 400 else 2
