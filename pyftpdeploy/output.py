"""Console output helpers for the CLI."""

import json
from typing import Any, Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .utils import format_size


class OutputFormatter:
    """Formats user-facing output with rich.

    Args:
        json_output: Emit machine-readable JSON instead of tables
        quiet: Suppress informational messages (errors are always shown)
        console: Console to write to (a new one is created if omitted)
    """

    def __init__(
        self,
        json_output: bool = False,
        quiet: bool = False,
        console: Optional[Console] = None,
    ):
        self.json_output = json_output
        self.quiet = quiet
        self.console = console or Console(highlight=False, soft_wrap=True)

    def info(self, message: str) -> None:
        if not self.quiet and not self.json_output:
            self.console.print(escape(message))

    def success(self, message: str) -> None:
        if not self.quiet and not self.json_output:
            self.console.print(f"[green]✓[/green] {escape(message)}")

    def warning(self, message: str) -> None:
        if not self.json_output:
            self.console.print(f"[yellow]Warning:[/yellow] {escape(message)}")

    def error(self, message: str) -> None:
        self.console.print(f"[red]Error:[/red] {escape(message)}")

    def print(self, message: str = "") -> None:
        if not self.quiet and not self.json_output:
            self.console.print(message)

    def step(self, number: int, message: str) -> None:
        """Print a numbered step header."""
        self.info(f"Step {number}: {message}")

    def progress_message(self, message: str) -> None:
        if not self.quiet and not self.json_output:
            self.console.print(f"[dim]{escape(message)}[/dim]")

    def output_json(self, data: Any) -> None:
        click.echo(json.dumps(data, indent=2, ensure_ascii=False))

    def output_table(
        self,
        data: list[dict[str, Any]],
        columns: list[str],
        headers: Optional[dict[str, str]] = None,
        title: Optional[str] = None,
    ) -> None:
        """Print rows as a table, or as JSON when json_output is set.

        Args:
            data: Rows keyed by column name
            columns: Column keys in display order
            headers: Optional display names per column key
            title: Optional table title
        """
        if self.json_output:
            self.output_json(data)
            return

        headers = headers or {}
        table = Table(title=title)
        for column in columns:
            table.add_column(headers.get(column, column))
        for row in data:
            table.add_row(*(escape(str(row.get(column, ""))) for column in columns))
        self.console.print(table)

    def print_summary(self, title: str, items: list[tuple[str, str]]) -> None:
        """Print a titled block of label/value pairs."""
        if self.json_output:
            self.output_json({label: value for label, value in items})
            return
        if self.quiet:
            return

        grid = Table.grid(padding=(0, 2))
        grid.add_column(style="bold")
        grid.add_column()
        for label, value in items:
            grid.add_row(escape(label), escape(str(value)))
        self.console.print(f"\n[bold cyan]{escape(title)}[/bold cyan]")
        self.console.print(grid)

    def format_size(self, size_bytes: int) -> str:
        return format_size(size_bytes)
