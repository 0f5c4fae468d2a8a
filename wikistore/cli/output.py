"""Terminal output handling using Rich library.

This module provides the OutputHandler class for all CLI terminal output:
status messages with color coding, page documents and history tables.
Supports verbosity levels and the --no-color flag.
"""

from typing import Iterable

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from wikistore.pages.codec import format_timestamp
from wikistore.pages.models import Page
from wikistore.repository.models import LogEntry


class OutputHandler:
    """Handles all terminal output using Rich library.

    Attributes:
        verbosity: Verbosity level (0=summary, 1=info, 2=debug)
        console: Rich Console instance for output
        err_console: Rich Console instance for status messages (stderr)

    Example:
        >>> handler = OutputHandler(verbosity=1, no_color=False)
        >>> handler.success("Page index saved")
    """

    def __init__(self, verbosity: int = 0, no_color: bool = False):
        """Initialize output handler.

        Args:
            verbosity: Verbosity level (0=summary, 1=info, 2=debug)
            no_color: Disable color output if True
        """
        self.verbosity = verbosity
        self.console = Console(no_color=no_color, highlight=False)
        self.err_console = Console(stderr=True, no_color=no_color, highlight=False)

    def success(self, message: str) -> None:
        """Display success message in green."""
        self.err_console.print(f"[green]✓[/green] {escape(message)}")

    def error(self, message: str) -> None:
        """Display error message in red."""
        self.err_console.print(f"[red]✗[/red] {escape(message)}", style="red")

    def warning(self, message: str) -> None:
        """Display warning message in yellow."""
        self.err_console.print(f"[yellow]⚠[/yellow] {escape(message)}", style="yellow")

    def info(self, message: str) -> None:
        """Display info message (only if verbosity >= 1)."""
        if self.verbosity >= 1:
            self.err_console.print(escape(message))

    def debug(self, message: str) -> None:
        """Display debug message (only if verbosity >= 2)."""
        if self.verbosity >= 2:
            self.err_console.print(f"[dim]{escape(message)}[/dim]")

    def raw(self, text: str, end: str = "") -> None:
        """Write text to stdout untouched (documents, JSON)."""
        typer.echo(text + end, nl=False)

    def print_titles(self, titles: Iterable[str]) -> None:
        for title in titles:
            self.console.print(escape(title))

    def print_page(self, page: Page) -> None:
        """Display a page: header with its latest change, then the document."""
        if self.verbosity >= 1:
            header = f"[bold]{escape(page.title)}[/bold]"
            if page.updated is not None:
                header += f" [dim]({format_timestamp(page.updated)}: {escape(page.message)})[/dim]"
            self.err_console.print(header)
        self.raw(page.document)

    def print_log(self, entries: Iterable[LogEntry]) -> int:
        """Display history as a table, most recent first.

        Returns:
            Number of entries displayed
        """
        table = Table(show_header=True, header_style="bold")
        table.add_column("Revision", style="yellow", no_wrap=True)
        table.add_column("Date", no_wrap=True)
        table.add_column("Message")

        count = 0
        for entry in entries:
            table.add_row(
                entry.id[:8],
                format_timestamp(entry.date),
                escape(entry.message.splitlines()[0] if entry.message else ""),
            )
            count += 1

        if count:
            self.console.print(table)
        else:
            self.console.print("[yellow]No history[/yellow]")
        return count
