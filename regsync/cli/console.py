"""Rich-backed output for the regsync CLI.

Results go to stdout, problems to stderr.
"""

from contextlib import nullcontext
from typing import Any, ContextManager

from rich.console import Console as RichConsole
from rich.table import Table

from regsync.domain.mirror.model.value import SyncReport


class Console:
    def __init__(self, *, force_terminal: bool | None = None, quiet: bool = False) -> None:
        self._out = RichConsole(force_terminal=force_terminal)
        self._err = RichConsole(force_terminal=force_terminal, stderr=True)
        self.quiet = quiet

    def print(self, *args: Any, **kwargs: Any) -> None:
        self._out.print(*args, **kwargs)

    def success(self, message: str) -> None:
        self._out.print(f"[green]✓[/green] {message}")

    def warning(self, message: str) -> None:
        self._err.print(f"[yellow]⚠[/yellow] {message}")

    def error(self, message: str, *, hint: str | None = None) -> None:
        self._err.print(f"[red]✗[/red] {message}")
        if hint:
            self._err.print(f"  [dim]{hint}[/dim]")

    def progress(self, message: str) -> ContextManager[Any]:
        """Spinner shown while a sync runs; a no-op in quiet mode."""
        if self.quiet:
            return nullcontext()
        return self._err.status(message)

    def sync_report(self, report: SyncReport) -> None:
        """Table with one row per bundle/destination pair."""
        if not report.pairs:
            self.warning("Nothing to mirror")
            return

        table = Table(title="Mirrored images", header_style="bold")
        for column, options in (
            ("Bundle", {}),
            ("Source", {"style": "dim"}),
            ("Destination", {}),
            ("Images", {"justify": "right"}),
        ):
            table.add_column(column, **options)
        for pair in sorted(report.pairs, key=lambda p: (p.mount_point, p.destination)):
            table.add_row(pair.mount_point, pair.source, pair.destination, str(len(pair.copied)))
        self._out.print(table)


_console: Console | None = None


def get_console() -> Console:
    global _console
    if _console is None:
        _console = Console()
    return _console
