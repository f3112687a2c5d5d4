"""Terminal reporter with rich output formatting."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

if TYPE_CHECKING:
    from collections.abc import Sequence

    from rich.status import Status

    from autojest.orchestrator import RunSummary

console = Console()

_GOOD_RATE = 80.0
_POOR_RATE = 50.0


def _coverage_color(pct: float) -> str:
    """Return a Rich color name for a coverage percentage."""
    if pct >= _GOOD_RATE:
        return "green"
    if pct >= _POOR_RATE:
        return "yellow"
    return "red"


class CLIReporter:
    """Rich terminal output for generation runs."""

    def __init__(self, output: Console | None = None) -> None:
        self.console = output or console

    def print_header(self, title: str) -> None:
        """Print a bold header."""
        self.console.print(f"\n[bold cyan]{title}[/bold cyan]\n")

    def print_success(self, message: str) -> None:
        """Print a success message."""
        self.console.print(f"[green]✓[/green] {message}")

    def print_error(self, message: str) -> None:
        """Print an error message."""
        self.console.print(f"[red]✗[/red] {message}")

    def print_warning(self, message: str) -> None:
        """Print a warning message."""
        self.console.print(f"[yellow]⚠[/yellow] {message}")

    def print_info(self, message: str) -> None:
        """Print an info message."""
        self.console.print(f"[dim]{message}[/dim]")

    def create_status(self, message: str) -> Status:
        """Create a Rich Status spinner for long-running operations."""
        return self.console.status(message)

    # ── Run output ────────────────────────────────────────────────

    def print_file_list(self, title: str, files: Sequence[str]) -> None:
        """Print a titled list of paths, or a note when empty."""
        if not files:
            self.print_info(f"{title}: none")
            return
        self.console.print(f"[bold]{title}[/bold] ({len(files)})")
        for path in files:
            self.console.print(f"  • {path}")

    def print_undercovered(self, files: Sequence[tuple[str, float]], threshold: float) -> None:
        """Print a table of files whose statement coverage is below *threshold*."""
        table = Table(title=f"Files under {threshold:.0f}% statement coverage")
        table.add_column("File", style="cyan")
        table.add_column("Statements", justify="right")
        for path, pct in files:
            color = _coverage_color(pct)
            table.add_row(path, f"[{color}]{pct:.1f}%[/{color}]")
        self.console.print(table)

    def print_summary(self, summary: RunSummary) -> None:
        """Print the final banner for a completed run."""
        lines = [
            f"[green]{len(summary.generated)}[/green] test(s) written",
            f"[green]{len(summary.repaired)}[/green] failing test(s) repaired",
            f"[green]{len(summary.regenerated)}[/green] test(s) regenerated for coverage",
        ]
        if summary.exhausted:
            lines.append(f"[red]{len(summary.exhausted)}[/red] file(s) still failing")
        style = "yellow" if summary.exhausted else "green"
        self.console.print()
        self.console.print(
            Panel(
                "\n".join(lines),
                title="[bold]autojest finished[/bold]",
                border_style=style,
                padding=(0, 2),
            )
        )
        for path in summary.exhausted:
            self.print_error(f"Still failing: {path}")


reporter = CLIReporter()
