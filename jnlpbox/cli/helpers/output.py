"""Helper functions for CLI output formatting with Rich integration."""

from rich.console import Console
from rich.table import Table

from jnlpbox.models.results import BatchResult, OutcomeStatus


_STATUS_STYLES = {
    OutcomeStatus.PROCESSED.value: "green",
    OutcomeStatus.SKIPPED.value: "yellow",
    OutcomeStatus.FAILED.value: "red",
}


def get_console() -> Console:
    return Console(highlight=False)


def print_success_message(message: str, console: Console | None = None) -> None:
    """Print a success message with a checkmark."""
    (console or get_console()).print(f"[green]✓[/green] {message}")


def print_error_message(message: str, console: Console | None = None) -> None:
    """Print an error message with an X symbol."""
    (console or get_console()).print(f"[red]✗[/red] {message}")


def print_batch_result(result: BatchResult, console: Console | None = None) -> None:
    """Print one row per artifact followed by the batch totals.

    Args:
        result: Result of one orchestrator run, successful or not
        console: Console to print to (default: a new stdout console)
    """
    console = console or get_console()

    table = Table(
        title=f"jnlpbox {result.stage}",
        show_header=True,
        header_style="bold cyan",
    )
    table.add_column("Archive", style="cyan", no_wrap=True)
    table.add_column("Kind", style="dim")
    table.add_column("Outcome", style="bold")
    table.add_column("State")
    table.add_column("Details", style="dim")

    for outcome in result.outcomes:
        status = str(outcome.status)
        style = _STATUS_STYLES.get(status, "")
        table.add_row(
            outcome.archive_path.name,
            outcome.kind,
            f"[{style}]{status}[/{style}]" if style else status,
            str(outcome.state) if outcome.state else "-",
            outcome.message or "",
        )

    console.print(table)
    summary = (
        f"{result.processed_count} processed, {result.skipped_count} skipped, "
        f"{result.failed_count} failed"
    )
    if result.failed_count:
        print_error_message(summary, console)
    else:
        print_success_message(summary, console)


__all__ = [
    "get_console",
    "print_batch_result",
    "print_error_message",
    "print_success_message",
]
