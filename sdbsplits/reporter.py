from __future__ import annotations

from typing import Any, Dict, Iterable, Mapping, Sequence

from rich import box
from rich.console import Console
from rich.table import Table

from sdbsplits.domain.models import Split


def _mb(value: Any) -> str:
    if not value:
        return "N/A"
    return f"{value / (1024 * 1024):.2f}"


def splits_table(splits: Sequence[Split], title: str = "Planned Splits") -> Table:
    table = Table(title=title, box=box.ROUNDED, caption=f"{len(splits)} split(s)")
    table.add_column("#", justify="right", style="cyan", no_wrap=True)
    table.add_column("Start Row", justify="right", style="magenta")
    table.add_column("End Row", justify="right", style="magenta")
    table.add_column("Rows", justify="right", style="green")
    table.add_column("Continuation Token", style="dim", overflow="fold")

    for index, split in enumerate(splits):
        token = split.continuation_token
        table.add_row(
            str(index),
            f"{split.start_row:,}",
            f"{split.end_row:,}",
            f"{split.length():,}",
            "[italic]start of domain[/italic]" if token is None else token,
        )
    return table


def print_splits(splits: Sequence[Split], console: Console | None = None) -> None:
    """Render a split plan as a rich table."""
    console = console or Console()
    if not splits:
        console.print("[yellow]No splits to display.[/yellow]")
        return
    console.print(splits_table(splits))


def outcomes_table(summary: Mapping[str, Any]) -> Table:
    profile: Dict[str, Dict[str, Any]] = summary.get("profile", {})
    read = profile.get("read", {})
    title = (
        f"Domain {summary.get('domain')} │ {summary.get('rows_read', 0):,} of "
        f"{summary.get('total_rows', 0):,} rows"
        f"\n[dim]Read in {read.get('duration_seconds', 0.0):.1f}s, "
        f"peak memory {_mb(read.get('peak_rss_bytes'))} MB[/dim]"
    )
    table = Table(title=title, box=box.ROUNDED, caption="Sorted by split index")
    table.add_column("Split", justify="right", style="cyan", no_wrap=True)
    table.add_column("Range", justify="right", style="magenta")
    table.add_column("Rows", justify="right", style="bold green")
    table.add_column("Duration (s)", justify="right", style="green")
    table.add_column("Status", style="red")

    outcomes: Iterable[Mapping[str, Any]] = summary.get("outcomes", [])
    for outcome in outcomes:
        start_row = outcome.get("start_row")
        end_row = outcome.get("end_row")
        row_range = "?" if start_row is None else f"{start_row:,}-{end_row:,}"
        error = outcome.get("error")
        status = "[green]ok[/green]" if not error else f"{outcome.get('error_type')}: {error}"
        table.add_row(
            str(outcome.get("index", "?")),
            row_range,
            f"{outcome.get('rows', 0):,}",
            f"{outcome.get('duration_seconds', 0.0):.2f}",
            status,
        )
    return table


def print_summary(summary: Mapping[str, Any], console: Console | None = None) -> None:
    """Render a run summary from ``run_job`` as a rich table."""
    console = console or Console()
    if not summary.get("outcomes"):
        console.print("[yellow]No results to display.[/yellow]")
        return
    console.print(outcomes_table(summary))


__all__ = ["outcomes_table", "print_splits", "print_summary", "splits_table"]
