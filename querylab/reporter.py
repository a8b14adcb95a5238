from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from rich import box
from rich.console import Console
from rich.table import Table

from querylab.scenarios.abstract import ScenarioResult

MISSING = "N/A"


def format_value(value: Any) -> str:
    """
    Render one cell.

    Dates and datetimes as YYYY-MM-DD, decimals and floats with two places,
    booleans as Yes/No and absent values as N/A.
    """
    if value is None:
        return MISSING
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, (datetime, date)):
        return value.strftime("%Y-%m-%d")
    if isinstance(value, Decimal):
        return f"{value:.2f}"
    if isinstance(value, float):
        return f"{value:.2f}"
    return str(value)


def _header(column: str) -> str:
    return column.replace("_", " ").title()


def build_table(result: ScenarioResult, console_width: Optional[int] = None) -> Table:
    """Build the rich table for one scenario result."""
    duration = result.get("duration_seconds")
    caption_parts = [f"{result.get('row_count', 0):,} row(s)"]
    if duration is not None:
        caption_parts.append(f"{duration * 1000:.1f} ms")

    table = Table(
        title=f"[bold]{result.get('scenario', 'Unknown')}[/bold]: {result.get('title', '')}",
        box=box.ROUNDED,
        caption=" | ".join(caption_parts),
        width=console_width,
    )

    columns = result.get("columns", [])
    for column in columns:
        sample = next((row.get(column) for row in result.get("rows", []) if row.get(column) is not None), None)
        numeric = isinstance(sample, (int, float, Decimal)) and not isinstance(sample, bool)
        table.add_column(_header(column), justify="right" if numeric else "left", style="cyan" if numeric else None)

    for row in result.get("rows", []):
        table.add_row(*(format_value(row.get(column)) for column in columns))
    return table


def print_results(results: List[ScenarioResult], console: Optional[Console] = None) -> None:
    """
    Render scenario results as rich tables, one per scenario.

    Failed scenarios are shown as a red error line instead of a table.
    """
    console = console or Console()

    if not results:
        console.print("[yellow]No results to display.[/yellow]")
        return

    for res in results:
        if res.get("error"):
            console.print(f"[bold red]{res.get('scenario', 'Unknown')} failed:[/bold red] {res['error']}")
            continue
        if not res.get("rows"):
            console.print(f"[yellow]{res.get('scenario', 'Unknown')}: no rows.[/yellow]")
            continue
        console.print(build_table(res))


def print_summary(results: List[ScenarioResult], console: Optional[Console] = None) -> None:
    """Render a one-line-per-scenario profile summary."""
    console = console or Console()

    table = Table(title="Scenario Summary", box=box.ROUNDED)
    table.add_column("Scenario", style="cyan", no_wrap=True)
    table.add_column("Rows", justify="right", style="magenta")
    table.add_column("Duration (ms)", justify="right", style="green")
    table.add_column("Peak Memory (MB)", justify="right", style="yellow")
    table.add_column("CPU %", justify="right", style="red")
    table.add_column("Status")

    for res in results:
        duration = res.get("duration_seconds") or 0.0
        mem_bytes = res.get("peak_rss_bytes") or 0
        cpu = res.get("cpu_percent") or 0.0
        table.add_row(
            res.get("scenario", "Unknown"),
            f"{res.get('row_count', 0):,}",
            f"{duration * 1000:.1f}",
            f"{mem_bytes / (1024 * 1024):.2f}",
            f"{cpu:.1f}",
            "[red]error[/red]" if res.get("error") else "[green]ok[/green]",
        )

    console.print(table)


def describe_counts(counts: Dict[str, int]) -> str:
    return ", ".join(f"{kind}={total}" for kind, total in counts.items())


__all__ = ["MISSING", "format_value", "build_table", "print_results", "print_summary", "describe_counts"]
