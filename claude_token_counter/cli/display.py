"""Display helpers for snapshot output."""

from datetime import datetime
from pathlib import Path
from typing import Optional

from rich.console import Console, Group
from rich.live import Live
from rich.progress_bar import ProgressBar
from rich.table import Table
from rich.text import Text

from claude_token_counter.core.pricing import CostEstimate, format_cost
from claude_token_counter.core.quota import QuotaStatus, quota_status, usage_style
from claude_token_counter.local.models import Snapshot


def format_number(n: int) -> str:
    """Format an integer with thousands separators."""
    return f"{n:,}"


def build_quota_table(quota: QuotaStatus) -> Table:
    """Build the monthly quota section with a usage bar."""
    style = usage_style(quota.percentage_used)

    table = Table(title="Monthly Quota", title_justify="left", show_header=False, box=None, padding=(0, 2))
    table.add_column("Field", style="cyan")
    table.add_column("Value", justify="right")

    table.add_row("Limit", format_number(quota.limit))
    table.add_row("Used", f"[yellow]{format_number(quota.used)}[/yellow]")
    if quota.over_limit:
        table.add_row("Overage", f"[red]{format_number(-quota.remaining)}[/red]")
    else:
        table.add_row("Remaining", f"[green]{format_number(quota.remaining)}[/green]")
    table.add_row("Usage", Text(f"{quota.percentage_used:.1f}%", style=style))
    table.add_row(
        "",
        ProgressBar(
            total=100,
            completed=min(quota.percentage_used, 100.0),
            width=40,
            complete_style=style,
            finished_style=style
        )
    )
    return table


def build_snapshot_table(
    snapshot: Snapshot,
    cost: CostEstimate,
    root: Optional[Path] = None,
    updated_at: Optional[datetime] = None,
    monthly_limit: Optional[int] = None
) -> Group:
    """Build the renderable shown for one snapshot."""
    usage = Table(title="Token Usage Summary", title_justify="left")
    usage.add_column("Category", style="cyan")
    usage.add_column("Tokens", justify="right")
    usage.add_column("Est. cost", justify="right", style="green")

    usage.add_row("Input", format_number(snapshot.total_input), format_cost(cost.input_cost))
    usage.add_row("Output", format_number(snapshot.total_output), format_cost(cost.output_cost))
    usage.add_row(
        "Cache write",
        format_number(snapshot.total_cache_creation),
        format_cost(cost.cache_creation_cost)
    )
    usage.add_row(
        "Cache read",
        format_number(snapshot.total_cache_read),
        format_cost(cost.cache_read_cost)
    )
    usage.add_section()
    usage.add_row(
        "[bold]Total[/bold]",
        f"[bold yellow]{format_number(snapshot.total_tokens)}[/bold yellow]",
        f"[bold]{format_cost(cost.total_cost)}[/bold]"
    )

    stats = Text()
    stats.append(f"Messages: {format_number(snapshot.message_count)}  ")
    stats.append(f"Files: {format_number(snapshot.file_count)}  ")
    skipped_style = "yellow" if snapshot.skipped_lines else "dim"
    stats.append(f"Skipped lines: {format_number(snapshot.skipped_lines)}", style=skipped_style)
    if snapshot.unreadable_files:
        stats.append(f"  Unreadable files: {snapshot.unreadable_files}", style="red")
    if snapshot.skipped_directories:
        stats.append(f"  Skipped directories: {snapshot.skipped_directories}", style="red")

    parts = [usage, stats]
    if root is not None:
        parts.insert(0, Text(f"Logs: {root}", style="dim"))

    if snapshot.models:
        models = Table(show_header=True, box=None, padding=(0, 2))
        models.add_column("Model", style="cyan")
        models.add_column("Messages", justify="right")
        for model, count in snapshot.models:
            models.add_row(model, format_number(count))
        parts.extend([Text(), models])

    if monthly_limit is not None:
        parts.extend([Text(), build_quota_table(quota_status(snapshot, monthly_limit))])

    if updated_at is not None:
        parts.append(Text(f"Updated {updated_at:%H:%M:%S}", style="dim"))

    return Group(*parts)


class ConsoleRenderer:
    """Print one summary per snapshot."""

    def __init__(self, console: Console, root: Optional[Path] = None, monthly_limit: Optional[int] = None):
        self.console = console
        self.root = root
        self.monthly_limit = monthly_limit

    def __call__(self, snapshot: Snapshot, cost: CostEstimate) -> None:
        self.console.print(build_snapshot_table(snapshot, cost, self.root, monthly_limit=self.monthly_limit))


class LiveRenderer:
    """Replace the contents of a rich Live display on every snapshot."""

    def __init__(self, live: Live, root: Optional[Path] = None, monthly_limit: Optional[int] = None):
        self.live = live
        self.root = root
        self.monthly_limit = monthly_limit

    def __call__(self, snapshot: Snapshot, cost: CostEstimate) -> None:
        self.live.update(
            build_snapshot_table(
                snapshot, cost, self.root,
                updated_at=datetime.now(),
                monthly_limit=self.monthly_limit
            ),
            refresh=True
        )
