"""
CLI interface for Claude Token Counter.

Provides one-shot and live views of local token usage.
"""

import asyncio
import logging
import signal
import sys
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.live import Live
from rich.logging import RichHandler

from claude_token_counter.config.loader import (
    MonitorConfig,
    default_config,
    load_monitor_config
)
from claude_token_counter.core.pricing import PRICING_TABLE, estimate_cost
from claude_token_counter.core.refresh import RefreshLoop
from claude_token_counter.local.aggregator import scan_directory
from claude_token_counter.local.discovery import ConfigurationError
from .display import ConsoleRenderer, LiveRenderer

app = typer.Typer()
console = Console()

EXIT_CODE_OK = 0
EXIT_CODE_ERROR = 1


def setup_logging(verbose: bool = False, debug: bool = False) -> None:
    """Route log records through the shared rich console."""
    level = logging.WARNING
    if verbose:
        level = logging.INFO
    if debug:
        level = logging.DEBUG

    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _resolve_config(
    config_path: Optional[Path],
    root: Optional[Path],
    interval: Optional[float],
    pricing: Optional[str],
    monthly_limit: Optional[int] = None
) -> MonitorConfig:
    """Load the config file, if any, and apply command-line overrides."""
    config = load_monitor_config(str(config_path)) if config_path else default_config()
    rates = PRICING_TABLE.get_rates(pricing.lower()) if pricing else None
    return config.with_overrides(
        root=root.expanduser() if root else None,
        interval=interval,
        rates=rates,
        monthly_limit=monthly_limit
    )


def _install_signal_handlers(refresh: RefreshLoop) -> None:
    event_loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            event_loop.add_signal_handler(sig, refresh.cancel)
        except (NotImplementedError, RuntimeError):
            # Windows event loops have no add_signal_handler
            signal.signal(sig, lambda *_: refresh.cancel())


async def _run_watch(refresh: RefreshLoop) -> int:
    _install_signal_handlers(refresh)
    return await refresh.run()


@app.callback(invoke_without_command=True)
def main(ctx: typer.Context):
    """Claude Token Counter CLI."""
    if ctx.invoked_subcommand is None:
        console.print("Claude Token Counter - Use --help to see available commands")


@app.command()
def status(
    root: Optional[Path] = typer.Option(
        None,
        "--root",
        "-r",
        help="Directory containing session logs (default: ~/.claude/projects)"
    ),
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="YAML configuration file"
    ),
    pricing: Optional[str] = typer.Option(
        None,
        "--pricing",
        "-p",
        help="Model family used for cost estimates (sonnet, opus, haiku)"
    ),
    monthly_limit: Optional[int] = typer.Option(
        None,
        "--limit",
        "-l",
        min=0,
        help="Monthly token limit; shows quota usage when set"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show scan progress"),
    debug: bool = typer.Option(False, "--debug", help="Log every skipped line")
):
    """Scan local logs once and show token usage and estimated cost."""
    setup_logging(verbose, debug)
    try:
        config = _resolve_config(config_path, root, None, pricing, monthly_limit)
        snapshot = scan_directory(config.root, config.suffix)
        cost = estimate_cost(snapshot, config.rates)
    except ConfigurationError as e:
        console.print(f"[red]Configuration error:[/] {str(e)}")
        sys.exit(EXIT_CODE_ERROR)
    except Exception as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_ERROR)

    if snapshot.file_count == 0:
        console.print(f"\n[bold yellow]No session logs found under {config.root}[/]")
        console.print("Logs appear here once Claude Code has been used at least once.\n")
        sys.exit(EXIT_CODE_OK)

    ConsoleRenderer(console, config.root, config.monthly_limit)(snapshot, cost)
    sys.exit(EXIT_CODE_OK)


@app.command()
def watch(
    interval: Optional[float] = typer.Option(
        None,
        "--interval",
        "-i",
        help="Seconds between refreshes (default: 5)"
    ),
    root: Optional[Path] = typer.Option(
        None,
        "--root",
        "-r",
        help="Directory containing session logs (default: ~/.claude/projects)"
    ),
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="YAML configuration file"
    ),
    pricing: Optional[str] = typer.Option(
        None,
        "--pricing",
        "-p",
        help="Model family used for cost estimates (sonnet, opus, haiku)"
    ),
    monthly_limit: Optional[int] = typer.Option(
        None,
        "--limit",
        "-l",
        min=0,
        help="Monthly token limit; shows quota usage when set"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show scan progress"),
    debug: bool = typer.Option(False, "--debug", help="Log every skipped line")
):
    """Re-scan local logs on an interval until interrupted."""
    setup_logging(verbose, debug)
    try:
        config = _resolve_config(config_path, root, interval, pricing, monthly_limit)
    except Exception as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_ERROR)

    try:
        with Live(console=console, refresh_per_second=4, transient=False) as live:
            refresh = RefreshLoop(
                config.root,
                config.interval,
                LiveRenderer(live, config.root, config.monthly_limit),
                rates=config.rates,
                suffix=config.suffix
            )
            cycles = asyncio.run(_run_watch(refresh))
    except ConfigurationError as e:
        console.print(f"[red]Configuration error:[/] {str(e)}")
        sys.exit(EXIT_CODE_ERROR)

    console.print(f"[dim]Stopped after {cycles} refreshes[/]")
    sys.exit(EXIT_CODE_OK)


if __name__ == "__main__":
    app()
