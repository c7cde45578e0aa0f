#!/usr/bin/env python3
"""
Demonstration script for the tree watcher.

Polls a directory for a while and prints every change batch as it arrives,
followed by polling statistics.

Usage:
    python examples/tree_watch_demo.py [--watch-dir PATH] [--duration SECONDS] [--interval MS]
"""

import asyncio
import logging.config
from pathlib import Path

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from tree_watcher import ChangeEvent, files, watch
from tree_watcher.config import LogLevel, get_config

logger = logging.getLogger(__name__)

# Initialize rich console
console = Console()

EVENT_STYLES = {
    ChangeEvent.CREATED: "green",
    ChangeEvent.REMOVED: "red",
    ChangeEvent.CHANGED: "yellow",
}


def create_batch_table(batch_number: int, batch) -> Table:
    """Create a rich table for one change batch."""
    table = Table(title=f"Batch #{batch_number}", show_header=True)
    table.add_column("Event", width=10)
    table.add_column("Path", style="white")

    for change in batch:
        style = EVENT_STYLES[change.event]
        table.add_row(f"[{style}]{change.event.value}[/{style}]", change.path)

    return table


def create_stats_table(stats: dict) -> Table:
    """Create a rich table for polling statistics."""
    table = Table(title="Polling Statistics", show_header=True)
    table.add_column("Metric", style="cyan", width=20)
    table.add_column("Value", style="white", width=15)

    table.add_row("Cycles", str(stats["cycles"]))
    table.add_row("Empty cycles", str(stats["empty_cycles"]))
    table.add_row("Batches", str(stats["batches"]))
    table.add_row("Created", str(stats["changes"]["created"]))
    table.add_row("Removed", str(stats["changes"]["removed"]))
    table.add_row("Changed", str(stats["changes"]["changed"]))
    table.add_row("Tracked files", str(stats["tracked_files"]))
    if stats["last_cycle_ms"] is not None:
        table.add_row("Last cycle", f"{stats['last_cycle_ms']:.1f}ms")

    return table


async def demonstrate_watch(watch_directory: Path, duration: int, interval: int) -> None:
    """
    Watch a directory for ``duration`` seconds and print change batches.

    Args:
        watch_directory: Directory to watch
        duration: How long to run the demo (in seconds)
        interval: Polling interval in milliseconds
    """
    config = get_config()
    options = config.get_watch_options(interval=interval)

    initial = await files(watch_directory, {key: options[key] for key in ("follow_symlinks", "max_depth", "skip")})
    console.print(f"📁 Initial scan: found [bold green]{len(initial)}[/bold green] files")

    stream = watch(watch_directory, {**options, "files": initial})
    console.print(
        Panel(
            f"Create, edit or delete files in [cyan]{watch_directory}[/cyan]\n"
            f"Polling every [yellow]{interval}ms[/yellow] for [yellow]{duration}s[/yellow]",
            title="📝 How to Test",
            border_style="yellow",
        )
    )

    async def consume() -> None:
        batch_number = 0
        async for batch in stream:
            batch_number += 1
            console.print(create_batch_table(batch_number, batch))

    try:
        await asyncio.wait_for(consume(), timeout=duration)
    except asyncio.TimeoutError:
        console.print(f"\n⏰ [bold yellow]Demo time completed ({duration} seconds)[/bold yellow]")

    console.print(create_stats_table(stream.watcher.get_watch_stats()))


@click.command()
@click.option(
    '--watch-dir',
    '-d',
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=Path('.'),
    help='Directory to watch',
)
@click.option('--duration', '-t', type=int, default=60, help='Duration to run the demo in seconds')
@click.option('--interval', '-i', type=click.IntRange(min=0), default=None, help='Polling interval in milliseconds')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
def main(watch_dir: Path, duration: int, interval: int | None, verbose: bool):
    """
    Run the tree watcher demonstration.

    Example usage:

        # Watch the current directory for a minute
        python examples/tree_watch_demo.py

        # Watch a docs directory for two minutes, polling every 250ms
        python examples/tree_watch_demo.py -d docs -t 120 -i 250
    """
    config = get_config()
    if verbose:
        config = config.model_copy(update={"log_level": LogLevel.DEBUG})
    logging.config.dictConfig(config.get_log_config())

    if interval is None:
        interval = config.default_interval_ms

    try:
        asyncio.run(demonstrate_watch(watch_dir, duration, interval))
    except KeyboardInterrupt:
        console.print("\n⚡ [yellow]Demo interrupted by user[/yellow]")
    except Exception as e:
        console.print(f"❌ [red]Demo failed:[/red] {e}")
        logger.exception("Full error details:")
        return 1

    return 0


if __name__ == '__main__':
    exit(main())
