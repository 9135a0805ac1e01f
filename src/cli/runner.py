# src/cli/runner.py

"""Headless command runners for the tracker."""

import asyncio
import logging
from pathlib import Path

from rich.console import Console
from rich.table import Table

from src.config.settings import TrackerConfig
from src.config.watchlist import load_watchlist, select_groups
from src.models.observation import TIERS
from src.scrapers.page_processor import FetchError, PageProcessor
from src.services.price_tracker import PriceTracker, TrackRunResult

logger = logging.getLogger("backmarket_tracker.cli")

# Stderr console for status messages so stdout stays clean for tables
_err = Console(stderr=True)


def resolve_groups(
    config: TrackerConfig, group_csv: str | None,
) -> dict[str, list[str]]:
    """Load the watch list and restrict it to *group_csv*.

    Raises ``SystemExit`` on unknown group ids.
    """
    watchlist = load_watchlist(config.watchlist_path)
    try:
        return select_groups(watchlist, group_csv)
    except KeyError as exc:
        valid = ", ".join(watchlist)
        _err.print(f"[red]Unknown group(s): {exc.args[0]}[/red]")
        _err.print(f"[dim]Available: {valid}[/dim]")
        raise SystemExit(1) from exc


def _report(result: TrackRunResult) -> int:
    """Print a one-line pass summary and map it to an exit code."""
    for error_msg in result.errors:
        _err.print(f"[red]Error: {error_msg}[/red]")
    parts: list[str] = []
    if result.missing:
        parts.append(f"{len(result.missing)} without prices")
    if result.errors:
        parts.append(f"{len(result.errors)} failed")
    detail = f" ({', '.join(parts)})" if parts else ""
    if not result.observations:
        _err.print(f"[yellow]No observations recorded{detail}.[/yellow]")
        return 1
    _err.print(
        f"[green]✓ {len(result.observations)} observations"
        f" in {result.elapsed:.0f}s{detail}[/green]"
    )
    return 0


def run_track(
    config: TrackerConfig,
    group_csv: str | None,
    parallel: bool,
    repeat: bool,
) -> int:
    """Run one tracking pass (or loop forever with *repeat*)."""
    groups = resolve_groups(config, group_csv)
    tracker = PriceTracker(config, watchlist=groups)
    url_count = sum(len(urls) for urls in groups.values())
    _err.print(
        f"[bold]Tracking:[/bold] {len(groups)} groups, {url_count} URLs"
        f" [dim]mode={'parallel' if parallel else 'sequential'}[/dim]"
    )

    if repeat:
        tracker.run_forever(parallel=parallel)
        return 0

    if parallel:
        result = asyncio.run(tracker.run_once_parallel())
    else:
        result = tracker.run_once()
    return _report(result)


def run_replay(
    config: TrackerConfig,
    page_file: Path,
    group_id: str,
    url: str,
) -> int:
    """Process a captured page without touching the network."""
    try:
        content = page_file.read_text(encoding="utf-8")
    except OSError as exc:
        _err.print(f"[red]Cannot read {page_file}: {exc}[/red]")
        return 1

    processor = PageProcessor(config)
    try:
        observation = processor.process(group_id, url, content)
    except (FetchError, ValueError) as exc:
        _err.print(f"[red]{exc}[/red]")
        return 1

    if observation is None:
        _err.print("[yellow]No observation produced.[/yellow]")
        return 1

    table = Table(title=observation.display_name, title_style="bold cyan")
    table.add_column("Tier", style="bold")
    table.add_column("Price", justify="right", style="green")
    for tier, price in zip(TIERS, observation.tier_prices):
        table.add_row(tier, "—" if price is None else f"{price} €")
    Console().print(table)
    return 0


def run_recompute(config: TrackerConfig) -> int:
    """Rebuild the summary file from the full history file."""
    tracker = PriceTracker(config, watchlist={})
    history = tracker.history_store.load()
    summaries = tracker.refresh_summary(history)
    _err.print(
        f"[green]✓ Rebuilt {len(summaries)} group summaries"
        f" from {len(history)} observations[/green]"
    )
    return 0


def run_show(config: TrackerConfig) -> int:
    """Render the summary file as a Rich table on stdout."""
    tracker = PriceTracker(config, watchlist={})
    rows = tracker.summary_store.load()
    if not rows:
        _err.print("[yellow]No summary recorded yet.[/yellow]")
        return 1

    table = Table(
        title="Best Prices",
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("Group", style="bold")
    for tier in TIERS:
        table.add_column(tier, justify="right", style="green")
    table.add_column("URL", overflow="fold", style="dim")

    for row in rows:
        cells = [
            f"{row[tier]} €\n[dim]{row[f'{tier}_timestamp'][:10]}[/dim]"
            if row.get(tier, "0") not in ("", "0")
            else "—"
            for tier in TIERS
        ]
        table.add_row(row["id"], *cells, row.get("url", ""))

    Console().print(table)
    return 0
