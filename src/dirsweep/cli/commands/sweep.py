"""
Sweep commands for running target searches.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    help="Run sweeps and inspect targets",
    no_args_is_help=True,
)


def _load_config(config_path: Optional[Path]):
    """Load app configuration or exit with a readable error."""
    from dirsweep.core.config.loader import ConfigError, load_app_config

    try:
        return load_app_config(config_path)
    except ConfigError as e:
        err_console.print(f"[red]Error loading config:[/red] {e}")
        if e.details:
            err_console.print(f"[dim]{e.details}[/dim]")
        raise typer.Exit(1)


def _resolve_targets(config, targets_file: Optional[Path], targets: Optional[list[str]]) -> list[str]:
    """CLI targets win over a targets file, which wins over the config list."""
    from dirsweep.core.config.loader import ConfigError, load_targets, normalize_targets

    if targets:
        return normalize_targets(targets)
    if targets_file:
        try:
            return load_targets(targets_file)
        except ConfigError as e:
            err_console.print(f"[red]Error loading targets:[/red] {e}")
            raise typer.Exit(1)
    return normalize_targets(config.targets)


@app.command("run")
def run_sweep_command(
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to app.yaml (default: configs/app.yaml)",
    ),
    targets_file: Optional[Path] = typer.Option(
        None,
        "--targets-file",
        "-f",
        help="Text (one per line) or YAML file of targets",
    ),
    targets: Optional[list[str]] = typer.Option(
        None,
        "--target",
        "-t",
        help="Target to search (repeatable)",
    ),
    output_dir: Optional[Path] = typer.Option(
        None,
        "--output-dir",
        "-o",
        help="Directory for per-target CSV files",
    ),
    headless: Optional[bool] = typer.Option(
        None,
        "--headless/--headed",
        help="Override browser headless mode",
    ),
    max_attempts: Optional[int] = typer.Option(
        None,
        "--max-attempts",
        min=1,
        help="Override attempts per target",
    ),
    batch_size: Optional[int] = typer.Option(
        None,
        "--batch-size",
        min=1,
        help="Override the initial batch size",
    ),
) -> None:
    """Search every target, one at a time, with adaptive pacing.

    Examples:
        dirsweep sweep run --targets-file suburbs.txt
        dirsweep sweep run -t "GLENELG" -t "BRIGHTON" --headless
    """
    from dirsweep.core.errors import SessionError
    from dirsweep.core.logging import setup_logging
    from dirsweep.core.orchestrator import run_sweep

    config = _load_config(config_path)

    if output_dir is not None:
        config.output.directory = output_dir
    if headless is not None:
        config.browser.headless = headless
    if max_attempts is not None:
        config.pacing.max_attempts = max_attempts
    if batch_size is not None:
        config.pacing.batch_size = batch_size
        config.pacing.batch_size_floor = min(config.pacing.batch_size_floor, batch_size)

    names = _resolve_targets(config, targets_file, targets)
    if not names:
        err_console.print("[red]No targets given.[/red] Use --target, --targets-file or `targets:` in app.yaml")
        raise typer.Exit(1)

    config.ensure_directories()
    setup_logging(
        level=config.logging.level,
        log_file=config.logging.file,
        json_format=config.logging.json_format,
        rich_console=config.logging.rich_console,
    )

    try:
        stats = asyncio.run(run_sweep(config, names))
    except SessionError as e:
        err_console.print(f"[red]Browser session failed:[/red] {e}")
        raise typer.Exit(2)

    console.print()
    _show_summary(stats)


def _show_summary(stats) -> None:
    """Print per-target outcomes and run totals."""
    table = Table(title="Sweep Summary", show_header=True, header_style="bold magenta")
    table.add_column("Target", style="cyan")
    table.add_column("Outcome", justify="center")
    table.add_column("Records", justify="right")
    table.add_column("Attempts", justify="right")
    table.add_column("File")

    styles = {
        "success": "green",
        "exhausted_blocked": "yellow",
        "exhausted_error": "red",
    }

    for result in stats.results:
        style = styles.get(result.outcome.value, "default")
        table.add_row(
            result.target,
            f"[{style}]{result.outcome.value}[/{style}]",
            str(result.records),
            str(result.attempts),
            str(result.output_path or "-"),
        )

    console.print(table)
    console.print(
        f"[bold]{stats.succeeded}[/bold] ok, "
        f"[yellow]{stats.exhausted_blocked}[/yellow] blocked, "
        f"[red]{stats.exhausted_error}[/red] failed, "
        f"{stats.records_total} records in {stats.batches} batch(es)"
    )
    if stats.duration_seconds is not None:
        console.print(f"[dim]Duration: {stats.duration_seconds:.0f}s, policy tightened {stats.tightenings}x[/dim]")


@app.command("targets")
def list_targets(
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to app.yaml (default: configs/app.yaml)",
    ),
    targets_file: Optional[Path] = typer.Option(
        None,
        "--targets-file",
        "-f",
        help="Text (one per line) or YAML file of targets",
    ),
) -> None:
    """Show the resolved target list and where each CSV would be written."""
    from dirsweep.persistence.csv_store import CsvResultWriter

    config = _load_config(config_path)
    names = _resolve_targets(config, targets_file, None)

    if not names:
        console.print("[dim]No targets configured.[/dim]")
        return

    writer = CsvResultWriter(config.output.directory)

    table = Table(title=f"Targets ({len(names)})", show_header=True, header_style="bold magenta")
    table.add_column("#", justify="right")
    table.add_column("Target", style="cyan")
    table.add_column("Output")
    table.add_column("Done", justify="center")

    for i, name in enumerate(names, 1):
        path = writer.path_for(name)
        table.add_row(str(i), name, str(path), "[green]yes[/green]" if path.exists() else "-")

    console.print(table)
