"""
Dirsweep CLI - Main entry point.

A terminal-first, rate-limit aware sweeper for a directory search service.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.traceback import install as install_rich_traceback

from dirsweep import __app_name__, __version__

# Load environment variables (proxy settings etc.) from .env if present
load_dotenv()

install_rich_traceback(show_locals=False, width=120)

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    name=__app_name__,
    help="Paced, block-aware sweeps of a directory search service",
    rich_markup_mode="rich",
    no_args_is_help=True,
    pretty_exceptions_show_locals=False,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold cyan]{__app_name__}[/bold cyan] version [green]{__version__}[/green]")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """Dirsweep - directory sweeper with adaptive pacing."""
    pass


# =============================================================================
# Import and register subcommand modules
# =============================================================================

from .commands import config, sweep  # noqa: E402

app.add_typer(sweep.app, name="sweep", help="Run sweeps and inspect targets")
app.add_typer(config.app, name="config", help="Show and validate configuration")


# =============================================================================
# Init Command
# =============================================================================


DEFAULT_APP_CONFIG = """\
# Dirsweep Configuration
# All durations are milliseconds. Ranges are drawn uniformly.

pacing:
  max_attempts: 4
  base_backoff_ms: 60000
  backoff_jitter: {min_ms: 10000, max_ms: 30000}
  hard_lockout_cooldown: {min_ms: 600000, max_ms: 960000}
  retry_after_jitter: {min_ms: 500, max_ms: 2500}
  gate_spacing: {min_ms: 18000, max_ms: 28000}
  gate_jitter: {min_ms: 500, max_ms: 1500}
  courtesy_pause: {min_ms: 1200, max_ms: 2000}
  between_targets: {min_ms: 3500, max_ms: 6000}
  batch_size: 5
  batch_size_floor: 3
  between_batches: {min_ms: 180000, max_ms: 300000}
  post_block_cooldown: {min_ms: 420000, max_ms: 660000}
  between_batches_increment: {min_ms: 60000, max_ms: 120000}
  cooldown_increment: {min_ms: 120000, max_ms: 180000}

browser:
  headless: false
  slow_mo_ms: 80
  stealth: true
  user_data_dir: .browser_profile
  proxy: ${HTTPS_PROXY:-}

service:
  search_url: https://apps.cpaaustralia.com.au/find-a-cpa/
  result_selector: li.resultItem
  submit_selector: "#initiateSearchBtn"

output:
  directory: output

logging:
  level: INFO
  file: logs/dirsweep.log
  json_format: true
  rich_console: true

targets: []
"""


@app.command()
def init(
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Overwrite existing configuration",
    ),
) -> None:
    """Create configs/app.yaml and the output/log directories."""
    config_path = Path("configs/app.yaml")

    for dir_path in (Path("configs"), Path("output"), Path("logs")):
        dir_path.mkdir(parents=True, exist_ok=True)

    if config_path.exists() and not force:
        err_console.print(f"[yellow]{config_path} already exists (use --force to overwrite)[/yellow]")
    else:
        config_path.write_text(DEFAULT_APP_CONFIG, encoding="utf-8")

    console.print(Panel.fit(
        "[bold green]OK - Dirsweep initialized[/bold green]\n\n"
        "Created:\n"
        "  - [cyan]configs/app.yaml[/cyan] - Pacing, browser and service settings\n"
        "  - [cyan]output/[/cyan] - One CSV per target\n"
        "  - [cyan]logs/[/cyan] - Log files\n\n"
        "Next steps:\n"
        "  1. List targets in configs/app.yaml or a text file\n"
        "  2. Run: [yellow]dirsweep sweep run --targets-file targets.txt[/yellow]",
        title="[bold]Initialization Complete[/bold]",
        border_style="green",
    ))


# =============================================================================
# Entry Point
# =============================================================================


def run() -> None:
    """Run the CLI application."""
    app()


if __name__ == "__main__":
    run()
