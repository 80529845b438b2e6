"""
Configuration commands.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
import yaml
from rich.console import Console
from rich.syntax import Syntax

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    help="Show and validate configuration",
    no_args_is_help=True,
)


@app.command("show")
def show_config(
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to app.yaml (default: configs/app.yaml)",
    ),
) -> None:
    """Print the effective configuration, defaults included."""
    from dirsweep.core.config.loader import ConfigError, load_app_config

    try:
        config = load_app_config(config_path)
    except ConfigError as e:
        err_console.print(f"[red]Error loading config:[/red] {e}")
        if e.details:
            err_console.print(f"[dim]{e.details}[/dim]")
        raise typer.Exit(1)

    text = yaml.safe_dump(config.model_dump(mode="json"), sort_keys=False)
    console.print(Syntax(text, "yaml", theme="ansi_dark"))


@app.command("validate")
def validate_config(
    config_path: Path = typer.Argument(
        Path("configs/app.yaml"),
        help="Path to app.yaml",
    ),
) -> None:
    """Validate a configuration file without running anything."""
    from dirsweep.core.config.loader import validate_app_config_file

    errors = validate_app_config_file(config_path)

    if errors:
        err_console.print(f"[red]{config_path} is invalid:[/red]")
        for error in errors:
            err_console.print(f"  - {error}")
        raise typer.Exit(1)

    console.print(f"[green]OK[/green] {config_path}")
