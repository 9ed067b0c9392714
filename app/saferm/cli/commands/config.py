"""Settings commands.

Provides `srm config show` to display the effective settings and
`srm config init` to write a settings file with the defaults.
"""

from typing import Annotated

import typer
from rich.markup import escape
from rich.table import Table

from saferm.cli.session import load_settings
from saferm.core.config import ConfigError, SafermConfig, save_config
from saferm.core.paths import get_audit_log_path, get_config_path, get_quarantine_root
from saferm.utils.formatting import console, print_error, print_info, print_success

app = typer.Typer(
    help="Show or create the settings file.",
    no_args_is_help=True,
)


@app.command()
def show() -> None:
    """Show the effective settings and storage locations."""
    config = load_settings()
    config_path = get_config_path()

    table = Table(show_header=True, header_style="bold_header", border_style="border")
    table.add_column("Setting", style="info")
    table.add_column("Value")

    table.add_row("expire_days", str(config.expire_days))
    table.add_row("log_retention_days", str(config.log_retention_days))
    table.add_row("enable_clone", str(config.enable_clone).lower())
    table.add_row("quarantine_root", escape(str(get_quarantine_root(config.quarantine_root))))
    table.add_row("audit_log", escape(str(get_audit_log_path())))

    console.print(table)
    if config_path.exists():
        console.print(f"[muted]Loaded from {escape(str(config_path))}[/]")
    else:
        print_info(f"No settings file at {config_path}; using defaults.")


@app.command()
def init(
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Overwrite an existing settings file."),
    ] = False,
) -> None:
    """Write a settings file with the default values."""
    config_path = get_config_path()

    if config_path.exists() and not force:
        print_error(f"Settings file already exists: {config_path}")
        print_info("Use --force to overwrite.")
        raise typer.Exit(code=1)

    try:
        saved = save_config(SafermConfig(), config_path)
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    print_success(f"Settings written to {saved}")
