"""Empty command.

This module provides `srm empty`, which permanently deletes everything in
the quarantine area.
"""

from typing import Annotated

import typer

from saferm.cli.session import exit_on_error, load_settings, open_manager
from saferm.utils.formatting import format_size, print_info, print_success


def empty(
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation prompt."),
    ] = False,
) -> None:
    """Permanently delete every quarantined item."""
    config = load_settings()

    if not yes:
        typer.confirm("Permanently delete everything in quarantine?", abort=True)

    with exit_on_error():
        manager = open_manager(config)
        report = manager.empty()

    if report.item_count == 0:
        print_info("Quarantine was already empty.")
        return

    print_success(f"Removed {report.item_count} item(s) ({format_size(report.total_bytes)})")
