"""List command for viewing the quarantine area.

This module provides `srm list` (alias `srm ls`).
"""

from typing import Annotated

import typer

from saferm.cli.display import create_listing_table
from saferm.cli.session import exit_on_error, load_settings, open_manager
from saferm.utils.formatting import console, format_size, print_info


def list_items(
    expired: Annotated[
        bool,
        typer.Option("--expired", help="Show only expired items."),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show full paths and permissions."),
    ] = False,
) -> None:
    """Show quarantined items.

    Active items show the time left before they expire; expired items show
    how long ago they expired and are removed by the next `srm clean`.

    Examples:
        srm list
        srm ls --expired
        srm ls -v
    """
    config = load_settings()

    with exit_on_error():
        manager = open_manager(config)
        manager.ensure_layout()
        active, expired_entries = manager.list_items(expired_only=expired)

    if not active and not expired_entries:
        print_info("No expired items." if expired else "Quarantine is empty.")
        return

    if active:
        console.print(create_listing_table(active, expired=False, verbose=verbose))
    if expired_entries:
        console.print(create_listing_table(expired_entries, expired=True, verbose=verbose))

    entries = active + expired_entries
    total = sum(entry.record.size_bytes for entry in entries)
    summary = f"{len(entries)} item(s), {format_size(total)}"
    if expired_entries and not expired:
        summary += f"; {len(expired_entries)} expired (run `srm clean`)"
    console.print(f"\n[muted]{summary}[/]")
