"""Clean command.

This module provides `srm clean` (alias `srm cln`), which permanently
deletes expired items, or every item with `--all`.
"""

from typing import Annotated

import typer
from rich.markup import escape

from saferm.cli.session import exit_on_error, load_settings, open_manager
from saferm.utils.formatting import console, format_size, print_info, print_success, print_warning


def clean(
    clean_all: Annotated[
        bool,
        typer.Option("--all", "-a", help="Remove every item, expired or not."),
    ] = False,
) -> None:
    """Permanently delete expired items from quarantine."""
    config = load_settings()

    with exit_on_error():
        manager = open_manager(config)
        report = manager.clean(clean_all=clean_all)

    if not report.cleaned:
        print_info("Nothing to clean.")
        return

    for record in report.cleaned:
        console.print(
            f"[muted]Removed[/] [short_id]{record.short_id}[/] {escape(record.original_path)} "
            f"[muted]({format_size(record.size_bytes)})[/]"
        )
    for path in report.disk_errors:
        print_warning(f"Could not delete {escape(path)}; its record was removed")

    print_success(f"Cleaned {len(report.cleaned)} item(s), freed {format_size(report.total_bytes)}")
