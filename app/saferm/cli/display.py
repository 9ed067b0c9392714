"""Shared Rich display functions for quarantine listings and reports.

Provides the table builder used by ``srm list`` and the summary printers
used by the delete, restore and clean commands.
"""

from rich.markup import escape
from rich.table import Table

from saferm.models.results import DeleteReport, ItemStatus, ListingEntry
from saferm.utils.formatting import (
    console,
    format_duration,
    format_size,
    print_error,
    print_success,
    print_warning,
    truncate_path,
)

PATH_COLUMN_WIDTH = 60


def create_listing_table(entries: list[ListingEntry], *, expired: bool, verbose: bool = False) -> Table:
    """Create a Rich table of quarantined items.

    Args:
        entries: Entries to display (already sorted).
        expired: Whether these are expired entries (changes title and the
            meaning of the time column).
        verbose: Show full paths and the permission bits.

    Returns:
        Rich Table ready for printing.
    """
    title = "Expired" if expired else "In quarantine"
    style = "expired" if expired else "active"

    table = Table(
        title=f"[{style}]{title}[/]",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("ID", style="short_id", no_wrap=True)
    table.add_column("Type", width=7)
    table.add_column("Size", justify="right")
    table.add_column("Deleted", no_wrap=True)
    table.add_column("Expired" if expired else "Expires in", justify="right")
    if verbose:
        table.add_column("Mode", justify="right")
    table.add_column("Original path")

    for entry in entries:
        record = entry.record
        age = format_duration(entry.delta)
        path = record.original_path if verbose else truncate_path(record.original_path, PATH_COLUMN_WIDTH)
        row = [
            record.short_id,
            record.file_type.label,
            format_size(record.size_bytes),
            record.delete_time.strftime("%Y-%m-%d %H:%M"),
            f"[{style}]{age} ago[/]" if expired else f"[{style}]{age}[/]",
        ]
        if verbose:
            row.append(f"{record.mode_bits:o}" if record.permissions is not None else "-")
        row.append(escape(path))
        table.add_row(*row)

    return table


def print_delete_report(report: DeleteReport) -> None:
    """Print per-item outcomes and the batch summary of a delete run."""
    for item in report.items:
        path = escape(item.path)
        if item.status == ItemStatus.SUCCESS:
            console.print(
                f"[success]Deleted[/] {path} [muted]->[/] [short_id]{item.short_id}[/] "
                f"[muted]({format_size(item.size_bytes)})[/]"
            )
        elif item.status == ItemStatus.ROLLED_BACK:
            console.print(f"[warning]Rolled back[/] {path}")
        elif item.status == ItemStatus.SKIPPED:
            print_warning(f"Skipped {path}: {escape(item.reason or '')}")
        else:
            print_error(f"Failed {path}: {escape(item.reason or '')}")

    if report.interrupted:
        print_warning(f"Interrupted. Rolled back {report.rolled_back} item(s).")
        for path in report.rollback_failures:
            print_error(f"Could not roll back {escape(path)}; it is still in quarantine")
        return

    if report.succeeded:
        summary = f"Moved {report.succeeded} item(s) to quarantine ({format_size(report.total_bytes)})"
        if report.duration_seconds >= 1:
            summary += f" at {format_size(report.throughput)}/s"
        print_success(summary)
