"""Log command for viewing the audit trail.

This module provides the `srm log` command, which shows the most recent
audit events written by delete, restore, clean and empty.
"""

import json
from typing import Annotated

import typer
from rich.markup import escape
from rich.table import Table

from saferm.models.audit import AuditEvent, AuditLevel
from saferm.quarantine.audit import AuditLog
from saferm.utils.formatting import console, print_info

LEVEL_STYLES = {
    AuditLevel.INFO: "info",
    AuditLevel.WARN: "warning",
    AuditLevel.ERROR: "error",
}

# Detail keys shown in the table, in order of preference
SUMMARY_KEYS = ("short_id", "original_path", "path", "reason")


def show_log(
    limit: Annotated[
        int,
        typer.Option(
            "--limit",
            "-n",
            min=1,
            help="Maximum number of events to show.",
        ),
    ] = 20,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output as JSON.",
        ),
    ] = False,
) -> None:
    """Show recent audit events, newest first.

    Examples:
        srm log              # Show last 20 events
        srm log -n 50        # Show last 50 events
        srm log --json       # JSON output for scripting
    """
    events = AuditLog().read(limit=limit)

    if not events:
        print_info("No audit events recorded.")
        return

    if json_output:
        typer.echo(json.dumps([event.to_dict() for event in events], indent=2))
    else:
        console.print(_create_log_table(events))


def _create_log_table(events: list[AuditEvent]) -> Table:
    table = Table(
        title="Audit log",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Time", no_wrap=True)
    table.add_column("Level", no_wrap=True)
    table.add_column("Event")
    table.add_column("Details")

    for event in events:
        style = LEVEL_STYLES[event.level]
        table.add_row(
            event.timestamp[:19],
            f"[{style}]{event.level.value}[/]",
            escape(event.message),
            escape(_summarize(event)),
        )

    return table


def _summarize(event: AuditEvent) -> str:
    """Pick the most telling detail values for a table cell."""
    if not event.details:
        return ""
    parts = [f"{key}={event.details[key]}" for key in SUMMARY_KEYS if event.details.get(key)]
    return " ".join(parts)
