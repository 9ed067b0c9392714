"""Restore command.

This module provides `srm restore` (alias `srm res`), which moves
quarantined items back to their original location or to a chosen target.
"""

from pathlib import Path
from typing import Annotated

import typer
from rich.markup import escape

from saferm.cli.session import exit_on_error, load_settings, open_manager
from saferm.core.cancel import CancellationToken, handle_interrupts
from saferm.utils.formatting import console, print_error, print_warning


def _confirm_overwrite(target: Path) -> bool:
    return typer.confirm(f"{target} already exists. Overwrite?", default=False)


def restore(
    identifiers: Annotated[
        list[str],
        typer.Argument(help="Short IDs (see `srm list`) of the items to restore."),
    ],
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Overwrite existing files without asking."),
    ] = False,
    target: Annotated[
        Path | None,
        typer.Option(
            "--target",
            "-t",
            help="Restore here instead of the original path (a directory keeps the original name).",
        ),
    ] = None,
) -> None:
    """Restore quarantined items.

    Examples:
        srm restore fa1b2c3
        srm res d9e8f7a -t ~/recovered/
    """
    config = load_settings()
    token = CancellationToken()

    with exit_on_error():
        manager = open_manager(config, token)
        with handle_interrupts(token):
            report = manager.restore(
                identifiers,
                force=force,
                target=target,
                confirm_overwrite=_confirm_overwrite,
            )

    for result in report.results:
        if result.success:
            console.print(
                f"[success]Restored[/] [short_id]{escape(result.identifier)}[/] "
                f"[muted]->[/] {escape(result.target or '')}"
            )
        elif result.skipped:
            print_warning(f"Skipped {escape(result.identifier)}: {escape(result.target or '')} exists")
        else:
            print_error(escape(result.error or f"Failed to restore {result.identifier}"))

    if report.restored < len(report.results):
        raise typer.Exit(code=1)
