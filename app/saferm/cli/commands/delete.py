"""Delete command.

This module provides `srm delete` (alias `srm del`), which moves files,
directories and symlinks into the quarantine area instead of unlinking
them.
"""

from typing import Annotated

import typer
from rich.progress import BarColumn, MofNCompleteColumn, Progress, SpinnerColumn, TextColumn

from saferm.cli.display import print_delete_report
from saferm.cli.session import exit_on_error, load_settings, open_manager
from saferm.core.cancel import CancellationToken, handle_interrupts
from saferm.models.results import DeleteReport
from saferm.quarantine.manager import QuarantineManager
from saferm.utils.formatting import console

# Batches at least this large get a progress bar
PROGRESS_MIN_ITEMS = 10


def delete(
    paths: Annotated[
        list[str],
        typer.Argument(help="Files, directories or symlinks to delete."),
    ],
    days: Annotated[
        int | None,
        typer.Option(
            "--days",
            "-d",
            min=0,
            help="Days to keep the items before `srm clean` may remove them.",
        ),
    ] = None,
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            "-f",
            help="Skip the safety checks for system paths, '..' and flag-like names.",
        ),
    ] = False,
) -> None:
    """Move files into quarantine.

    Items stay restorable with `srm restore` until they expire and are
    cleaned. Press Ctrl+C during a run to move everything back.

    Examples:
        srm delete notes.txt build/
        srm del -d 30 old-logs/
        srm delete -f ./-weird-name
    """
    config = load_settings()
    expire_days = days if days is not None else config.expire_days
    token = CancellationToken()

    with exit_on_error():
        manager = open_manager(config, token)
        with handle_interrupts(token):
            report = _run(manager, paths, expire_days, force)

    print_delete_report(report)

    if report.interrupted or report.succeeded < len(report.items):
        raise typer.Exit(code=1)


def _run(manager: QuarantineManager, paths: list[str], expire_days: int, force: bool) -> DeleteReport:
    if len(paths) < PROGRESS_MIN_ITEMS:
        return manager.delete(paths, expire_days, force=force)

    with Progress(
        SpinnerColumn(),
        TextColumn("[info]Quarantining[/]"),
        BarColumn(),
        MofNCompleteColumn(),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task("delete", total=len(paths))
        return manager.delete(
            paths,
            expire_days,
            force=force,
            on_item=lambda _result: progress.advance(task),
        )
