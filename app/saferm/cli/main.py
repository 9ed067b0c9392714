"""Main CLI application entry point.

Defines the Typer application and global options.
"""

import logging
from typing import Annotated

import typer

from saferm import __version__
from saferm.cli.commands import clean, config, delete, empty, listing, log, restore

# Create main Typer app
app = typer.Typer(
    name="srm",
    help="Safe rm: move files into a recoverable quarantine instead of deleting them.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"srm version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            help="Enable debug logging.",
        ),
    ] = False,
) -> None:
    """srm - Safe rm with a recoverable quarantine.

    Deleted items are kept for a number of days and can be listed,
    restored, or permanently cleaned.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


# Register commands (short aliases are hidden from help)
app.command(name="delete")(delete.delete)
app.command(name="del", hidden=True)(delete.delete)
app.command(name="restore")(restore.restore)
app.command(name="res", hidden=True)(restore.restore)
app.command(name="list")(listing.list_items)
app.command(name="ls", hidden=True)(listing.list_items)
app.command(name="clean")(clean.clean)
app.command(name="cln", hidden=True)(clean.clean)
app.command(name="empty")(empty.empty)
app.command(name="log")(log.show_log)
app.add_typer(config.app, name="config")


if __name__ == "__main__":
    app()
