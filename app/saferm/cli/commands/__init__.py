"""CLI commands for saferm.

This package contains all subcommand implementations.
"""

from saferm.cli.commands import clean, config, delete, empty, listing, log, restore

__all__ = ["clean", "config", "delete", "empty", "listing", "log", "restore"]
