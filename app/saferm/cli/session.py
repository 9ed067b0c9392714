"""Shared setup for CLI commands.

Loads settings, builds the QuarantineManager with its audit log, and maps
library errors to CLI exits.
"""

from collections.abc import Iterator
from contextlib import contextmanager

import typer

from saferm.core.cancel import CancellationToken
from saferm.core.config import ConfigError, SafermConfig, load_config
from saferm.quarantine.audit import AuditLog
from saferm.quarantine.errors import QuarantineError
from saferm.quarantine.manager import QuarantineManager
from saferm.utils.formatting import print_error


def load_settings() -> SafermConfig:
    """Load user settings, exiting with an error message if they are invalid.

    Raises:
        typer.Exit: If the settings file cannot be loaded.
    """
    try:
        return load_config()
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e


def open_manager(config: SafermConfig, token: CancellationToken | None = None) -> QuarantineManager:
    """Create a manager for the configured quarantine root.

    Old audit entries are rotated out on the way.
    """
    audit = AuditLog()
    audit.rotate(config.log_retention_days)
    return QuarantineManager.from_config(config, token=token, audit=audit)


@contextmanager
def exit_on_error() -> Iterator[None]:
    """Turn quarantine and setup errors into ``typer.Exit(1)``."""
    try:
        yield
    except (QuarantineError, RuntimeError) as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e
