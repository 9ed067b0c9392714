"""Rich console formatting utilities.

Provides consistent formatting for CLI output using Rich, plus the
plain-text helpers (sizes, durations, truncated paths) shared by the
CLI and by error messages.
"""

import sys
from datetime import timedelta

from rich.console import Console

from saferm.core.theme import get_theme


def _detect_color_system() -> str | None:
    """Detect the best color system for the current terminal.

    Returns "truecolor" for interactive terminals to enable full hex color support,
    None otherwise to let Rich auto-detect.
    """
    if sys.stdout.isatty():
        return "truecolor"
    return None


# Shared console instances (theme loaded once at import)
console = Console(theme=get_theme(), color_system=_detect_color_system())
err_console = Console(theme=get_theme(), stderr=True, color_system=_detect_color_system())


def format_size(size_bytes: int | None) -> str:
    """Format byte count as human-readable string.

    Args:
        size_bytes: Number of bytes (None is shown as 0 B).

    Returns:
        String such as ``512 B`` or ``1.5 MB``.
    """
    if not size_bytes:
        return "0 B"
    size = float(size_bytes)
    for unit in ("B", "KB", "MB", "GB"):
        if abs(size) < 1024:
            return f"{size:.1f} {unit}" if unit != "B" else f"{int(size)} B"
        size /= 1024
    return f"{size:.1f} TB"


def format_duration(duration: timedelta) -> str:
    """Format a duration as ``Xd Yh``, ``Xh Ym`` or ``Xm``.

    Negative durations are shown by magnitude.

    Args:
        duration: Duration to format.

    Returns:
        Compact human-readable duration.
    """
    total_minutes = int(abs(duration).total_seconds()) // 60
    days, remainder = divmod(total_minutes, 24 * 60)
    hours, minutes = divmod(remainder, 60)

    if days > 0:
        return f"{days}d {hours}h"
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def truncate_path(path: str, max_len: int) -> str:
    """Shorten a path by eliding its middle.

    Args:
        path: Path to shorten.
        max_len: Maximum length of the result.

    Returns:
        The path, or ``head...tail`` when it is too long.
    """
    if len(path) <= max_len:
        return path
    half = (max_len - 3) // 2
    return f"{path[:half]}...{path[len(path) - half :]}"


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[info]{message}[/]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    err_console.print(f"[warning]Warning:[/] {message}")


def print_error(message: str) -> None:
    """Print an error message."""
    err_console.print(f"[error]Error:[/] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[success]{message}[/]")
