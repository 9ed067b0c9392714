"""Path safety policy for deletion requests.

Rejects requests that look like mistakes before anything is touched:
OS-critical locations, traversal segments, flag-like arguments, and
anything inside the quarantine area itself.
"""

import os
from pathlib import Path

# Operating-system roots that are never quarantined without --force
PROTECTED_PREFIXES: tuple[str, ...] = (
    "/bin",
    "/sbin",
    "/etc",
    "/usr",
    "/lib",
    "/lib64",
    "/root",
    "/boot",
)


def is_protected_path(path: str) -> bool:
    """Check if a path equals or lies under a protected prefix.

    Matching respects component boundaries, so ``/usr`` protects
    ``/usr/bin`` but not ``/usrdata``.

    Args:
        path: Absolute, canonical path.

    Returns:
        True if the path is protected.
    """
    for prefix in PROTECTED_PREFIXES:
        if path == prefix or path.startswith(prefix + "/"):
            return True
    return False


def has_traversal(raw: str) -> bool:
    """Check if a path contains a ``..`` segment."""
    return ".." in Path(raw).parts


def is_inside(path: Path, root: Path) -> bool:
    """Check if ``path`` is ``root`` or lies below it."""
    try:
        path.relative_to(root)
    except ValueError:
        return False
    return True


def check_path_policy(
    raw: str,
    absolute: Path,
    quarantine_root: Path,
    *,
    force: bool = False,
) -> str | None:
    """Decide whether a deletion request may proceed.

    The quarantine area is refused even with force; everything else is
    skipped when force is set.

    Args:
        raw: Path exactly as the user supplied it.
        absolute: The path made absolute (not resolved).
        quarantine_root: Root of the quarantine area.
        force: Disable the safety checks.

    Returns:
        Rejection reason, or None if the path is acceptable.
    """
    resolved_root = quarantine_root.resolve()
    resolved = absolute.parent.resolve() / absolute.name
    if is_inside(absolute, quarantine_root) or is_inside(resolved, resolved_root):
        return "Path is inside the quarantine area"
    if is_inside(resolved_root, resolved.resolve()):
        return "Path contains the quarantine area"

    if force:
        return None

    if raw.startswith("-"):
        return f"Path looks like a command-line flag ('{raw}'); use -f to override"

    if has_traversal(raw):
        return f"Path traversal detected ('{raw}'); use -f to override"

    if absolute.is_symlink():
        try:
            target = os.readlink(absolute)
        except OSError as e:
            return f"Cannot read symlink: {e}"
        if any(target.startswith(prefix) for prefix in PROTECTED_PREFIXES):
            return f"Symlink targets protected path: {target}"
        return None

    if is_protected_path(str(absolute.resolve())):
        return "Protected system path (use -f to override)"

    return None
