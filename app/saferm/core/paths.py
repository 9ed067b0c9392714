"""XDG-compliant path management for saferm.

This module provides standardized paths following the XDG Base Directory
Specification for configuration, quarantine data, and state storage.

XDG defaults:
- Config: ~/.config/saferm/
- Data (quarantine root): ~/.local/share/saferm/
- State (audit log): ~/.local/state/saferm/

The quarantine root can be moved with the SAFERM_HOME environment variable.
"""

import os
from pathlib import Path

# Application identifier for directory naming
APP_NAME = "saferm"

# Environment variable overriding the quarantine root
HOME_ENV_VAR = "SAFERM_HOME"

TRASH_DIRNAME = "trash"
META_DIRNAME = "meta"
LOCK_FILENAME = ".lock"

# Owner-only access for everything under the quarantine root
SECURE_DIR_MODE = 0o700
SECURE_FILE_MODE = 0o600


def _get_xdg_dir(env_var: str, default_subdir: str) -> Path:
    """Get XDG directory respecting environment variable override.

    Args:
        env_var: XDG environment variable name (e.g., "XDG_CONFIG_HOME").
        default_subdir: Default subdirectory under home (e.g., ".config").

    Returns:
        Path to the application-specific directory.
    """
    base = os.environ.get(env_var)
    if base:
        return Path(base) / APP_NAME
    return Path.home() / default_subdir / APP_NAME


def get_config_dir() -> Path:
    """Get the configuration directory path.

    Returns:
        Path to ~/.config/saferm/ (or XDG_CONFIG_HOME/saferm/).
    """
    return _get_xdg_dir("XDG_CONFIG_HOME", ".config")


def get_state_dir() -> Path:
    """Get the state directory path.

    State data includes the audit log, which should persist between
    runs but is not configuration.

    Returns:
        Path to ~/.local/state/saferm/ (or XDG_STATE_HOME/saferm/).
    """
    return _get_xdg_dir("XDG_STATE_HOME", ".local/state")


def get_config_path() -> Path:
    """Get the settings file path.

    Returns:
        Path to ~/.config/saferm/config.toml.
    """
    return get_config_dir() / "config.toml"


def get_audit_log_path() -> Path:
    """Get the audit log path.

    Returns:
        Path to ~/.local/state/saferm/srm.log.
    """
    return get_state_dir() / "srm.log"


def get_quarantine_root(override: Path | None = None) -> Path:
    """Get the quarantine root directory.

    Resolution order: explicit override, SAFERM_HOME, then the XDG data
    directory (~/.local/share/saferm/).

    Args:
        override: Optional explicit root (e.g., from config.toml).

    Returns:
        Absolute path to the quarantine root.
    """
    if override is not None:
        return override.expanduser().absolute()
    env_root = os.environ.get(HOME_ENV_VAR)
    if env_root:
        return Path(env_root).expanduser().absolute()
    return _get_xdg_dir("XDG_DATA_HOME", ".local/share")


def get_trash_dir(root: Path) -> Path:
    """Directory holding relocated items, each named by its trash_id."""
    return root / TRASH_DIRNAME


def get_meta_dir(root: Path) -> Path:
    """Directory holding the ``.meta`` records."""
    return root / META_DIRNAME


def get_lock_path(root: Path) -> Path:
    """Advisory lock file guarding the quarantine root."""
    return root / LOCK_FILENAME


def _ensure_dir(path: Path, name: str, mode: int) -> Path:
    """Create directory if it doesn't exist.

    Args:
        path: Directory path to create.
        name: Human-readable name for error messages.
        mode: Permission bits enforced on the directory even when it
            already existed.

    Returns:
        The created/existing directory path.

    Raises:
        RuntimeError: If directory cannot be created.
    """
    try:
        path.mkdir(parents=True, exist_ok=True)
        path.chmod(mode)
    except PermissionError as e:
        msg = f"Cannot create {name} directory {path}: Permission denied"
        raise RuntimeError(msg) from e
    except OSError as e:
        msg = f"Cannot create {name} directory {path}: {e}"
        raise RuntimeError(msg) from e
    return path


def ensure_quarantine_dirs(root: Path) -> tuple[Path, Path]:
    """Create the quarantine layout with owner-only access.

    Args:
        root: Quarantine root directory.

    Returns:
        Tuple of (trash_dir, meta_dir).

    Raises:
        RuntimeError: If any directory cannot be created.
    """
    _ensure_dir(root, "quarantine", SECURE_DIR_MODE)
    trash_dir = _ensure_dir(get_trash_dir(root), "trash", SECURE_DIR_MODE)
    meta_dir = _ensure_dir(get_meta_dir(root), "meta", SECURE_DIR_MODE)
    return trash_dir, meta_dir
