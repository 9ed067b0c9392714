"""User settings for saferm.

Settings are stored in ~/.config/saferm/config.toml. Every field has a
default, so a missing file simply yields the defaults::

    expire_days = 7
    quarantine_root = "/mnt/big/.srm"
    log_retention_days = 30
    enable_clone = true
"""

import os
import tomllib
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Annotated

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from saferm.core.paths import get_config_path
from saferm.quarantine.audit import DEFAULT_LOG_RETENTION_DAYS
from saferm.quarantine.retention import DEFAULT_EXPIRE_DAYS


class SafermConfig(BaseModel):
    """Settings controlling quarantine behavior.

    Attributes:
        expire_days: Default retention window for new deletions.
        quarantine_root: Quarantine root override (None = SAFERM_HOME or XDG data dir).
        log_retention_days: Age after which audit log entries are rotated out.
        enable_clone: Try copy-on-write clones for cross-device file moves.
    """

    model_config = ConfigDict(extra="forbid")

    expire_days: Annotated[
        int,
        Field(ge=0, le=36500, description="Default retention window in days"),
    ] = DEFAULT_EXPIRE_DAYS
    quarantine_root: Annotated[
        Path | None,
        Field(description="Quarantine root directory"),
    ] = None
    log_retention_days: Annotated[
        int,
        Field(ge=1, le=3650, description="Audit log retention in days"),
    ] = DEFAULT_LOG_RETENTION_DAYS
    enable_clone: Annotated[
        bool,
        Field(description="Use copy-on-write clones where supported"),
    ] = True


class ConfigError(Exception):
    """Base exception for settings errors."""


class ConfigParseError(ConfigError):
    """Raised when the settings file is not valid TOML."""


def load_config(path: Path | None = None) -> SafermConfig:
    """Load settings from a TOML file.

    Args:
        path: Path to the settings file. If None, uses the default path.

    Returns:
        Validated SafermConfig (defaults when the file does not exist).

    Raises:
        ConfigParseError: If the TOML syntax is invalid.
        ConfigError: If the file cannot be read or fails validation.
    """
    config_path = path or get_config_path()

    if not config_path.exists():
        return SafermConfig()

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigParseError(f"Invalid TOML syntax in {config_path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read settings: {e}") from e

    try:
        return SafermConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid settings in {config_path}: {e}") from e


def save_config(config: SafermConfig, path: Path | None = None) -> Path:
    """Save settings to a TOML file.

    The file is written atomically by first writing to a temporary file
    and then using os.replace() for atomic rename.

    Args:
        config: The settings to save.
        path: Destination. If None, uses the default path.

    Returns:
        Path where the settings were saved.

    Raises:
        ConfigError: If the file cannot be written.
    """
    config_path = path or get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    data = _config_to_dict(config)

    tmp_path: Path | None = None
    try:
        with NamedTemporaryFile(
            mode="wb",
            dir=config_path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            tomli_w.dump(data, f)
        os.replace(str(tmp_path), str(config_path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise ConfigError(f"Failed to write settings: {e}") from e

    return config_path


def _config_to_dict(config: SafermConfig) -> dict[str, object]:
    """Convert settings to a TOML-serializable dictionary.

    None values are omitted since TOML has no null.
    """
    result: dict[str, object] = {
        "expire_days": config.expire_days,
        "log_retention_days": config.log_retention_days,
        "enable_clone": config.enable_clone,
    }
    if config.quarantine_root is not None:
        result["quarantine_root"] = str(config.quarantine_root)
    return result
