"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules.
"""

from pathlib import Path

import pytest
from saferm.core.cancel import CancellationToken
from saferm.quarantine.audit import AuditLog
from saferm.quarantine.manager import QuarantineManager


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point every XDG location and SAFERM_HOME into the test directory."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home / ".config"))
    monkeypatch.setenv("XDG_STATE_HOME", str(home / ".local" / "state"))
    monkeypatch.setenv("XDG_DATA_HOME", str(home / ".local" / "share"))
    monkeypatch.setenv("SAFERM_HOME", str(tmp_path / "quarantine"))
    return home


@pytest.fixture
def quarantine_root(tmp_path: Path) -> Path:
    """Quarantine root used by the manager fixtures (created lazily)."""
    return tmp_path / "quarantine"


@pytest.fixture
def workdir(tmp_path: Path) -> Path:
    """Directory holding the files tests delete."""
    path = tmp_path / "work"
    path.mkdir()
    return path


@pytest.fixture
def token() -> CancellationToken:
    return CancellationToken()


@pytest.fixture
def audit(tmp_path: Path) -> AuditLog:
    return AuditLog(tmp_path / "state")


@pytest.fixture
def manager(quarantine_root: Path, token: CancellationToken, audit: AuditLog) -> QuarantineManager:
    """QuarantineManager over a fresh quarantine root."""
    mgr = QuarantineManager(quarantine_root, audit=audit, token=token)
    mgr.ensure_layout()
    return mgr
