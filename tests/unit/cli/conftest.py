"""Fixtures shared by the CLI tests."""

import pytest
from saferm.utils import formatting


@pytest.fixture(autouse=True)
def wide_console(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep long temporary paths on one line of Rich output."""
    monkeypatch.setattr(formatting.console, "width", 250)
    monkeypatch.setattr(formatting.err_console, "width", 250)
