"""Unit tests for the list command."""

from datetime import datetime, timedelta
from pathlib import Path

from saferm.cli.main import app
from saferm.quarantine.manager import QuarantineManager
from typer.testing import CliRunner

runner = CliRunner()


def populate(quarantine_root: Path, workdir: Path) -> tuple[str, str]:
    """Quarantine one expired and one active file; return their short IDs."""
    long_ago = datetime.now() - timedelta(days=10)
    old = QuarantineManager(quarantine_root, clock=lambda: long_ago)
    fresh = QuarantineManager(quarantine_root)

    (workdir / "old.log").write_text("old")
    (workdir / "new.txt").write_text("new")
    expired_id = old.delete([workdir / "old.log"], 1).items[0].short_id
    active_id = fresh.delete([workdir / "new.txt"], 7).items[0].short_id
    assert expired_id is not None and active_id is not None
    return expired_id, active_id


class TestListCommand:
    """Tests for `srm list`."""

    def test_empty(self) -> None:
        result = runner.invoke(app, ["list"])

        assert result.exit_code == 0
        assert "Quarantine is empty." in result.output

    def test_lists_active_and_expired(self, quarantine_root: Path, workdir: Path) -> None:
        expired_id, active_id = populate(quarantine_root, workdir)

        result = runner.invoke(app, ["list"])

        assert result.exit_code == 0
        assert expired_id in result.output
        assert active_id in result.output
        assert "2 item(s)" in result.output
        assert "1 expired" in result.output

    def test_expired_only(self, quarantine_root: Path, workdir: Path) -> None:
        expired_id, active_id = populate(quarantine_root, workdir)

        result = runner.invoke(app, ["ls", "--expired"])

        assert result.exit_code == 0
        assert expired_id in result.output
        assert active_id not in result.output

    def test_no_expired_items(self, quarantine_root: Path, workdir: Path) -> None:
        (workdir / "a").write_text("a")
        QuarantineManager(quarantine_root).delete([workdir / "a"], 7)

        result = runner.invoke(app, ["list", "--expired"])

        assert result.exit_code == 0
        assert "No expired items." in result.output

    def test_verbose_shows_mode(self, quarantine_root: Path, workdir: Path) -> None:
        target = workdir / "a"
        target.write_text("a")
        target.chmod(0o640)
        QuarantineManager(quarantine_root).delete([target], 7)

        result = runner.invoke(app, ["list", "-v"])

        assert result.exit_code == 0
        assert "Mode" in result.output
        assert "640" in result.output
