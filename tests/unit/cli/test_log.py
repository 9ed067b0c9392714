"""Unit tests for the log command."""

import json
from pathlib import Path

from saferm.cli.main import app
from saferm.quarantine.audit import AuditLog
from saferm.quarantine.manager import QuarantineManager
from typer.testing import CliRunner

runner = CliRunner()


def delete_one(quarantine_root: Path, workdir: Path) -> str:
    """Delete a file with auditing enabled; return its short ID."""
    target = workdir / "notes.txt"
    target.write_text("notes")
    short_id = QuarantineManager(quarantine_root, audit=AuditLog()).delete([target], 7).items[0].short_id
    assert short_id is not None
    return short_id


class TestLogCommand:
    """Tests for `srm log`."""

    def test_no_events(self) -> None:
        result = runner.invoke(app, ["log"])

        assert result.exit_code == 0
        assert "No audit events recorded." in result.output

    def test_shows_delete_events(self, quarantine_root: Path, workdir: Path) -> None:
        short_id = delete_one(quarantine_root, workdir)

        result = runner.invoke(app, ["log"])

        assert result.exit_code == 0
        assert "Delete command started" in result.output
        assert "File deleted" in result.output
        assert short_id in result.output

    def test_limit(self, quarantine_root: Path, workdir: Path) -> None:
        delete_one(quarantine_root, workdir)

        result = runner.invoke(app, ["log", "-n", "1"])

        assert result.exit_code == 0
        assert "Delete command completed" in result.output
        assert "Delete command started" not in result.output

    def test_json_output(self, quarantine_root: Path, workdir: Path) -> None:
        short_id = delete_one(quarantine_root, workdir)

        result = runner.invoke(app, ["log", "--json"])

        assert result.exit_code == 0
        events = json.loads(result.output)
        assert [event["message"] for event in events] == [
            "Delete command completed",
            "File deleted",
            "Delete command started",
        ]
        assert events[1]["details"]["short_id"] == short_id
        assert events[1]["level"] == "INFO"
