"""Unit tests for AuditLog persistence."""

import stat
from datetime import datetime, timedelta
from pathlib import Path

from saferm.models.audit import AuditLevel, create_audit_event
from saferm.quarantine.audit import AuditLog

NOW = datetime(2026, 6, 30, 8, 0, 0)


class TestRecord:
    """Tests for appending events."""

    def test_creates_owner_only_log(self, tmp_path: Path) -> None:
        log = AuditLog(tmp_path / "state")

        log.record(create_audit_event(AuditLevel.INFO, "File deleted", {"short_id": "fa00001"}))

        assert log.log_path == tmp_path / "state" / "srm.log"
        assert stat.S_IMODE(log.log_path.stat().st_mode) == 0o600

    def test_read_newest_first(self, tmp_path: Path) -> None:
        log = AuditLog(tmp_path)
        log.record(create_audit_event(AuditLevel.INFO, "first"))
        log.record(create_audit_event(AuditLevel.WARN, "second"))
        log.record(create_audit_event(AuditLevel.ERROR, "third"))

        events = log.read()

        assert [e.message for e in events] == ["third", "second", "first"]
        assert events[0].level == AuditLevel.ERROR
        assert [e.message for e in log.read(limit=1)] == ["third"]

    def test_corrupt_lines_skipped(self, tmp_path: Path) -> None:
        log = AuditLog(tmp_path)
        log.record(create_audit_event(AuditLevel.INFO, "good"))
        with log.log_path.open("a") as f:
            f.write("not json\n")

        assert [e.message for e in log.read()] == ["good"]

    def test_write_failure_is_not_raised(self, tmp_path: Path) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("file, not a directory")

        AuditLog(blocker / "state").record(create_audit_event(AuditLevel.INFO, "lost"))

    def test_read_missing_log(self, tmp_path: Path) -> None:
        assert AuditLog(tmp_path).read() == []


class TestRotate:
    """Tests for rotation of old entries."""

    def test_drops_old_entries(self, tmp_path: Path) -> None:
        log = AuditLog(tmp_path)
        log.record(create_audit_event(AuditLevel.INFO, "ancient", now=NOW - timedelta(days=45)))
        log.record(create_audit_event(AuditLevel.INFO, "recent", now=NOW - timedelta(days=2)))

        dropped = log.rotate(30, now=NOW)

        assert dropped == 1
        assert [e.message for e in log.read()] == ["recent"]
        assert stat.S_IMODE(log.log_path.stat().st_mode) == 0o600

    def test_missing_log(self, tmp_path: Path) -> None:
        assert AuditLog(tmp_path).rotate(30, now=NOW) == 0
