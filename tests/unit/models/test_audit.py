"""Unit tests for audit event models."""

import json
from datetime import datetime

import pytest
from saferm.models.audit import AuditEvent, AuditLevel, create_audit_event


class TestCreateAuditEvent:
    """Tests for create_audit_event factory."""

    def test_millisecond_timestamp(self) -> None:
        """Timestamps carry exactly three fractional digits."""
        event = create_audit_event(
            AuditLevel.INFO,
            "File deleted",
            now=datetime(2026, 5, 4, 3, 2, 1, 987654),
        )
        assert event.timestamp == "2026-05-04 03:02:01.987"

    def test_logged_at_parses_timestamp(self) -> None:
        event = create_audit_event(AuditLevel.WARN, "x", now=datetime(2026, 5, 4, 3, 2, 1, 5000))
        assert event.logged_at == datetime(2026, 5, 4, 3, 2, 1, 5000)

    def test_empty_message_rejected(self) -> None:
        with pytest.raises(ValueError):
            create_audit_event(AuditLevel.INFO, "")


class TestAuditEventSerialization:
    """Tests for JSON line serialization."""

    def test_json_line_is_single_line(self) -> None:
        event = create_audit_event(AuditLevel.ERROR, "Delete failed", {"path": "/tmp/a\nb"})
        line = event.to_json_line()

        assert "\n" not in line
        assert json.loads(line)["level"] == "ERROR"

    def test_roundtrip(self) -> None:
        event = create_audit_event(AuditLevel.INFO, "File restored", {"short_id": "fa1b2c3"})
        assert AuditEvent.from_json_line(event.to_json_line()) == event

    def test_unknown_level_rejected(self) -> None:
        line = json.dumps({"timestamp": "2026-01-01 00:00:00.000", "level": "DEBUG", "message": "m"})
        with pytest.raises(ValueError):
            AuditEvent.from_json_line(line)
