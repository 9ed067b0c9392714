"""Audit event model.

This module defines the structured events written to the audit log,
one JSON object per line.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

# Millisecond-precision local timestamp used for every audit line
AUDIT_TIME_FORMAT = "%Y-%m-%d %H:%M:%S.%f"


class AuditLevel(str, Enum):
    """Severity of an audit event."""

    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"


@dataclass(frozen=True, slots=True)
class AuditEvent:
    """Single audit log entry.

    Attributes:
        timestamp: Local time, ``YYYY-MM-DD HH:MM:SS.mmm``.
        level: Severity level.
        message: Human-readable message.
        details: Structured payload (None when there is nothing to add).
    """

    timestamp: str
    level: AuditLevel
    message: str
    details: dict[str, Any] | None = field(default=None)

    def __post_init__(self) -> None:
        """Validate event data after initialization."""
        if not self.message:
            msg = "Audit message cannot be empty"
            raise ValueError(msg)

    @property
    def logged_at(self) -> datetime:
        """Parsed timestamp.

        Raises:
            ValueError: If the timestamp is malformed.
        """
        return datetime.strptime(self.timestamp, AUDIT_TIME_FORMAT)

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "level": self.level.value,
            "message": self.message,
            "details": self.details,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AuditEvent:
        return cls(
            timestamp=data["timestamp"],
            level=AuditLevel(data["level"]),
            message=data["message"],
            details=data.get("details"),
        )

    def to_json_line(self) -> str:
        """Serialize to JSON line (no trailing newline)."""
        return json.dumps(self.to_dict(), separators=(",", ":"))

    @classmethod
    def from_json_line(cls, line: str) -> AuditEvent:
        """Deserialize from a JSON line.

        Raises:
            json.JSONDecodeError: If line is not valid JSON.
            KeyError: If required fields are missing.
            ValueError: If data is invalid.
        """
        return cls.from_dict(json.loads(line.strip()))


def create_audit_event(
    level: AuditLevel,
    message: str,
    details: dict[str, Any] | None = None,
    now: datetime | None = None,
) -> AuditEvent:
    """Factory function to create an AuditEvent stamped with the current time.

    Args:
        level: Severity level.
        message: Human-readable message.
        details: Optional structured payload.
        now: Override for the timestamp (tests).

    Returns:
        New AuditEvent.
    """
    moment = now or datetime.now()
    # strftime %f is microseconds; keep milliseconds
    timestamp = moment.strftime(AUDIT_TIME_FORMAT)[:-3]
    return AuditEvent(timestamp=timestamp, level=level, message=message, details=details)
