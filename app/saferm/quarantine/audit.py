"""Audit log persistence.

Appends AuditEvents to a JSON Lines file readable only by its owner,
reads them back, and rotates out entries older than the retention
window. Audit failures never abort the operation being audited.
"""

import json
import logging
import os
from datetime import datetime, timedelta
from pathlib import Path

from saferm.core.paths import SECURE_DIR_MODE, SECURE_FILE_MODE, get_state_dir
from saferm.models.audit import AuditEvent

logger = logging.getLogger(__name__)

DEFAULT_LOG_RETENTION_DAYS = 30


class AuditLog:
    """Manages the audit log in a JSONL file.

    Storage location: ~/.local/state/saferm/srm.log

    Attributes:
        state_dir: Directory containing the log file.
    """

    LOG_FILENAME = "srm.log"

    def __init__(self, state_dir: Path | None = None) -> None:
        """Initialize AuditLog.

        Args:
            state_dir: Optional override for state directory.
                      Default: ~/.local/state/saferm
        """
        self._state_dir = state_dir if state_dir is not None else get_state_dir()

    @property
    def log_path(self) -> Path:
        return self._state_dir / self.LOG_FILENAME

    def record(self, event: AuditEvent) -> None:
        """Append an event to the log.

        Errors are logged and otherwise ignored.

        Args:
            event: Event to append.
        """
        try:
            self._state_dir.mkdir(mode=SECURE_DIR_MODE, parents=True, exist_ok=True)
            fd = os.open(self.log_path, os.O_WRONLY | os.O_CREAT | os.O_APPEND, SECURE_FILE_MODE)
            with os.fdopen(fd, "a", encoding="utf-8") as f:
                f.write(event.to_json_line() + "\n")
                f.flush()
        except OSError as e:
            logger.warning("Failed to write audit log %s: %s", self.log_path, e)

    def read(self, limit: int | None = None) -> list[AuditEvent]:
        """Read events, newest first.

        Args:
            limit: Maximum number of events to return.

        Returns:
            List of AuditEvent, newest first. Empty if the log is missing.
        """
        if not self.log_path.exists():
            return []

        events: list[AuditEvent] = []
        with self.log_path.open(encoding="utf-8") as f:
            for line_num, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    events.append(AuditEvent.from_json_line(line))
                except (json.JSONDecodeError, KeyError, ValueError) as e:
                    logger.warning("Skipping corrupt audit line %d: %s", line_num, e)

        events.reverse()
        if limit is not None:
            return events[:limit]
        return events

    def rotate(self, max_age_days: int = DEFAULT_LOG_RETENTION_DAYS, now: datetime | None = None) -> int:
        """Drop events older than ``max_age_days``.

        Unparseable lines are dropped as well. The log is rewritten through
        a temporary file and an atomic rename.

        Args:
            max_age_days: Retention window for audit events.
            now: Reference time (defaults to the current local time).

        Returns:
            Number of lines removed.
        """
        if not self.log_path.exists():
            return 0

        cutoff = (now or datetime.now()) - timedelta(days=max_age_days)
        tmp_path = self.log_path.with_name(self.LOG_FILENAME + ".tmp")
        kept = 0
        dropped = 0

        try:
            fd = os.open(tmp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, SECURE_FILE_MODE)
            with (
                self.log_path.open(encoding="utf-8") as src,
                os.fdopen(fd, "w", encoding="utf-8") as dst,
            ):
                for line in src:
                    line = line.strip()
                    if not line:
                        continue
                    if _is_recent(line, cutoff):
                        dst.write(line + "\n")
                        kept += 1
                    else:
                        dropped += 1
            os.replace(tmp_path, self.log_path)
        except OSError as e:
            logger.warning("Failed to rotate audit log %s: %s", self.log_path, e)
            tmp_path.unlink(missing_ok=True)
            return 0

        logger.debug("Rotated audit log: kept %d, dropped %d", kept, dropped)
        return dropped


def _is_recent(line: str, cutoff: datetime) -> bool:
    try:
        return AuditEvent.from_json_line(line).logged_at >= cutoff
    except (json.JSONDecodeError, KeyError, ValueError):
        return False
