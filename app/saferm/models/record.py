"""Quarantine record model.

This module defines the persisted description of a quarantined item.
One record is written per item as a JSON document named
``<trash_id>.meta`` in the quarantine meta directory.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from enum import Enum
from typing import Any

# On-disk timestamp format for delete_time (naive local time)
DELETE_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


class FileKind(str, Enum):
    """Type of a quarantined filesystem entry.

    The values are the on-disk spelling used in ``.meta`` records.

    Attributes:
        FILE: Regular file (or any other non-directory, non-link entry).
        DIRECTORY: Directory, relocated recursively.
        SYMLINK: Symbolic link, relocated as a link (target untouched).
    """

    FILE = "File"
    DIRECTORY = "Dir"
    SYMLINK = "Symlink"

    @property
    def tag(self) -> str:
        """One-letter prefix used in short identifiers."""
        return _KIND_TAGS[self]

    @property
    def label(self) -> str:
        """Lowercase label for display."""
        return _KIND_LABELS[self]


_KIND_TAGS: dict[FileKind, str] = {
    FileKind.FILE: "f",
    FileKind.DIRECTORY: "d",
    FileKind.SYMLINK: "l",
}

_KIND_LABELS: dict[FileKind, str] = {
    FileKind.FILE: "file",
    FileKind.DIRECTORY: "dir",
    FileKind.SYMLINK: "symlink",
}


@dataclass(frozen=True, slots=True)
class QuarantineRecord:
    """Recoverable description of one quarantined item.

    Attributes:
        trash_id: Unique storage key, also the quarantined entry's name.
        original_path: Absolute path the item was deleted from.
        trash_path: Absolute path of the quarantined copy.
        delete_time: Local time of relocation (second precision).
        expire_days: Retention window chosen at deletion time.
        file_type: Kind of entry that was quarantined.
        permissions: Raw st_mode captured at deletion, if available.
        owner_uid: Numeric owner captured at deletion, if available.
        owner_gid: Numeric group captured at deletion, if available.
        short_id: Human-facing identifier (e.g. ``fa3b4c5``).
        size_bytes: Total size at deletion (recursive for directories).
    """

    trash_id: str
    original_path: str
    trash_path: str
    delete_time: datetime
    expire_days: int
    file_type: FileKind
    short_id: str
    size_bytes: int = 0
    permissions: int | None = None
    owner_uid: int | None = None
    owner_gid: int | None = None

    def __post_init__(self) -> None:
        """Validate record data after initialization."""
        if not self.trash_id:
            msg = "trash_id cannot be empty"
            raise ValueError(msg)
        if not self.original_path or not self.trash_path:
            msg = "Record paths cannot be empty"
            raise ValueError(msg)
        if self.expire_days < 0:
            msg = f"expire_days cannot be negative, got {self.expire_days}"
            raise ValueError(msg)
        if self.size_bytes < 0:
            msg = f"size_bytes cannot be negative, got {self.size_bytes}"
            raise ValueError(msg)

    @property
    def expires_at(self) -> datetime:
        """Point in time after which the item is eligible for cleanup."""
        return self.delete_time + timedelta(days=self.expire_days)

    def is_expired(self, now: datetime) -> bool:
        """Check whether the retention window has strictly elapsed."""
        return now > self.expires_at

    @property
    def mode_bits(self) -> int | None:
        """Permission bits (``0o777`` part) of the captured mode."""
        if self.permissions is None:
            return None
        return self.permissions & 0o7777

    def with_short_id(self, short_id: str) -> QuarantineRecord:
        """Return a copy carrying a different short identifier."""
        return replace(self, short_id=short_id)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON storage.

        The trash_id is not stored in the document: it is the file name.

        Returns:
            Dictionary representation of the record.
        """
        return {
            "original_path": self.original_path,
            "trash_path": self.trash_path,
            "delete_time": self.delete_time.strftime(DELETE_TIME_FORMAT),
            "expire_days": self.expire_days,
            "file_type": self.file_type.value,
            "permissions": self.permissions,
            "uid": self.owner_uid,
            "gid": self.owner_gid,
            "short_id": self.short_id,
            "size_bytes": self.size_bytes,
        }

    @classmethod
    def from_dict(cls, trash_id: str, data: dict[str, Any]) -> QuarantineRecord:
        """Deserialize from dictionary.

        A missing ``short_id`` is returned as an empty string so the
        store can backfill it.

        Args:
            trash_id: Storage key the document was read from.
            data: Dictionary containing record data.

        Returns:
            QuarantineRecord instance.

        Raises:
            KeyError: If required fields are missing.
            ValueError: If a field has an invalid value.
            TypeError: If a field has the wrong type.
        """
        return cls(
            trash_id=trash_id,
            original_path=str(data["original_path"]),
            trash_path=str(data["trash_path"]),
            delete_time=datetime.strptime(data["delete_time"], DELETE_TIME_FORMAT),
            expire_days=_as_int(data["expire_days"], "expire_days"),
            file_type=FileKind(data["file_type"]),
            permissions=_as_optional_int(data.get("permissions"), "permissions"),
            owner_uid=_as_optional_int(data.get("uid"), "uid"),
            owner_gid=_as_optional_int(data.get("gid"), "gid"),
            short_id=str(data.get("short_id") or ""),
            size_bytes=_as_int(data.get("size_bytes", 0), "size_bytes"),
        )

    def to_json(self) -> str:
        """Serialize to a pretty-printed JSON document."""
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_json(cls, trash_id: str, content: str) -> QuarantineRecord:
        """Deserialize from a JSON document.

        Raises:
            json.JSONDecodeError: If content is not valid JSON.
            KeyError: If required fields are missing.
            ValueError: If data is invalid.
            TypeError: If the document is not an object.
        """
        data = json.loads(content)
        if not isinstance(data, dict):
            msg = "Record document must be a JSON object"
            raise TypeError(msg)
        return cls.from_dict(trash_id, data)


def _as_int(value: Any, name: str) -> int:
    # bool is an int subclass but never a valid record value
    if isinstance(value, bool) or not isinstance(value, int):
        msg = f"{name} must be an integer, got {value!r}"
        raise TypeError(msg)
    return value


def _as_optional_int(value: Any, name: str) -> int | None:
    if value is None:
        return None
    return _as_int(value, name)
