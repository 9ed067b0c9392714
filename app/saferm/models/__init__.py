"""Data models for saferm.

This module exports the core data structures used throughout the application.
"""

from saferm.models.audit import AuditEvent, AuditLevel, create_audit_event
from saferm.models.record import DELETE_TIME_FORMAT, FileKind, QuarantineRecord
from saferm.models.results import (
    CleanReport,
    DeleteReport,
    EmptyReport,
    ItemResult,
    ItemStatus,
    ListingEntry,
    RestoreReport,
    RestoreResult,
)

__all__ = [
    "DELETE_TIME_FORMAT",
    "AuditEvent",
    "AuditLevel",
    "CleanReport",
    "DeleteReport",
    "EmptyReport",
    "FileKind",
    "ItemResult",
    "ItemStatus",
    "ListingEntry",
    "QuarantineRecord",
    "RestoreReport",
    "RestoreResult",
    "create_audit_event",
]
