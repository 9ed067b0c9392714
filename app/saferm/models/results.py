"""Result models returned by quarantine operations.

These are plain immutable data structures consumed by the CLI layer
for rendering and by the audit log for structured events.
"""

from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum

from saferm.models.record import QuarantineRecord


class ItemStatus(str, Enum):
    """Outcome of a single item in a batch.

    Attributes:
        SUCCESS: Item was quarantined (or restored / cleaned).
        SKIPPED: Item was rejected before any mutation.
        FAILED: Item could not be processed.
        ROLLED_BACK: Item was quarantined, then returned by a rollback.
    """

    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"
    ROLLED_BACK = "rolled_back"


@dataclass(frozen=True, slots=True)
class ItemResult:
    """Result of a single delete operation.

    Attributes:
        path: Absolute path of the item.
        status: Outcome of the operation.
        reason: Human-readable reason for a skip or failure.
        short_id: Allocated identifier, for quarantined items.
        size_bytes: Size accounted for this item.
    """

    path: str
    status: ItemStatus
    reason: str | None = None
    short_id: str | None = None
    size_bytes: int = 0

    @property
    def success(self) -> bool:
        """Check if the item ended up in quarantine."""
        return self.status == ItemStatus.SUCCESS


@dataclass(frozen=True, slots=True)
class DeleteReport:
    """Summary of a delete batch.

    Attributes:
        items: Per-item results in caller order (skips first are not
            reordered; each path appears exactly once).
        interrupted: Whether the batch was cancelled.
        rolled_back: Number of quarantined items returned by rollback.
        rollback_failures: Paths whose rollback did not succeed.
        duration_seconds: Wall-clock time spent relocating.
    """

    items: tuple[ItemResult, ...]
    interrupted: bool = False
    rolled_back: int = 0
    rollback_failures: tuple[str, ...] = ()
    duration_seconds: float = 0.0

    def _count(self, status: ItemStatus) -> int:
        return sum(1 for item in self.items if item.status == status)

    @property
    def succeeded(self) -> int:
        return self._count(ItemStatus.SUCCESS)

    @property
    def skipped(self) -> int:
        return self._count(ItemStatus.SKIPPED)

    @property
    def failed(self) -> int:
        return self._count(ItemStatus.FAILED)

    @property
    def total_bytes(self) -> int:
        """Bytes moved into quarantine by successful items."""
        return sum(item.size_bytes for item in self.items if item.success)

    @property
    def throughput(self) -> int:
        """Bytes per second, whole-second resolution like the summary line."""
        seconds = int(self.duration_seconds)
        if seconds > 0:
            return self.total_bytes // seconds
        return self.total_bytes


@dataclass(frozen=True, slots=True)
class RestoreResult:
    """Result of restoring one identifier.

    Attributes:
        identifier: Short ID or trash ID given by the user.
        success: Whether the item was restored.
        target: Path the item was restored to.
        error: Error message if the restore failed.
        skipped: True when the user declined to overwrite the target.
    """

    identifier: str
    success: bool
    target: str | None = None
    error: str | None = None
    skipped: bool = False


@dataclass(frozen=True, slots=True)
class RestoreReport:
    """Summary of a restore run."""

    results: tuple[RestoreResult, ...]

    @property
    def restored(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.success and not r.skipped)


@dataclass(frozen=True, slots=True)
class ListingEntry:
    """A record annotated with its retention state.

    Attributes:
        record: The quarantine record.
        expired: Whether the retention window has elapsed.
        delta: Time until expiry (active) or since expiry (expired).
    """

    record: QuarantineRecord
    expired: bool
    delta: timedelta


@dataclass(frozen=True, slots=True)
class CleanReport:
    """Summary of a clean run.

    Attributes:
        cleaned: Records removed, in processing order.
        disk_errors: Paths whose quarantined copy could not be deleted.
    """

    cleaned: tuple[QuarantineRecord, ...] = ()
    disk_errors: tuple[str, ...] = field(default_factory=tuple)

    @property
    def total_bytes(self) -> int:
        return sum(record.size_bytes for record in self.cleaned)


@dataclass(frozen=True, slots=True)
class EmptyReport:
    """Summary of emptying the whole quarantine area."""

    item_count: int
    total_bytes: int
