"""Retention policy.

An item expires ``expire_days`` after it was deleted. Listing splits the
store into active and expired items; cleanup selects either the expired
items or everything.
"""

from collections.abc import Iterable
from datetime import datetime

from saferm.models.record import QuarantineRecord
from saferm.models.results import ListingEntry

DEFAULT_EXPIRE_DAYS = 7


def is_expired(record: QuarantineRecord, now: datetime) -> bool:
    """Check whether ``now`` is strictly past the record's expiry."""
    return record.is_expired(now)


def annotate(record: QuarantineRecord, now: datetime) -> ListingEntry:
    """Attach retention state to a record.

    Active entries carry the time left until expiry, expired entries the
    time elapsed since expiry.
    """
    expired = is_expired(record, now)
    delta = now - record.expires_at if expired else record.expires_at - now
    return ListingEntry(record=record, expired=expired, delta=delta)


def partition(
    records: Iterable[QuarantineRecord],
    now: datetime,
) -> tuple[list[ListingEntry], list[ListingEntry]]:
    """Split records into active and expired entries.

    Both lists are ordered by deletion time, oldest first.

    Args:
        records: Records to classify.
        now: Reference time.

    Returns:
        Tuple of (active, expired).
    """
    active: list[ListingEntry] = []
    expired: list[ListingEntry] = []

    for record in sorted(records, key=lambda r: (r.delete_time, r.trash_id)):
        entry = annotate(record, now)
        (expired if entry.expired else active).append(entry)

    return active, expired


def select_for_cleanup(
    records: Iterable[QuarantineRecord],
    now: datetime,
    clean_all: bool = False,
) -> list[QuarantineRecord]:
    """Pick the records a clean run should remove.

    Args:
        records: Candidate records.
        now: Reference time.
        clean_all: Select every record regardless of expiry.

    Returns:
        Selected records, ordered by deletion time.
    """
    ordered = sorted(records, key=lambda r: (r.delete_time, r.trash_id))
    if clean_all:
        return ordered
    return [record for record in ordered if is_expired(record, now)]
