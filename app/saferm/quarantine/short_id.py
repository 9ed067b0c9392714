"""Short identifier allocation.

Short IDs are what users type to restore an item: a one-letter type tag
followed by the first characters of an MD5 digest of the trash_id
(e.g. ``fa3b4c5``). The digest only spreads identifiers evenly; it is
not a security mechanism.
"""

import hashlib
import os
from collections.abc import Iterable

from saferm.models.record import FileKind

SHORT_ID_LENGTH = 6


def short_id_base(trash_id: str, file_type: FileKind) -> str:
    """Derive the collision-free candidate for a trash_id."""
    # fsencode keeps undecodable file-name bytes as they are on disk
    digest = hashlib.md5(os.fsencode(trash_id), usedforsecurity=False).hexdigest()
    return f"{file_type.tag}{digest[:SHORT_ID_LENGTH]}"


def allocate_short_id(trash_id: str, file_type: FileKind, existing: set[str]) -> str:
    """Derive a short ID that is not in ``existing``.

    Collisions are resolved by appending ``_1``, ``_2``, ... to the base
    candidate until a free identifier is found.

    Args:
        trash_id: Globally unique storage key of the item.
        file_type: Kind of the item (selects the tag letter).
        existing: Identifiers already in use.

    Returns:
        A short ID absent from ``existing``.
    """
    base = short_id_base(trash_id, file_type)
    candidate = base
    counter = 1
    while candidate in existing:
        candidate = f"{base}_{counter}"
        counter += 1
    return candidate


class ShortIdAllocator:
    """Allocates short IDs and remembers every one handed out.

    Args:
        existing: Identifiers of live records to avoid.
    """

    def __init__(self, existing: Iterable[str] = ()) -> None:
        self._in_use: set[str] = set(existing)

    def allocate(self, trash_id: str, file_type: FileKind) -> str:
        """Allocate and reserve a short ID for an item."""
        short_id = allocate_short_id(trash_id, file_type, self._in_use)
        self._in_use.add(short_id)
        return short_id

    def reserve(self, short_id: str) -> bool:
        """Mark an existing identifier as taken.

        Returns:
            False if the identifier was already reserved.
        """
        if short_id in self._in_use:
            return False
        self._in_use.add(short_id)
        return True

    def release(self, short_id: str) -> None:
        """Return an identifier whose item never made it into the store."""
        self._in_use.discard(short_id)

