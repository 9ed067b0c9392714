"""Disk-space admission control.

Every deletion is checked against the free space of the quarantine
filesystem before anything is moved: once per item and once for the
batch total.
"""

import logging
import shutil
from pathlib import Path

from saferm.quarantine.errors import InsufficientSpaceError, SpaceCalculationError
from saferm.utils.formatting import format_size

logger = logging.getLogger(__name__)

# Below this size the exact byte count is required; above it, 120%
HEADROOM_THRESHOLD_BYTES = 100 * 1024 * 1024
HEADROOM_PERCENT = 120

# A single item may not take more than this share of the free space
MAX_SINGLE_ITEM_PERCENT = 80

# Space arithmetic is bounded like an unsigned 64-bit counter
_U64_MAX = 2**64 - 1


def required_with_headroom(required_bytes: int) -> int:
    """Apply the safety multiplier to a byte requirement.

    Args:
        required_bytes: Raw size of the data to relocate.

    Returns:
        Bytes that must be free.

    Raises:
        SpaceCalculationError: If the computation leaves the u64 range.
    """
    if required_bytes < HEADROOM_THRESHOLD_BYTES:
        return required_bytes

    scaled = required_bytes * HEADROOM_PERCENT
    if scaled > _U64_MAX:
        msg = "File size too large, calculation overflow"
        raise SpaceCalculationError(msg)
    return scaled // 100


class SpaceGuard:
    """Checks planned relocations against free space on the quarantine device.

    Args:
        trash_dir: Directory on the quarantine filesystem.
    """

    def __init__(self, trash_dir: Path) -> None:
        self._trash_dir = trash_dir

    def available_bytes(self) -> int:
        """Bytes available to the current user on the quarantine filesystem."""
        return shutil.disk_usage(self._trash_dir).free

    def check(self, required_bytes: int, *, single_item: bool) -> None:
        """Reject a relocation that does not fit.

        Args:
            required_bytes: Size of the item or batch.
            single_item: Also apply the single-item share limit.

        Raises:
            InsufficientSpaceError: If the request does not fit.
            SpaceCalculationError: If the requirement overflows.
        """
        available = self.available_bytes()
        if available == 0:
            msg = "No disk space available"
            raise InsufficientSpaceError(msg)

        needed = required_with_headroom(required_bytes)

        if single_item:
            max_allowed = available * MAX_SINGLE_ITEM_PERCENT // 100
            if required_bytes > max_allowed:
                msg = (
                    f"Single file too large: {format_size(required_bytes)} exceeds "
                    f"{MAX_SINGLE_ITEM_PERCENT}% of available space ({format_size(available)})"
                )
                raise InsufficientSpaceError(msg)

        if needed > available:
            msg = (
                f"Insufficient disk space. Need {format_size(needed)} "
                f"but only {format_size(available)} available"
            )
            raise InsufficientSpaceError(msg)

        logger.debug("Admitted %d bytes (%d available)", required_bytes, available)
