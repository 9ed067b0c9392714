"""Quarantine engine for saferm.

This package contains everything that moves items into and out of the
quarantine area. The manager lives in ``saferm.quarantine.manager``; the
package itself exposes only the error hierarchy, which the core modules
depend on.

Public API:
- QuarantineError: Base class of all quarantine failures
- NotFoundError, InsufficientSpaceError, SpaceCalculationError,
  RelocationError, DepthExceededError, DirectoryNotEmptyError,
  MetadataCorruptionError, MetadataWriteError, OperationInterrupted,
  QuarantineLockedError
"""

from saferm.quarantine.errors import (
    DepthExceededError,
    DirectoryNotEmptyError,
    InsufficientSpaceError,
    MetadataCorruptionError,
    MetadataWriteError,
    NotFoundError,
    OperationInterrupted,
    QuarantineError,
    QuarantineLockedError,
    RelocationError,
    SpaceCalculationError,
)

__all__ = [
    "DepthExceededError",
    "DirectoryNotEmptyError",
    "InsufficientSpaceError",
    "MetadataCorruptionError",
    "MetadataWriteError",
    "NotFoundError",
    "OperationInterrupted",
    "QuarantineError",
    "QuarantineLockedError",
    "RelocationError",
    "SpaceCalculationError",
]
