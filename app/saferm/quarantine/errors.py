"""Exception hierarchy for quarantine operations.

Per-item conditions (missing paths, relocation failures) are caught by
the batch driver and reported as item results.
Batch-level conditions (aggregate space shortfall, lock contention)
propagate to the caller before any mutation happens.
"""


class QuarantineError(Exception):
    """Base exception for all quarantine errors."""


class NotFoundError(QuarantineError):
    """Raised when a path or quarantine identifier does not exist."""


class InsufficientSpaceError(QuarantineError):
    """Raised when the quarantine filesystem cannot hold the request."""


class SpaceCalculationError(InsufficientSpaceError):
    """Raised when the space requirement overflows the 64-bit range."""


class RelocationError(QuarantineError):
    """Raised when every transfer strategy failed for an entry."""

    def __init__(self, source: str, reason: str) -> None:
        self.source = source
        self.reason = reason
        super().__init__(f"Failed to relocate {source}: {reason}")


class DepthExceededError(QuarantineError):
    """Raised when a directory tree is nested past the safety limit."""


class DirectoryNotEmptyError(QuarantineError):
    """Raised when a source directory still holds entries after a move."""


class MetadataCorruptionError(QuarantineError):
    """Raised when a persisted record cannot be decoded or is inconsistent."""


class MetadataWriteError(QuarantineError):
    """Raised when a record cannot be durably written."""


class OperationInterrupted(QuarantineError):
    """Raised at a polling point once cancellation has been requested."""


class QuarantineLockedError(QuarantineError):
    """Raised when another saferm process holds the quarantine lock."""
