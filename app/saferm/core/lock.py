"""Advisory lock guarding the quarantine area.

Only one saferm process may mutate a quarantine root at a time. The lock
is an ``flock`` on ``<root>/.lock``, taken without blocking: a second
instance fails immediately instead of waiting.
"""

from __future__ import annotations

import fcntl
import logging
import os
from pathlib import Path
from types import TracebackType

from saferm.core.paths import SECURE_FILE_MODE, get_lock_path
from saferm.quarantine.errors import QuarantineLockedError

logger = logging.getLogger(__name__)


class QuarantineLock:
    """Exclusive, non-blocking advisory lock on a quarantine root.

    Usable as a context manager::

        with QuarantineLock(root):
            ...

    Args:
        root: Quarantine root directory (must exist).
    """

    def __init__(self, root: Path) -> None:
        self._path = get_lock_path(root)
        self._fd: int | None = None

    @property
    def path(self) -> Path:
        return self._path

    @property
    def held(self) -> bool:
        return self._fd is not None

    def acquire(self) -> None:
        """Take the lock.

        Raises:
            QuarantineLockedError: If another process holds the lock.
            OSError: If the lock file cannot be opened.
        """
        if self._fd is not None:
            return

        fd = os.open(self._path, os.O_RDWR | os.O_CREAT, SECURE_FILE_MODE)
        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError as e:
            os.close(fd)
            msg = f"Another srm process is using the quarantine area ({self._path})"
            raise QuarantineLockedError(msg) from e
        except OSError:
            os.close(fd)
            raise

        self._fd = fd
        logger.debug("Acquired quarantine lock %s", self._path)

    def release(self) -> None:
        """Release the lock if held."""
        if self._fd is None:
            return
        try:
            fcntl.flock(self._fd, fcntl.LOCK_UN)
        finally:
            os.close(self._fd)
            self._fd = None
        logger.debug("Released quarantine lock %s", self._path)

    def __enter__(self) -> QuarantineLock:
        self.acquire()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.release()
