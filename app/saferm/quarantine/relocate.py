"""Move-or-copy relocation of filesystem entries.

Relocates a single file, directory, or symlink using the cheapest
strategy that works, falling back in a fixed order:

1. rename (atomic, same filesystem only)
2. symlink re-creation (links crossing filesystems)
3. recursive directory move (directories crossing filesystems)
4. file transfer: copy-on-write clone, hard link, mmap chunked copy,
   buffered streaming copy

A copied source is removed only after the destination has been fully
written and synced.
"""

import enum
import fcntl
import logging
import mmap
import os
import shutil
import stat
import sys
from collections.abc import Callable
from pathlib import Path

from saferm.core.cancel import CancellationToken
from saferm.quarantine.errors import (
    DirectoryNotEmptyError,
    OperationInterrupted,
    QuarantineError,
    RelocationError,
)
from saferm.quarantine.walker import MAX_DEPTH, DirectoryWalker

logger = logging.getLogger(__name__)

# Linux FICLONE ioctl request number (_IOW(0x94, 9, int))
FICLONE = 0x40049409

# Files above this size are copied through a memory map
MMAP_THRESHOLD_BYTES = 10 * 1024 * 1024
MMAP_CHUNK_BYTES = 4 * 1024 * 1024
STREAM_CHUNK_BYTES = 256 * 1024

ProgressCallback = Callable[[int], None]


class TransferStrategy(str, enum.Enum):
    """Strategies tried when relocating an entry."""

    RENAME = "rename"
    SYMLINK = "symlink"
    DIRECTORY = "directory"
    CLONE = "clone"
    HARDLINK = "hardlink"
    MMAP_COPY = "mmap_copy"
    STREAM_COPY = "stream_copy"


def clone_supported() -> bool:
    """Whether the copy-on-write clone strategy exists on this platform."""
    return sys.platform.startswith("linux")


class Relocator:
    """Relocates filesystem entries with strategy fallback.

    Args:
        token: Cancellation token polled during directory walks and
            chunked copies.
        enable_clone: Allow the copy-on-write clone strategy where the
            platform supports it.
        max_depth: Nesting limit for recursive directory moves.
        progress: Optional callback receiving byte counts as data moves.
    """

    def __init__(
        self,
        token: CancellationToken,
        *,
        enable_clone: bool = True,
        max_depth: int = MAX_DEPTH,
        progress: ProgressCallback | None = None,
    ) -> None:
        self._token = token
        self._enable_clone = enable_clone and clone_supported()
        self._walker = DirectoryWalker(token, max_depth=max_depth)
        self._progress = progress

    def move(self, src: Path, dst: Path) -> int:
        """Move ``src`` to ``dst``.

        ``dst`` must not exist, except that a directory may be moved onto
        an existing directory, in which case the trees are merged.

        Args:
            src: Entry to relocate.
            dst: Destination path.

        Returns:
            Number of bytes transferred. Symlinks and directories moved
            by a single rename count as 0.

        Raises:
            RelocationError: If every applicable strategy failed.
            DepthExceededError: If a directory is nested too deeply.
            DirectoryNotEmptyError: If a source directory could not be emptied.
            OperationInterrupted: If cancellation is observed mid-transfer.
        """
        try:
            src_stat = src.lstat()
        except OSError as e:
            raise RelocationError(str(src), str(e)) from e

        is_dir = stat.S_ISDIR(src_stat.st_mode)
        if os.path.lexists(dst) and not (is_dir and dst.is_dir() and not dst.is_symlink()):
            raise RelocationError(str(src), f"destination already exists: {dst}")

        try:
            os.rename(src, dst)
        except OSError as e:
            logger.debug("Rename %s -> %s failed: %s", src, dst, e)
        else:
            logger.debug("Moved %s via %s", src, TransferStrategy.RENAME.value)
            if is_dir:
                return 0
            self._report(src_stat.st_size)
            return src_stat.st_size

        if stat.S_ISLNK(src_stat.st_mode):
            return self._move_symlink(src, dst)

        if is_dir:
            return self._move_directory(src, dst)

        return self._move_file(src, dst, src_stat.st_size)

    def _report(self, nbytes: int) -> None:
        if self._progress is not None and nbytes:
            self._progress(nbytes)

    # -------------------------------------------------------------------------
    # Symlinks and directories
    # -------------------------------------------------------------------------

    def _move_symlink(self, src: Path, dst: Path) -> int:
        """Re-create a symlink at the destination and drop the original."""
        try:
            target = os.readlink(src)
            os.symlink(target, dst)
        except OSError as e:
            raise RelocationError(str(src), str(e)) from e

        try:
            os.unlink(src)
        except OSError as e:
            _remove_partial(dst)
            raise RelocationError(str(src), str(e)) from e

        logger.debug("Moved %s via %s", src, TransferStrategy.SYMLINK.value)
        return 0

    def _move_directory(self, src: Path, dst: Path) -> int:
        """Move a directory tree entry by entry.

        Destination directories are created as the walk reaches them.
        Emptied source directories are removed deepest first once every
        entry has been relocated. Directories that already existed at the
        destination keep their own mode and timestamps.
        """
        total = 0
        visited: list[tuple[Path, Path, bool]] = []

        try:
            for step in self._walker.walk(src):
                target_dir = dst / step.relative
                created = not target_dir.is_dir()
                target_dir.mkdir(mode=0o700, exist_ok=True)
                visited.append((step.path, target_dir, created))

                for entry in step.entries:
                    total += self.move(entry, target_dir / entry.name)

            for source_dir, target_dir, created in reversed(visited):
                if created:
                    _copy_metadata(source_dir, target_dir)
                try:
                    os.rmdir(source_dir)
                except OSError as e:
                    if not _is_empty_dir(source_dir):
                        msg = f"Directory not fully emptied: {source_dir}"
                        raise DirectoryNotEmptyError(msg) from e
                    raise
        except QuarantineError:
            raise
        except OSError as e:
            raise RelocationError(str(src), str(e)) from e

        logger.debug("Moved %s via %s", src, TransferStrategy.DIRECTORY.value)
        return total

    # -------------------------------------------------------------------------
    # Regular files
    # -------------------------------------------------------------------------

    def _move_file(self, src: Path, dst: Path, size: int) -> int:
        """Transfer a regular file, then remove the source."""
        strategies: list[tuple[TransferStrategy, Callable[[Path, Path, int], bool]]] = [
            (TransferStrategy.CLONE, self._clone),
            (TransferStrategy.HARDLINK, self._hardlink),
            (TransferStrategy.MMAP_COPY, self._mmap_copy),
            (TransferStrategy.STREAM_COPY, self._stream_copy),
        ]
        last_error: OSError | None = None

        for strategy, transfer in strategies:
            try:
                done = transfer(src, dst, size)
            except OperationInterrupted:
                _remove_partial(dst)
                raise
            except OSError as e:
                logger.debug("Strategy %s failed for %s: %s", strategy.value, src, e)
                _remove_partial(dst)
                last_error = e
                continue
            if not done:
                continue

            try:
                os.unlink(src)
            except OSError as e:
                # Never leave two live copies behind
                _remove_partial(dst)
                raise RelocationError(str(src), f"cannot remove source: {e}") from e

            logger.debug("Moved %s via %s", src, strategy.value)
            return size

        reason = str(last_error) if last_error else "no transfer strategy applicable"
        raise RelocationError(str(src), reason)

    def _clone(self, src: Path, dst: Path, size: int) -> bool:
        """Copy-on-write clone via the FICLONE ioctl."""
        if not self._enable_clone:
            return False

        with open(src, "rb") as fsrc:
            fd = os.open(dst, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
            try:
                fcntl.ioctl(fd, FICLONE, fsrc.fileno())
                os.fsync(fd)
            finally:
                os.close(fd)

        _copy_metadata(src, dst)
        self._report(size)
        return True

    def _hardlink(self, src: Path, dst: Path, size: int) -> bool:
        """Hard link when source and destination share a filesystem."""
        if src.lstat().st_dev != os.stat(dst.parent).st_dev:
            return False

        os.link(src, dst)
        self._report(size)
        return True

    def _mmap_copy(self, src: Path, dst: Path, size: int) -> bool:
        """Chunked copy of a large file through a read-only memory map."""
        if size <= MMAP_THRESHOLD_BYTES:
            return False

        with (
            open(src, "rb") as fsrc,
            mmap.mmap(fsrc.fileno(), 0, access=mmap.ACCESS_READ) as mapped,
            open(dst, "xb") as fdst,
        ):
            length = len(mapped)
            for offset in range(0, length, MMAP_CHUNK_BYTES):
                self._token.raise_if_cancelled()
                chunk = mapped[offset : offset + MMAP_CHUNK_BYTES]
                fdst.write(chunk)
                self._report(len(chunk))
            fdst.flush()
            os.fsync(fdst.fileno())

        _copy_metadata(src, dst)
        return True

    def _stream_copy(self, src: Path, dst: Path, size: int) -> bool:
        """Plain buffered copy."""
        with open(src, "rb") as fsrc, open(dst, "xb") as fdst:
            while True:
                self._token.raise_if_cancelled()
                chunk = fsrc.read(STREAM_CHUNK_BYTES)
                if not chunk:
                    break
                fdst.write(chunk)
                self._report(len(chunk))
            fdst.flush()
            os.fsync(fdst.fileno())

        _copy_metadata(src, dst)
        return True


def _copy_metadata(src: Path, dst: Path) -> None:
    """Carry mode and timestamps over to a copied entry."""
    try:
        shutil.copystat(src, dst, follow_symlinks=False)
    except OSError as e:
        logger.debug("Cannot copy metadata %s -> %s: %s", src, dst, e)


def _remove_partial(path: Path) -> None:
    """Remove a partially written destination, if any."""
    try:
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
        elif os.path.lexists(path):
            path.unlink()
    except OSError as e:
        logger.warning("Cannot remove partial destination %s: %s", path, e)


def _is_empty_dir(path: Path) -> bool:
    try:
        with os.scandir(path) as it:
            return next(it, None) is None
    except OSError:
        return False
