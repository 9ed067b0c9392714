"""Iterative directory traversal.

Walks a directory subtree with an explicit stack so that arbitrarily
deep trees cannot exhaust the interpreter's recursion limit. The walker
is shared by size accounting (admission control) and by recursive
relocation.
"""

import logging
import os
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

from saferm.core.cancel import CancellationToken
from saferm.quarantine.errors import DepthExceededError

logger = logging.getLogger(__name__)

# Maximum directory nesting below the walk root
MAX_DEPTH = 1000


@dataclass(frozen=True, slots=True)
class WalkStep:
    """One visited directory.

    Attributes:
        path: Absolute path of the directory.
        relative: Path relative to the walk root (``.`` for the root).
        depth: Nesting depth, 0 for the root.
        subdirs: Child directories (real directories, not links to them).
        entries: All other children (files, symlinks, special files).
    """

    path: Path
    relative: Path
    depth: int
    subdirs: tuple[Path, ...]
    entries: tuple[Path, ...]


@dataclass(frozen=True, slots=True)
class DirStats:
    """Aggregate size of a directory subtree.

    Attributes:
        total_bytes: Sum of lstat sizes of every non-directory entry.
        total_items: Number of entries below the root (directories included).
    """

    total_bytes: int
    total_items: int


class DirectoryWalker:
    """Depth-bounded, cancellable directory traversal.

    Args:
        token: Cancellation token polled once per visited directory.
        max_depth: Deepest allowed nesting below the root.
    """

    def __init__(self, token: CancellationToken, max_depth: int = MAX_DEPTH) -> None:
        self._token = token
        self._max_depth = max_depth

    def walk(self, root: Path) -> Iterator[WalkStep]:
        """Visit every directory of the subtree rooted at ``root``.

        Parents are always yielded before their children. The children of
        a step are pushed only after the consumer has handled the step, so
        a consumer may create matching destination directories lazily.

        Args:
            root: Directory to traverse.

        Yields:
            WalkStep for each directory.

        Raises:
            DepthExceededError: If a directory would be nested deeper than
                max_depth. Raised before the offending parent is yielded.
            OperationInterrupted: If cancellation is observed.
        """
        stack: list[tuple[Path, int]] = [(root, 0)]

        while stack:
            current, depth = stack.pop()
            self._token.raise_if_cancelled()

            subdirs, entries = self._list_children(current)
            if subdirs and depth + 1 > self._max_depth:
                msg = f"Directory depth exceeds safety limit ({self._max_depth}): {current}"
                raise DepthExceededError(msg)

            yield WalkStep(
                path=current,
                relative=current.relative_to(root),
                depth=depth,
                subdirs=subdirs,
                entries=entries,
            )

            # Reverse so the first child is popped first
            stack.extend((subdir, depth + 1) for subdir in reversed(subdirs))

    def stats(self, root: Path) -> DirStats:
        """Compute total bytes and item count of a subtree.

        Args:
            root: Directory to measure.

        Returns:
            DirStats for the subtree (the root itself is not counted).

        Raises:
            DepthExceededError: If the tree is nested too deeply.
            OperationInterrupted: If cancellation is observed.
        """
        total_bytes = 0
        total_items = 0

        for step in self.walk(root):
            total_items += len(step.subdirs) + len(step.entries)
            for entry in step.entries:
                try:
                    total_bytes += entry.lstat().st_size
                except OSError:
                    logger.warning("Cannot stat entry: %s", entry)

        return DirStats(total_bytes=total_bytes, total_items=total_items)

    def _list_children(self, directory: Path) -> tuple[tuple[Path, ...], tuple[Path, ...]]:
        """Split a directory's children into subdirectories and other entries.

        Unreadable directories are reported as empty; the caller detects
        leftovers when it tries to remove the directory.
        """
        subdirs: list[Path] = []
        entries: list[Path] = []

        try:
            with os.scandir(directory) as it:
                children = sorted(it, key=lambda e: e.name)
        except PermissionError:
            logger.warning("Permission denied reading directory: %s", directory)
            return (), ()
        except OSError as e:
            logger.warning("Cannot read directory %s: %s", directory, e)
            return (), ()

        for child in children:
            try:
                is_dir = child.is_dir(follow_symlinks=False)
            except OSError:
                logger.warning("Cannot determine type of: %s", child.path)
                is_dir = False
            if is_dir:
                subdirs.append(Path(child.path))
            else:
                entries.append(Path(child.path))

        return tuple(subdirs), tuple(entries)
