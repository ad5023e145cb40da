"""
Filesystem walker for fsfind.

This module traverses a directory tree depth-first, tests every visited entry
against a MatchCriteria and lazily yields the paths of the entries that match.
Depth bounds prune whole subtrees, symlinks are reported but never followed,
and an unreadable entry or directory is reported and skipped without ending
the walk.
"""

import logging
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from ..models.criteria import MatchCriteria
from ..models.entry import DirEntry
from .filesystem import FileSystem, LocalFileSystem


logger = logging.getLogger(__name__)


class EntryReadError(Exception):
    """
    A single entry or directory could not be read during a walk.

    Attributes:
        path: Path that failed
        cause: Underlying OS error, or the error describing an unusable entry
    """

    def __init__(self, path: str, cause: Exception):
        self.path = path
        self.cause = cause
        reason = getattr(cause, "strerror", None) or str(cause)
        super().__init__(f"{path}: {reason}")


ErrorHandler = Callable[[EntryReadError], None]


class FSWalker:
    """
    Depth-first walker that yields the paths matching a MatchCriteria.

    Each walk is a generator: the next directory is only read when the
    consumer asks for more results. Read failures are collected on the
    walker, logged, and passed to ``on_error`` when one is given.
    """

    def __init__(self, filesystem: Optional[FileSystem] = None,
                 sort_entries: bool = True,
                 on_error: Optional[ErrorHandler] = None):
        """
        Initialize the filesystem walker.

        Args:
            filesystem: Filesystem to read from (defaults to the local one)
            sort_entries: Visit directory children in name order instead of OS order
            on_error: Called with every EntryReadError as it happens
        """
        self.filesystem = filesystem or LocalFileSystem()
        self.sort_entries = sort_entries
        self.on_error = on_error
        self._errors: List[EntryReadError] = []
        self._stats = self._empty_stats()

    @staticmethod
    def _empty_stats() -> Dict[str, int]:
        return {
            'entries_visited': 0,
            'entries_matched': 0,
            'directories_read': 0,
            'errors': 0
        }

    def walk(self, root: str, criteria: MatchCriteria) -> Iterator[str]:
        """
        Walk the tree under root and yield the paths of matching entries.

        The root is visited at depth 0 and is itself a candidate. A directory
        at the depth bound is tested but not read.

        Args:
            root: Path to start from
            criteria: Matchers and depth bound for this walk

        Yields:
            Paths of entries satisfying every matcher, in depth-first pre-order
        """
        logger.info(f"Walking directory tree: {root} ({criteria})")
        stack: List[Tuple[str, int]] = [(root, 0)]

        while stack:
            path, depth = stack.pop()

            entry = self._stat_entry(path, depth)
            if entry is None:
                continue

            self._stats['entries_visited'] += 1
            if criteria.matches(entry):
                self._stats['entries_matched'] += 1
                yield entry.path

            if not entry.is_dir:
                continue

            if not criteria.allows_depth(depth + 1):
                logger.debug(f"Depth limit {criteria.max_depth} reached, not descending into {path}")
                continue

            children = self._read_children(entry)
            # Reversed so the first child is popped first
            stack.extend((self.filesystem.join(path, name), depth + 1) for name in reversed(children))

    def _stat_entry(self, path: str, depth: int) -> Optional[DirEntry]:
        """
        Inspect one path.

        An entry the model rejects (ValidationError is a ValueError) is
        reported and skipped like one that cannot be read.

        Returns:
            The entry, or None if it could not be read
        """
        try:
            return self.filesystem.stat_entry(path, depth)
        except (OSError, ValueError) as e:
            self._report(EntryReadError(path, e))
            return None

    def _read_children(self, entry: DirEntry) -> List[str]:
        """
        List the child names of a directory entry.

        Returns:
            Child names, empty if the directory could not be read
        """
        self._stats['directories_read'] += 1
        try:
            names = self.filesystem.list_dir(entry.path)
        except OSError as e:
            self._report(EntryReadError(entry.path, e))
            return []

        if self.sort_entries:
            names.sort()
        return names

    def _report(self, error: EntryReadError) -> None:
        self._errors.append(error)
        self._stats['errors'] += 1
        logger.info(f"Skipping unreadable entry {error}")
        if self.on_error is not None:
            self.on_error(error)

    def get_errors(self) -> List[EntryReadError]:
        """Get the read failures seen so far."""
        return list(self._errors)

    def get_stats(self) -> Dict[str, int]:
        """
        Get statistics about the walking operation.

        Returns:
            Dictionary containing operation statistics
        """
        return self._stats.copy()

    def reset_stats(self) -> None:
        """Reset the statistics counters and the collected errors."""
        self._stats = self._empty_stats()
        self._errors = []


def walk(root: str, criteria: MatchCriteria,
         on_error: Optional[ErrorHandler] = None,
         filesystem: Optional[FileSystem] = None) -> Iterator[str]:
    """
    Convenience function to walk one tree with a fresh walker.

    Args:
        root: Path to start from
        criteria: Matchers and depth bound for this walk
        on_error: Called with every EntryReadError as it happens
        filesystem: Filesystem to read from (defaults to the local one)

    Returns:
        Lazy iterator over matching paths
    """
    walker = FSWalker(filesystem=filesystem, on_error=on_error)
    return walker.walk(root, criteria)
