"""
Filesystem access for the walker.

The walker only needs two things from a filesystem: the lstat view of one
path and the names inside one directory. Keeping them behind this small
interface lets tests swap in a synthetic tree.
"""

import os
from abc import ABC, abstractmethod
from typing import List

from ..models.entry import DirEntry


class FileSystem(ABC):
    """Interface the walker reads through."""

    @abstractmethod
    def stat_entry(self, path: str, depth: int) -> DirEntry:
        """
        Describe one path without following symlinks.

        Raises:
            OSError: If the path cannot be inspected
        """
        pass

    @abstractmethod
    def list_dir(self, path: str) -> List[str]:
        """
        Return the child names of a directory.

        Raises:
            OSError: If the directory cannot be read
        """
        pass

    def join(self, parent: str, name: str) -> str:
        return os.path.join(parent, name)


class LocalFileSystem(FileSystem):
    """The real filesystem, read through ``os.lstat`` and ``os.scandir``."""

    def stat_entry(self, path: str, depth: int) -> DirEntry:
        return DirEntry.from_stat(path, os.lstat(path), depth)

    def list_dir(self, path: str) -> List[str]:
        with os.scandir(path) as it:
            return [child.name for child in it]
