"""
Traversal tools for fsfind.

This module contains the filesystem walker and the filesystem interface it
reads through.
"""

from .filesystem import FileSystem, LocalFileSystem
from .fs_walker import EntryReadError, FSWalker, walk

__all__ = ['EntryReadError', 'FSWalker', 'FileSystem', 'LocalFileSystem', 'walk']
