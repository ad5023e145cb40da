"""
Directory entry data model for fsfind.

A DirEntry is the read-only view of one visited filesystem node: its path,
what kind of node it is, its size when it is a regular file, and how deep
below the traversal root it sits.
"""

import os
import stat
from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator


class EntryKind(Enum):
    """Kinds of filesystem nodes the walker distinguishes."""
    FILE = "file"
    DIRECTORY = "directory"
    SYMLINK = "symlink"
    OTHER = "other"


class DirEntry(BaseModel):
    """
    One visited filesystem node.

    Attributes:
        path: Path of the entry, built from the walk root joined with child names
        kind: Node kind as reported by lstat (symlinks are never followed)
        size: Size in bytes for regular files, None for every other kind
        depth: Distance from the traversal root (the root itself is 0)
    """

    model_config = ConfigDict(frozen=True)

    path: str = Field(..., min_length=1, description="Path of the entry")
    kind: EntryKind = Field(..., description="Filesystem node kind")
    size: Optional[int] = Field(None, ge=0, description="Size in bytes (files only)")
    depth: int = Field(0, ge=0, description="Depth below the traversal root")

    @model_validator(mode='after')
    def validate_size(self) -> 'DirEntry':
        """Only regular files carry a byte size."""
        if self.kind is not EntryKind.FILE and self.size is not None:
            raise ValueError(f"Size is only defined for regular files, got {self.kind.value}")
        return self

    @property
    def name(self) -> str:
        """Base name of the entry, falling back to the path for roots like '/'."""
        name = os.path.basename(self.path.rstrip(os.sep))
        return name or self.path

    @property
    def is_dir(self) -> bool:
        return self.kind is EntryKind.DIRECTORY

    @classmethod
    def from_stat(cls, path: str, st: os.stat_result, depth: int = 0) -> 'DirEntry':
        """
        Build an entry from an lstat result.

        The fields come straight from the OS, so validation is skipped. Names
        that are not valid UTF-8 arrive surrogate-escaped and would otherwise be
        rejected.

        Args:
            path: Path the stat result belongs to
            st: Result of os.lstat for that path
            depth: Depth below the traversal root

        Returns:
            DirEntry describing the node
        """
        mode = st.st_mode
        if stat.S_ISLNK(mode):
            kind = EntryKind.SYMLINK
        elif stat.S_ISDIR(mode):
            kind = EntryKind.DIRECTORY
        elif stat.S_ISREG(mode):
            kind = EntryKind.FILE
        else:
            kind = EntryKind.OTHER

        size = st.st_size if kind is EntryKind.FILE else None
        return cls.model_construct(path=path, kind=kind, size=size, depth=depth)

    def __str__(self) -> str:
        return self.path
