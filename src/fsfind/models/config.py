"""
Configuration data model for fsfind.

Settings supply the defaults the command line falls back to: where to start
when no directory is given, a default depth bound, the log level, and how the
walk orders and reports entries.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


LOG_LEVELS = ['CRITICAL', 'ERROR', 'WARNING', 'INFO', 'DEBUG']


class FinderSettings(BaseModel):
    """
    Settings loaded from a YAML configuration file.

    Attributes:
        root: Directory searched when none is given on the command line
        max_depth: Default depth bound (None means unbounded)
        log_level: Standard logging level name
        sort_entries: Visit directory children in name order
        report_errors: Print a diagnostic for every unreadable entry
    """

    model_config = ConfigDict(extra='forbid')

    root: str = Field(".", min_length=1, description="Default search root")
    max_depth: Optional[int] = Field(None, ge=0, description="Default maximum traversal depth")
    log_level: str = Field("WARNING", description="Logging level name")
    sort_entries: bool = Field(True, description="Visit directory children in name order")
    report_errors: bool = Field(True, description="Print per-entry read failures")

    @field_validator('root')
    @classmethod
    def validate_root(cls, v: str) -> str:
        """Expand a leading ~ in the root directory."""
        v = v.strip()
        if not v:
            raise ValueError("Root directory cannot be empty")
        if v.startswith('~'):
            return str(Path(v).expanduser())
        return v

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize and validate the log level name."""
        level = str(v).strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"Invalid log level: {v}. Must be one of: {LOG_LEVELS}")
        return level

    def get_log_level(self) -> int:
        """Get the numeric logging level."""
        return getattr(logging, self.log_level)

    def validate_configuration(self) -> List[str]:
        """
        Collect non-fatal problems with the settings.

        Returns:
            List of warning messages
        """
        warnings = []

        root_path = Path(self.root)
        if not root_path.exists():
            warnings.append(f"Default root does not exist: {self.root}")
        elif not root_path.is_dir():
            warnings.append(f"Default root is not a directory: {self.root}")

        if self.max_depth == 0:
            warnings.append("max_depth is 0: only the root itself will be tested")

        return warnings

    def to_dict(self) -> Dict[str, Any]:
        """Convert settings to dictionary representation."""
        return self.model_dump()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FinderSettings':
        """Create FinderSettings from dictionary."""
        return cls.model_validate(data)

    def __str__(self) -> str:
        depth = self.max_depth if self.max_depth is not None else "unbounded"
        return f"FinderSettings(root={self.root}, max_depth={depth}, log_level={self.log_level})"
