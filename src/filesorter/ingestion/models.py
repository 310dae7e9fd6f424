"""Read-only projections of filesystem entries."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict


class FileSystemEntry(BaseModel):
    """A single directory entry as seen by the most recent scan.

    Attributes:
        name: Final path component.
        path: Absolute path of the entry.
        is_directory: Whether the entry is a directory.
        size_bytes: File size, when the entry could be stat'ed.
        modified_at: Last modification time in UTC, when available.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    path: Path
    is_directory: bool
    size_bytes: Optional[int] = None
    modified_at: Optional[datetime] = None

    @property
    def extension(self) -> str:
        """Lower-cased extension without the leading dot (empty when absent)."""
        return self.path.suffix.lower().lstrip(".")


__all__ = ["FileSystemEntry"]
