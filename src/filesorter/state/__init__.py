"""State persistence helpers for filesorter."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable, Optional

from pydantic import ValidationError

from .audit import AuditLog
from .errors import MissingStateError, StateError
from .models import HistoryEntry

DEFAULT_STATE_DIRNAME = ".filesorter"
HISTORY_FILENAME = "history.jsonl"


class StateRepository:
    """Manage the run history stored beside an organized tree."""

    def __init__(self, base_dirname: str = DEFAULT_STATE_DIRNAME) -> None:
        """Initialize the repository with an optional base directory name.

        Args:
            base_dirname: Name of the directory that stores run history.
        """
        self._base_dirname = base_dirname

    @property
    def base_dirname(self) -> str:
        """Return the directory name used for run metadata."""
        return self._base_dirname

    def state_dir(self, root: Path) -> Path:
        """Return the metadata directory for ``root`` without creating it."""
        return root / self._base_dirname

    def initialize(self, root: Path) -> Path:
        """Create the metadata directory for ``root``.

        Args:
            root: Root path of the organized tree.

        Returns:
            Path: Directory containing history and log files.
        """
        directory = self.state_dir(root)
        directory.mkdir(parents=True, exist_ok=True)
        return directory

    def append_history(self, root: Path, entries: Iterable[HistoryEntry]) -> None:
        """Append entries to the history file as JSON lines.

        Args:
            root: Root path of the organized tree.
            entries: History entries to persist in order.
        """
        directory = self.initialize(root)
        with (directory / HISTORY_FILENAME).open("a", encoding="utf-8") as handle:
            for entry in entries:
                handle.write(entry.model_dump_json() + "\n")

    def load_history(self, root: Path, limit: Optional[int] = None) -> list[HistoryEntry]:
        """Load persisted history for ``root``.

        Args:
            root: Root path of the organized tree.
            limit: When given, only the most recent ``limit`` entries are returned.

        Returns:
            list[HistoryEntry]: Entries in append order.

        Raises:
            MissingStateError: If no history has been recorded.
            StateError: If a stored line cannot be parsed.
        """
        path = self.state_dir(root) / HISTORY_FILENAME
        if not path.exists():
            raise MissingStateError(f"No history found at {path}")

        entries: list[HistoryEntry] = []
        for number, line in enumerate(path.read_text(encoding="utf-8").splitlines(), start=1):
            if not line.strip():
                continue
            try:
                entries.append(HistoryEntry.model_validate_json(line))
            except ValidationError as exc:
                raise StateError(f"Invalid history entry on line {number}: {exc}") from exc

        if limit is not None:
            return entries[-limit:] if limit > 0 else []
        return entries


__all__ = [
    "AuditLog",
    "StateRepository",
    "DEFAULT_STATE_DIRNAME",
    "HISTORY_FILENAME",
    "HistoryEntry",
    "StateError",
    "MissingStateError",
]
