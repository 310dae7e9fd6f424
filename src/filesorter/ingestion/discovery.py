"""Directory listing utilities."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable

from .models import FileSystemEntry

LOGGER = logging.getLogger(__name__)


def _is_hidden(name: str) -> bool:
    return name.startswith(".")


class DirectoryScanner:
    """List directories one level at a time, subject to visibility filters.

    Every call re-reads the filesystem; nothing is cached between calls.
    """

    def __init__(
        self,
        *,
        include_hidden: bool = False,
        excluded_names: Iterable[str] = (),
    ) -> None:
        self.include_hidden = include_hidden
        self.excluded_names = frozenset(excluded_names)

    def list_entries(self, directory: Path) -> list[FileSystemEntry]:
        """Return the visible entries of ``directory`` sorted by name.

        An unreadable or vanished directory yields an empty list.
        """
        try:
            children = list(directory.iterdir())
        except OSError as exc:
            LOGGER.debug("Unable to list %s: %s", directory, exc)
            return []

        entries: list[FileSystemEntry] = []
        for child in sorted(children, key=lambda path: path.name):
            if child.name in self.excluded_names:
                continue
            if not self.include_hidden and _is_hidden(child.name):
                continue
            entry = self._entry_for(child)
            if entry is not None:
                entries.append(entry)
        return entries

    def loose_files(self, directory: Path) -> list[FileSystemEntry]:
        """Return the non-directory entries directly inside ``directory``."""
        return [entry for entry in self.list_entries(directory) if not entry.is_directory]

    def subdirectories(self, directory: Path) -> list[FileSystemEntry]:
        """Return the directory entries directly inside ``directory``."""
        return [entry for entry in self.list_entries(directory) if entry.is_directory]

    def leaf_directories(self, root: Path) -> list[Path]:
        """Return every directory under ``root`` that has no visible subdirectories.

        ``root`` itself is returned when it has no subdirectories at all.
        """
        leaves: list[Path] = []
        pending = [entry.path for entry in self.subdirectories(root)]
        while pending:
            current = pending.pop(0)
            children = self.subdirectories(current)
            if children:
                pending.extend(child.path for child in children)
            else:
                leaves.append(current)
        return leaves or [root]

    def describe_tree(self, root: Path) -> str:
        """Render ``root`` as an indented listing; directories end with ``/``."""
        lines = [f"{root.name}/"]

        def _walk(directory: Path, depth: int) -> None:
            indent = "    " * depth
            for entry in self.list_entries(directory):
                if entry.is_directory:
                    lines.append(f"{indent}{entry.name}/")
                    _walk(entry.path, depth + 1)
                else:
                    lines.append(f"{indent}{entry.name}")

        _walk(root, 1)
        return "\n".join(lines)

    def _entry_for(self, path: Path) -> FileSystemEntry | None:
        try:
            stat = path.lstat()
        except OSError:
            return None
        is_directory = path.is_dir() and not path.is_symlink()
        return FileSystemEntry(
            name=path.name,
            path=path,
            is_directory=is_directory,
            size_bytes=None if is_directory else stat.st_size,
            modified_at=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
        )


def split_into_batches(text: str, max_chars: int) -> list[str]:
    """Split ``text`` on line boundaries into chunks of at most ``max_chars``.

    A single line longer than ``max_chars`` becomes its own chunk.
    """
    batches: list[str] = []
    current: list[str] = []
    length = 0
    for line in text.split("\n"):
        line_length = len(line) + 1
        if current and length + line_length > max_chars:
            batches.append("\n".join(current))
            current = []
            length = 0
        current.append(line)
        length += line_length
    if current:
        batches.append("\n".join(current))
    return batches


__all__ = ["DirectoryScanner", "split_into_batches"]
