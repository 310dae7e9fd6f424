"""Append-only audit log shared by the organizer, the janitor, and the CLI."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Iterator, Optional

from .models import HistoryEntry

LOGGER = logging.getLogger(__name__)

Subscriber = Callable[[HistoryEntry], None]


class AuditLog:
    """Ordered, timestamped status stream.

    Consecutive duplicate messages are collapsed so repeated status updates do
    not flood the history. Appends are thread-safe, and subscribers see
    entries in exactly the order they were recorded.
    """

    def __init__(self) -> None:
        self._entries: list[HistoryEntry] = []
        self._subscribers: list[Subscriber] = []
        self._lock = threading.Lock()
        # Serializes record-and-dispatch; reentrant so a subscriber may append.
        self._dispatch_lock = threading.RLock()

    def append(self, message: str) -> Optional[HistoryEntry]:
        """Record a message, returning the new entry or ``None`` when collapsed."""
        with self._dispatch_lock:
            with self._lock:
                if self._entries and self._entries[-1].message == message:
                    return None
                entry = HistoryEntry(message=message)
                self._entries.append(entry)
                subscribers = list(self._subscribers)

            LOGGER.info(message)
            for subscriber in subscribers:
                subscriber(entry)
        return entry

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register ``callback`` for new entries and return an unsubscribe handle."""
        with self._lock:
            self._subscribers.append(callback)

        def _unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return _unsubscribe

    @property
    def entries(self) -> list[HistoryEntry]:
        """Snapshot of all entries in append order."""
        with self._lock:
            return list(self._entries)

    @property
    def status(self) -> Optional[str]:
        """Most recent message, mirroring a status line."""
        with self._lock:
            return self._entries[-1].message if self._entries else None

    def messages(self) -> list[str]:
        return [entry.message for entry in self.entries]

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __iter__(self) -> Iterator[HistoryEntry]:
        return iter(self.entries)


__all__ = ["AuditLog", "Subscriber"]
