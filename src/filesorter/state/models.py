"""State data models for organized directories."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field


class HistoryEntry(BaseModel):
    """A single timestamped audit message."""

    model_config = ConfigDict(frozen=True)

    message: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def render(self) -> str:
        """Return the entry as a ``HH:MM:SS — message`` line in local time."""
        return f"{self.timestamp.astimezone().strftime('%H:%M:%S')} — {self.message}"


__all__ = ["HistoryEntry"]
