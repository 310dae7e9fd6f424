"""Conversation state carried between oracle calls."""

from __future__ import annotations

from typing import Literal, Tuple

from pydantic import BaseModel, ConfigDict, Field

Role = Literal["system", "user", "assistant"]


class TranscriptEntry(BaseModel):
    """One turn of the conversation."""

    model_config = ConfigDict(frozen=True)

    role: Role
    text: str


class OracleSession(BaseModel):
    """Immutable transcript; every change produces a new session.

    The first entry holds the standing instructions for the planner.
    """

    model_config = ConfigDict(frozen=True)

    entries: Tuple[TranscriptEntry, ...] = Field(default_factory=tuple)

    @classmethod
    def start(cls, instructions: str) -> "OracleSession":
        return cls(entries=(TranscriptEntry(role="system", text=instructions),))

    def extended(self, prompt: str, reply: str) -> "OracleSession":
        """Return a session with one more user/assistant exchange."""
        return OracleSession(
            entries=(
                *self.entries,
                TranscriptEntry(role="user", text=prompt),
                TranscriptEntry(role="assistant", text=reply),
            )
        )

    def condensed(self) -> "OracleSession":
        """Return a session holding only the first and the most recent entries."""
        if len(self.entries) <= 2:
            return OracleSession(entries=self.entries)
        return OracleSession(entries=(self.entries[0], self.entries[-1]))

    def messages_for(self, prompt: str) -> list[dict[str, str]]:
        """Chat messages for sending ``prompt`` on top of this transcript."""
        messages = [{"role": entry.role, "content": entry.text} for entry in self.entries]
        messages.append({"role": "user", "content": prompt})
        return messages

    def __len__(self) -> int:
        return len(self.entries)


__all__ = ["OracleSession", "TranscriptEntry", "Role"]
