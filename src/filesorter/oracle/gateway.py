"""Single entry point for planner requests."""

from __future__ import annotations

import logging
import threading
from typing import Optional

from filesorter.state.audit import AuditLog

from .backends import Oracle
from .errors import ContextOverflowError, OracleError
from .prompts import INSTRUCTIONS
from .session import OracleSession

LOGGER = logging.getLogger(__name__)

RESPONSE_PREVIEW_CHARS = 100


class OracleGateway:
    """Wrap an :class:`Oracle` with a running transcript and overflow recovery.

    The gateway owns the only reference to the current :class:`OracleSession`
    and replaces it after every exchange. Calls are serialized, so the main
    run and the janitor never interleave transcript updates.
    """

    def __init__(
        self,
        oracle: Oracle,
        audit: Optional[AuditLog] = None,
        *,
        instructions: str = INSTRUCTIONS,
    ) -> None:
        self._oracle = oracle
        self._audit = audit
        self._session = OracleSession.start(instructions)
        self._lock = threading.Lock()
        self._requests = 0

    @property
    def session(self) -> OracleSession:
        return self._session

    @property
    def requests(self) -> int:
        """Number of prompts submitted, counting each overflow retry once."""
        return self._requests

    def respond(self, prompt: str) -> str:
        """Send ``prompt`` and return the planner's raw reply.

        On a context overflow the transcript is condensed to its first and last
        entries and the prompt is retried once.

        Raises:
            OracleError: If the planner fails, including a repeated overflow.
        """
        with self._lock:
            self._requests += 1
            try:
                reply = self._exchange(prompt)
            except ContextOverflowError as exc:
                LOGGER.warning("Context overflow after %d entries: %s", len(self._session), exc)
                self._session = self._session.condensed()
                self._record("Context window exceeded; retrying with a condensed session.")
                reply = self._exchange(prompt)

        preview = reply.strip().replace("\n", " ")[:RESPONSE_PREVIEW_CHARS]
        self._record(f"AI response: {preview}")
        return reply

    def reset(self) -> None:
        """Start over with a session holding only the instructions."""
        with self._lock:
            self._session = OracleSession(entries=self._session.entries[:1])

    def _exchange(self, prompt: str) -> str:
        try:
            reply = self._oracle.complete(self._session.messages_for(prompt))
        except OracleError:
            raise
        except Exception as exc:  # custom backends may raise anything
            raise OracleError(f"{type(exc).__name__}: {exc}") from exc
        self._session = self._session.extended(prompt, reply)
        return reply

    def _record(self, message: str) -> None:
        if self._audit is not None:
            self._audit.append(message)


__all__ = ["OracleGateway", "RESPONSE_PREVIEW_CHARS"]
