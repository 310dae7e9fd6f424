"""Shared fixtures: scripted planners and a controller harness."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional

import pytest

from filesorter.config.models import OrganizationOptions
from filesorter.ingestion import DirectoryScanner
from filesorter.oracle import OracleGateway
from filesorter.oracle.prompts import file_name_from_prompt
from filesorter.organization import ConvergenceController
from filesorter.state import AuditLog


class ScriptedOracle:
    """Planner stand-in that replays queued replies, then a default.

    Each queued item is a reply string, an exception to raise, or a callable
    receiving the chat messages and returning either of those.
    """

    def __init__(self, *responses: Any, default: Any = "[]") -> None:
        self._responses = list(responses)
        self._default = default
        self.calls: list[list[dict[str, str]]] = []

    def complete(self, messages: list[dict[str, str]]) -> str:
        self.calls.append([dict(message) for message in messages])
        item = self._responses.pop(0) if self._responses else self._default
        if callable(item) and not isinstance(item, type):
            item = item(messages)
        if isinstance(item, BaseException):
            raise item
        return item

    @property
    def prompts(self) -> list[str]:
        return [call[-1]["content"] for call in self.calls]


def move_by_extension(folders: dict[str, str]) -> Callable[[list[dict[str, str]]], str]:
    """Reply to single-file prompts with a move into ``folders[extension]``."""

    def _reply(messages: list[dict[str, str]]) -> str:
        name = file_name_from_prompt(messages[-1]["content"])
        if name is None:
            return "[]"
        folder = folders.get(Path(name).suffix.lower().lstrip("."))
        if folder is None:
            return "[]"
        action = {"action": "move_file", "source": name, "destination": f"{folder}/{name}"}
        return json.dumps([action])

    return _reply


@dataclass
class Harness:
    controller: ConvergenceController
    gateway: OracleGateway
    audit: AuditLog
    oracle: Any
    sleeps: list[float] = field(default_factory=list)

    def messages(self) -> list[str]:
        return self.audit.messages()

    def moved(self) -> list[str]:
        return [message for message in self.messages() if message.startswith("Moved '")]


@pytest.fixture
def make_harness() -> Callable[..., Harness]:
    """Build a controller around ``oracle`` with recorded, instant sleeps."""

    def _make(
        oracle: Any,
        *,
        janitor_factory: Optional[Callable[..., Any]] = None,
        **options: Any,
    ) -> Harness:
        audit = AuditLog()
        sleeps: list[float] = []
        gateway = OracleGateway(oracle, audit)
        controller = ConvergenceController(
            gateway,
            DirectoryScanner(excluded_names=[".filesorter"]),
            audit,
            options=OrganizationOptions(**options),
            janitor_factory=janitor_factory,
            sleep=sleeps.append,
        )
        return Harness(controller, gateway, audit, oracle, sleeps)

    return _make


@pytest.fixture
def scripted() -> type[ScriptedOracle]:
    return ScriptedOracle


@pytest.fixture
def by_extension() -> Callable[[dict[str, str]], Callable[[list[dict[str, str]]], str]]:
    return move_by_extension
