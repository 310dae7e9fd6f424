"""Organization plan data models."""

from __future__ import annotations

from enum import Enum
from pathlib import PurePosixPath
from typing import FrozenSet, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

_CONTROL_CHARACTERS = frozenset(chr(code) for code in (*range(0x20), 0x7F))


class ActionKind(str, Enum):
    """Closed vocabulary of actions the planner may request."""

    CREATE_FOLDER = "create_folder"
    MOVE_FILE = "move_file"
    RENAME_FOLDER = "rename_folder"


class PlanAction(BaseModel):
    """A single organization step relative to the directory being organized.

    Attributes:
        kind: Action type, serialized as ``action``.
        source: Folder to create, or existing entry to move or rename.
        destination: Target path for ``move_file``; an existing directory means "move into".
        new_name: Sibling name for ``rename_folder``, serialized as ``name``.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    kind: ActionKind = Field(alias="action")
    source: str
    destination: Optional[str] = None
    new_name: Optional[str] = Field(default=None, alias="name")

    @model_validator(mode="after")
    def _check_required_fields(self) -> "PlanAction":
        if not self.source.strip():
            raise ValueError(f"{self.kind.value} requires a non-empty source")
        if self.kind is ActionKind.MOVE_FILE and not (self.destination or "").strip():
            raise ValueError("move_file requires a destination")
        if self.kind is ActionKind.RENAME_FOLDER and not (self.new_name or "").strip():
            raise ValueError("rename_folder requires a name")
        for label, value in (
            ("source", self.source),
            ("destination", self.destination),
            ("name", self.new_name),
        ):
            if value and not _CONTROL_CHARACTERS.isdisjoint(value):
                raise ValueError(f"{label} contains control characters")
        return self

    @property
    def source_name(self) -> str:
        """Final path component of ``source``."""
        return PurePosixPath(self.source.replace("\\", "/")).name

    def describe(self) -> str:
        if self.kind is ActionKind.MOVE_FILE:
            return f"{self.kind.value} '{self.source}' -> '{self.destination}'"
        if self.kind is ActionKind.RENAME_FOLDER:
            return f"{self.kind.value} '{self.source}' -> '{self.new_name}'"
        return f"{self.kind.value} '{self.source}'"


class OrganizationPlan(BaseModel):
    """Ordered actions plus the planner's one-line rationale.

    An empty action list is a valid "nothing to change" answer.
    """

    actions: List[PlanAction] = Field(default_factory=list)
    rationale: str = ""

    def __len__(self) -> int:
        return len(self.actions)


class RequestContext(BaseModel):
    """Identifies what a plan was requested for.

    A file context names the single loose file the planner was asked about;
    a directory context covers sibling-folder evaluation and only admits
    ``rename_folder`` actions.
    """

    model_config = ConfigDict(frozen=True)

    file_name: Optional[str] = None

    @classmethod
    def for_file(cls, name: str) -> "RequestContext":
        return cls(file_name=name)

    @classmethod
    def for_directory(cls) -> "RequestContext":
        return cls()

    @property
    def is_file(self) -> bool:
        return self.file_name is not None

    @property
    def allowed_kinds(self) -> FrozenSet[ActionKind]:
        if self.is_file:
            return frozenset(ActionKind)
        return frozenset({ActionKind.RENAME_FOLDER})

    def describe(self) -> str:
        return f"file '{self.file_name}'" if self.is_file else "directory"


class ExecutionReport(BaseModel):
    """Outcome counts for one executed plan."""

    applied: int = 0
    skipped: int = 0
    failed: int = 0

    @property
    def total(self) -> int:
        return self.applied + self.skipped + self.failed


__all__ = [
    "ActionKind",
    "PlanAction",
    "OrganizationPlan",
    "RequestContext",
    "ExecutionReport",
]
