"""Executor for organization plans."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from filesorter.state.audit import AuditLog

from .errors import ExecutionError
from .models import ActionKind, ExecutionReport, OrganizationPlan, PlanAction, RequestContext

LOGGER = logging.getLogger(__name__)


class _Skip(Exception):
    """Internal signal: the action is not applicable and was not attempted."""


class PlanExecutor:
    """Apply plans to one directory, one independent action at a time.

    Each action is checked against the request context and the current
    filesystem immediately before it runs. A skipped or failed action never
    stops the rest of the plan, and nothing is rolled back.
    """

    def __init__(self, audit: AuditLog) -> None:
        self._audit = audit

    def execute(
        self,
        plan: OrganizationPlan,
        directory: Path,
        context: RequestContext,
    ) -> ExecutionReport:
        """Apply ``plan`` inside ``directory``.

        Args:
            plan: Parsed planner output.
            directory: Directory the plan's relative paths refer to.
            context: What the plan was requested for.

        Returns:
            ExecutionReport: Counts of applied, skipped, and failed actions.
        """
        report = ExecutionReport()
        if not plan.actions:
            self._audit.append("No changes suggested by AI.")
            return report

        directory = directory.resolve()
        for action in plan.actions:
            try:
                message = self._apply(action, directory, context)
            except _Skip as skip:
                report.skipped += 1
                self._audit.append(str(skip))
            except ExecutionError as exc:
                report.failed += 1
                LOGGER.debug("Action %s failed in %s", action.describe(), directory, exc_info=True)
                self._audit.append(
                    f"File system error for '{action.kind.value}' on '{action.source}': {exc}"
                )
            else:
                report.applied += 1
                self._audit.append(message)
        return report

    # ------------------------------------------------------------------ #
    # Guards and mutations                                               #
    # ------------------------------------------------------------------ #

    def _apply(self, action: PlanAction, directory: Path, context: RequestContext) -> str:
        if action.kind not in context.allowed_kinds:
            raise _Skip(
                f"Plan rejected: '{action.kind.value}' on '{action.source}' "
                f"is not allowed for a {context.describe()} request."
            )
        if context.is_file and action.source_name != context.file_name:
            raise _Skip(
                f"AI error: plan for '{action.source}' ignored because the query "
                f"was for '{context.file_name}'."
            )

        source = self._inside(directory, action.source)

        if action.kind is ActionKind.CREATE_FOLDER:
            return self._create_folder(source, action)

        if not source.exists() and not source.is_symlink():
            raise _Skip(f"Skipping action for '{action.source}': item no longer at source.")

        if action.kind is ActionKind.MOVE_FILE:
            return self._move_file(source, directory, action)
        return self._rename_folder(source, directory, action)

    def _create_folder(self, target: Path, action: PlanAction) -> str:
        if target.is_dir():
            return f"Folder '{action.source}' already exists."
        try:
            target.mkdir(parents=True, exist_ok=True)
        except (OSError, ValueError) as exc:
            raise ExecutionError(str(exc)) from exc
        return f"Created folder '{action.source}'"

    def _move_file(self, source: Path, directory: Path, action: PlanAction) -> str:
        raw_destination = action.destination or ""
        destination = self._inside(directory, raw_destination)
        if destination.is_dir() or raw_destination.endswith(("/", "\\")):
            destination = destination / source.name

        if destination == source:
            return f"'{action.source}' is already in place."

        self._replace(source, destination)
        return f"Moved '{action.source}' to '{self._relative(destination, directory)}'"

    def _rename_folder(self, source: Path, directory: Path, action: PlanAction) -> str:
        if not source.is_dir():
            raise _Skip(f"Skipping rename of '{action.source}': not a folder.")
        new_name = action.new_name or ""
        destination = self._inside(directory, new_name)
        if destination == source:
            return f"Folder '{action.source}' already named '{new_name}'."

        self._replace(source, destination)
        return f"Renamed folder '{action.source}' to '{new_name}'"

    def _replace(self, source: Path, destination: Path) -> None:
        """Move ``source`` to ``destination``; an existing target is removed first."""
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            if destination.is_symlink() or destination.is_file():
                destination.unlink()
            elif destination.is_dir():
                destination.rmdir()
            source.rename(destination)
        except (OSError, ValueError) as exc:
            raise ExecutionError(str(exc)) from exc

    def _inside(self, directory: Path, relative: str) -> Path:
        cleaned = relative.strip().replace("\\", "/")
        candidate = Path(os.path.normpath(directory / cleaned)) if cleaned else directory
        if candidate == directory or directory not in candidate.parents:
            raise _Skip(f"Skipping action for '{relative}': path is outside '{directory.name}'.")
        return candidate

    def _relative(self, path: Path, directory: Path) -> str:
        return path.relative_to(directory).as_posix()


__all__ = ["PlanExecutor"]
