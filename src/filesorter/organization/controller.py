"""Convergence loop that drives planner requests across a directory tree."""

from __future__ import annotations

import logging
import threading
import time
from pathlib import Path
from typing import Callable, Optional, Protocol

from filesorter.config.models import OrganizationOptions
from filesorter.ingestion import DirectoryScanner, FileSystemEntry, split_into_batches
from filesorter.oracle import OracleError, OracleGateway
from filesorter.oracle import prompts
from filesorter.state.audit import AuditLog

from .errors import ParseError
from .executor import PlanExecutor
from .models import RequestContext
from .parser import HeuristicPlanParser, PlanParser, StrictPlanParser

LOGGER = logging.getLogger(__name__)

Sleep = Callable[[float], None]


class BackgroundTask(Protocol):
    """Something started alongside a run and stopped when it ends."""

    def start(self) -> None:
        ...

    def stop(self) -> None:
        ...


JanitorFactory = Callable[["ConvergenceController", Path], BackgroundTask]


class ConvergenceController:
    """Organize a tree by draining loose files through the planner, bottom-up.

    Args:
        gateway: Planner access with transcript management.
        scanner: Directory lister; determines which entries count as visible.
        audit: Status stream receiving every outcome.
        options: Loop limits, retry policy, and pacing.
        janitor_factory: Builds the background janitor for ``start_organization``.
        sleep: Wait function used for retry and pacing delays.
        parser: Parser for JSON planner replies.
    """

    def __init__(
        self,
        gateway: OracleGateway,
        scanner: DirectoryScanner,
        audit: AuditLog,
        *,
        options: Optional[OrganizationOptions] = None,
        janitor_factory: Optional[JanitorFactory] = None,
        sleep: Sleep = time.sleep,
        parser: Optional[PlanParser] = None,
    ) -> None:
        self._gateway = gateway
        self._scanner = scanner
        self._audit = audit
        self._options = options or OrganizationOptions()
        self._janitor_factory = janitor_factory
        self._sleep = sleep
        self._parser: PlanParser = parser or StrictPlanParser()
        self._executor = PlanExecutor(audit)
        self._run_lock = threading.Lock()

    @property
    def busy(self) -> bool:
        """Whether a top-level run is in progress."""
        return self._run_lock.locked()

    @property
    def scanner(self) -> DirectoryScanner:
        return self._scanner

    @property
    def audit(self) -> AuditLog:
        return self._audit

    # ------------------------------------------------------------------ #
    # Top-level entry points                                             #
    # ------------------------------------------------------------------ #

    def start_organization(self, root: Optional[Path]) -> bool:
        """Run the full two-phase organization of ``root``.

        Returns ``False`` without doing anything when no root is given or a run
        is already in progress. Otherwise runs to completion and returns ``True``.
        """
        if root is None or not str(root).strip():
            self._audit.append("No folder selected; nothing to organize.")
            return False
        if not self._run_lock.acquire(blocking=False):
            self._audit.append("Organization already in progress; ignoring start request.")
            return False

        janitor: Optional[BackgroundTask] = None
        try:
            root = Path(root)
            if not root.is_dir():
                self._audit.append(f"Cannot organize '{root}': not a directory.")
                return False

            if self._janitor_factory is not None:
                janitor = self._janitor_factory(self, root)
                janitor.start()

            self._audit.append("Phase 1: iterative sort started.")
            self.organize(root)
            self._audit.append("Phase 1 complete.")

            if self._options.refinement_pass:
                self._audit.append("Phase 2: refinement started.")
                self.refine(root)
                self._audit.append("Phase 2 complete.")
        finally:
            if janitor is not None:
                janitor.stop()
            self._run_lock.release()

        self._audit.append("Done!")
        return True

    def select_folder(self, root: Path, max_chars: int = 4_096 // 5) -> list[str]:
        """Record the chosen root and log a batched summary of its tree."""
        self._audit.append(f"Selected folder: {root}")
        batches = split_into_batches(self._scanner.describe_tree(root), max(1, max_chars))
        for index, batch in enumerate(batches, start=1):
            self._audit.append(f"Folder tree batch {index}/{len(batches)}:\n{batch}")
        return batches

    # ------------------------------------------------------------------ #
    # Phase 1                                                            #
    # ------------------------------------------------------------------ #

    def organize(self, directory: Path) -> None:
        """Converge ``directory``: children first, then loose files, evaluation, cleanup."""
        for child in self._scanner.subdirectories(directory):
            self.organize(child.path)

        self._audit.append(f"Processing directory: {directory.name}")
        attempted: set[str] = set()
        passes = 0
        while True:
            loose = self._scanner.loose_files(directory)
            if not loose:
                break
            pending = [entry for entry in loose if entry.name not in attempted]
            if not pending:
                names = ", ".join(entry.name for entry in loose)
                self._audit.append(f"Left in place in {directory.name}: {names}")
                break
            if passes >= self._options.max_passes:
                self._audit.append(
                    f"Safety break in {directory.name} after {passes} passes "
                    f"({len(loose)} loose file(s) remain)."
                )
                break

            passes += 1
            entry = pending[0]
            attempted.add(entry.name)
            if passes > 1 and self._options.pacing_delay_seconds:
                self._sleep(self._options.pacing_delay_seconds)
            self.process_file(entry, directory)

        self.evaluate(directory)
        self.collect_garbage(directory)
        self._audit.append(f"Finished directory: {directory.name}")

    def process_file(self, entry: FileSystemEntry, directory: Path) -> bool:
        """Request, parse, and apply a single-file plan with bounded retries.

        Returns whether an attempt completed without an oracle or parse error.
        """
        name = entry.name
        prompt = prompts.file_prompt(name, directory.name)
        attempts = self._options.retry_attempts + 1

        for attempt in range(1, attempts + 1):
            self._audit.append(f"AI query for file: {name}")
            try:
                raw = self._gateway.respond(prompt)
                plan = self._parser.parse(raw)
                self._executor.execute(plan, directory, RequestContext.for_file(name))
                return True
            except (OracleError, ParseError, OSError) as exc:
                LOGGER.debug("Attempt %d for %s failed", attempt, name, exc_info=True)
                self._audit.append(f"AI error (attempt {attempt}) for {name}: {exc}")
                if attempt < attempts:
                    self._audit.append(
                        f"Waiting {self._options.retry_delay_seconds:g} seconds before retry..."
                    )
                    self._sleep(self._options.retry_delay_seconds)

        self._audit.append(f"Max retries reached for {name}")
        return False

    def evaluate(self, directory: Path) -> None:
        """Ask whether sibling folders should be renamed, when there are several."""
        names = [entry.name for entry in self._scanner.subdirectories(directory)]
        if len(names) < 2:
            return
        self._audit.append(f"Evaluation: reviewing folders [{', '.join(names)}]")
        self._request_renames(
            prompts.evaluation_prompt(directory.name, names), directory, label="Evaluation"
        )

    def collect_garbage(self, directory: Path) -> int:
        """Remove direct subdirectories that are completely empty."""
        removed = 0
        for entry in self._scanner.subdirectories(directory):
            try:
                if any(entry.path.iterdir()):
                    continue
                entry.path.rmdir()
            except OSError as exc:
                self._audit.append(f"GC error: could not remove empty folder '{entry.name}': {exc}")
                continue
            removed += 1
            self._audit.append(f"Garbage collection: removed empty folder '{entry.name}'.")
        return removed

    # ------------------------------------------------------------------ #
    # Phase 2 and by-type sorting                                        #
    # ------------------------------------------------------------------ #

    def refine(self, directory: Path) -> None:
        """Second sibling-rename sweep over the whole tree, post-order."""
        for child in self._scanner.subdirectories(directory):
            self.refine(child.path)

        names = [entry.name for entry in self._scanner.subdirectories(directory)]
        if len(names) < 2:
            return
        self._audit.append(f"Refinement: reviewing folders [{', '.join(names)}]")
        self._request_renames(
            prompts.refinement_prompt(directory.name, names), directory, label="Refinement"
        )

    def sort_by_type(self, directory: Path) -> int:
        """Group loose files by extension from one prose plan; returns moves applied."""
        loose = self._scanner.loose_files(directory)
        if not loose:
            self._audit.append(f"No loose files to sort in {directory.name}.")
            return 0

        names = [entry.name for entry in loose]
        self._audit.append(f"AI query: grouping {len(names)} file(s) in {directory.name}")
        try:
            raw = self._gateway.respond(prompts.grouping_prompt(directory.name, names))
        except OracleError as exc:
            self._audit.append(f"AI error (grouping): {exc}")
            return 0

        plan = HeuristicPlanParser(names).parse(raw)
        if not plan.actions:
            self._audit.append("No changes suggested by AI.")
            return 0

        applied = 0
        for index, action in enumerate(plan.actions):
            if index and self._options.move_pacing_seconds:
                self._sleep(self._options.move_pacing_seconds)
            single = plan.model_copy(update={"actions": [action]})
            report = self._executor.execute(
                single, directory, RequestContext.for_file(action.source_name)
            )
            applied += report.applied
        self.collect_garbage(directory)
        return applied

    def _request_renames(self, prompt: str, directory: Path, *, label: str) -> None:
        try:
            raw = self._gateway.respond(prompt)
            plan = self._parser.parse(raw)
            self._executor.execute(plan, directory, RequestContext.for_directory())
        except (OracleError, ParseError, OSError) as exc:
            LOGGER.debug("%s failed for %s", label, directory, exc_info=True)
            self._audit.append(f"{label} error in {directory.name}: {exc}")


__all__ = ["ConvergenceController", "BackgroundTask", "JanitorFactory"]
