"""Periodic background re-convergence of leaf directories."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from filesorter.organization.controller import ConvergenceController

LOGGER = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 180.0


class Janitor:
    """Wake on a fixed interval and re-run ``organize`` on every leaf directory.

    At most one pass runs at a time: a wake that finds a pass in flight is
    skipped rather than queued. The janitor shares nothing with the main run
    besides the filesystem and the controller's collaborators.
    """

    def __init__(
        self,
        controller: "ConvergenceController",
        root: Path,
        *,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
    ) -> None:
        """Initialize the janitor.

        Args:
            controller: Controller whose ``organize`` is applied to leaves.
            root: Root of the tree being maintained.
            interval_seconds: Delay between wakes.
        """
        self._controller = controller
        self._root = root
        self._interval = max(0.01, interval_seconds)
        self._stop_event = threading.Event()
        self._pass_lock = threading.Lock()
        self._timer: Optional[threading.Thread] = None
        self._worker: Optional[threading.Thread] = None
        self._passes = 0

    @property
    def running(self) -> bool:
        """Whether the wake timer is active."""
        return self._timer is not None and self._timer.is_alive()

    @property
    def pass_in_progress(self) -> bool:
        return self._pass_lock.locked()

    @property
    def passes_completed(self) -> int:
        return self._passes

    def start(self) -> None:
        """Start waking every interval on a daemon thread.

        Raises:
            RuntimeError: If the janitor is already running.
        """
        if self.running:
            raise RuntimeError("Janitor is already running.")
        self._stop_event.clear()
        self._timer = threading.Thread(target=self._tick, name="filesorter-janitor", daemon=True)
        self._timer.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        """Cancel further wakes and wait for the timer and any pass in flight."""
        self._stop_event.set()
        current = threading.current_thread()
        if self._timer is not None and self._timer is not current:
            self._timer.join(timeout=timeout)
        # The timer may have started a worker while shutting down.
        if self._worker is not None and self._worker is not current:
            self._worker.join(timeout=timeout)
        self._timer = None

    def wake(self) -> bool:
        """Start a pass on a worker thread unless one is already running.

        Returns:
            bool: ``True`` when a new pass was started.
        """
        if not self._pass_lock.acquire(blocking=False):
            self._controller.audit.append("Janitor wake skipped: previous pass still running.")
            return False
        self._worker = threading.Thread(
            target=self._run_locked, name="filesorter-janitor-pass", daemon=True
        )
        self._worker.start()
        return True

    def run_pass(self) -> bool:
        """Run one pass synchronously; returns ``False`` if a pass is already running."""
        if not self._pass_lock.acquire(blocking=False):
            self._controller.audit.append("Janitor wake skipped: previous pass still running.")
            return False
        self._run_locked()
        return True

    # ------------------------------------------------------------------ #
    # Internal helpers                                                   #
    # ------------------------------------------------------------------ #

    def _tick(self) -> None:
        while not self._stop_event.wait(self._interval):
            self.wake()

    def _run_locked(self) -> None:
        try:
            leaves = self._controller.scanner.leaf_directories(self._root)
            self._controller.audit.append(f"Janitor pass ({len(leaves)} leaf dir[s])")
            for leaf in leaves:
                if self._stop_event.is_set():
                    break
                try:
                    self._controller.organize(leaf)
                except Exception:  # pragma: no cover - keep the timer alive
                    LOGGER.exception("Janitor failed while organizing %s", leaf)
                    self._controller.audit.append(f"Janitor error in {leaf.name}; see log.")
            self._passes += 1
        finally:
            self._pass_lock.release()


def janitor_factory(interval_seconds: float):
    """Return a factory suitable for ``ConvergenceController(janitor_factory=...)``."""

    def _build(controller: "ConvergenceController", root: Path) -> Janitor:
        return Janitor(controller, root, interval_seconds=interval_seconds)

    return _build


__all__ = ["Janitor", "janitor_factory", "DEFAULT_INTERVAL_SECONDS"]
