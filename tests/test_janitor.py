"""Janitor scheduling and pass-guard tests."""

from __future__ import annotations

import threading
import time
from pathlib import Path

import pytest

from filesorter.ingestion import DirectoryScanner
from filesorter.oracle import HeuristicOracle
from filesorter.state import AuditLog
from filesorter.watch import Janitor, janitor_factory


class _BlockingController:
    """Controller stand-in whose ``organize`` waits until released."""

    def __init__(self) -> None:
        self.scanner = DirectoryScanner()
        self.audit = AuditLog()
        self.entered = threading.Event()
        self.release = threading.Event()
        self.organized: list[Path] = []

    def organize(self, directory: Path) -> None:
        self.organized.append(directory)
        self.entered.set()
        self.release.wait(timeout=5)


def test_wake_during_a_pass_is_skipped(tmp_path: Path) -> None:
    (tmp_path / "Leaf").mkdir()
    controller = _BlockingController()
    janitor = Janitor(controller, tmp_path, interval_seconds=60)

    assert janitor.wake() is True
    assert controller.entered.wait(timeout=5)
    assert janitor.pass_in_progress

    assert janitor.wake() is False
    assert janitor.run_pass() is False

    controller.release.set()
    janitor.stop(timeout=5)

    assert janitor.passes_completed == 1
    assert controller.organized == [tmp_path / "Leaf"]
    assert "Janitor wake skipped: previous pass still running." in controller.audit.messages()
    assert "Janitor pass (1 leaf dir[s])" in controller.audit.messages()


def test_timer_wakes_until_stopped(tmp_path: Path) -> None:
    controller = _BlockingController()
    controller.release.set()
    janitor = Janitor(controller, tmp_path, interval_seconds=0.01)

    janitor.start()
    deadline = time.monotonic() + 5
    while janitor.passes_completed == 0 and time.monotonic() < deadline:
        time.sleep(0.01)
    janitor.stop(timeout=5)

    assert janitor.passes_completed >= 1
    assert not janitor.running
    assert controller.organized[0] == tmp_path


def test_start_twice_raises(tmp_path: Path) -> None:
    controller = _BlockingController()
    janitor = Janitor(controller, tmp_path, interval_seconds=60)
    janitor.start()
    try:
        with pytest.raises(RuntimeError):
            janitor.start()
    finally:
        janitor.stop(timeout=5)


def test_run_pass_organizes_leaf_directories(tmp_path: Path, make_harness) -> None:
    inbox = tmp_path / "Inbox"
    inbox.mkdir()
    (inbox / "scan.pdf").write_text("data", encoding="utf-8")
    harness = make_harness(HeuristicOracle())
    janitor = janitor_factory(30)(harness.controller, tmp_path)

    assert janitor.run_pass() is True

    assert (inbox / "Documents" / "scan.pdf").is_file()
    assert janitor.passes_completed == 1
    assert not janitor.pass_in_progress
