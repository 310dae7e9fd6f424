"""CLI tests for organization, janitor, and history commands."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from click.testing import CliRunner

from filesorter.cli import cli


def _env(tmp_path: Path) -> dict[str, Any]:
    env = dict(os.environ)
    env["HOME"] = str(tmp_path / "home")
    env["FILESORTER__LLM__PROVIDER"] = "heuristic"
    env["FILESORTER__JANITOR__ENABLED"] = "false"
    env["FILESORTER__ORGANIZATION__MOVE_PACING_SECONDS"] = "0"
    return env


def _inbox(tmp_path: Path, *names: str) -> Path:
    root = tmp_path / "inbox"
    for name in names:
        target = root / name
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(name, encoding="utf-8")
    root.mkdir(exist_ok=True)
    return root


def test_cli_org_organizes_and_persists_history(tmp_path: Path) -> None:
    root = _inbox(tmp_path, "report.pdf", "photo.jpg")
    runner = CliRunner()

    result = runner.invoke(cli, ["org", str(root)], env=_env(tmp_path))

    assert result.exit_code == 0, result.output
    assert (root / "Documents" / "report.pdf").is_file()
    assert (root / "Images" / "photo.jpg").is_file()
    assert "Moved 'photo.jpg' to 'Images/photo.jpg'" in result.output
    assert "moved=2" in result.output

    state_dir = root / ".filesorter"
    history = [
        json.loads(line)
        for line in (state_dir / "history.jsonl").read_text(encoding="utf-8").splitlines()
    ]
    messages = [item["message"] for item in history]
    assert messages[0] == f"Selected folder: {root.resolve()}"
    assert messages[-1] == "Done!"
    assert (state_dir / "filesorter.log").exists()


def test_cli_org_json_output(tmp_path: Path) -> None:
    root = _inbox(tmp_path, "report.pdf")
    runner = CliRunner()

    result = runner.invoke(cli, ["org", str(root), "--json"], env=_env(tmp_path))

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["summary"]["moved"] == 1
    assert payload["summary"]["errors"] == 0
    assert payload["history"][-1]["message"] == "Done!"


def test_cli_org_quiet_suppresses_output(tmp_path: Path) -> None:
    root = _inbox(tmp_path, "report.pdf")
    runner = CliRunner()

    result = runner.invoke(cli, ["org", str(root), "--quiet"], env=_env(tmp_path))

    assert result.exit_code == 0
    assert result.stdout.strip() == ""
    assert (root / "Documents" / "report.pdf").is_file()


def test_cli_org_rejects_json_with_quiet(tmp_path: Path) -> None:
    root = _inbox(tmp_path, "report.pdf")
    runner = CliRunner()

    result = runner.invoke(cli, ["org", str(root), "--json", "--quiet"], env=_env(tmp_path))

    assert result.exit_code != 0
    assert (root / "report.pdf").is_file()


def test_cli_org_by_type(tmp_path: Path) -> None:
    root = _inbox(tmp_path, "a.pdf", "b.pdf", "c.jpg", "Makefile")
    runner = CliRunner()

    result = runner.invoke(cli, ["org", str(root), "--by-type"], env=_env(tmp_path))

    assert result.exit_code == 0, result.output
    assert (root / "Documents" / "a.pdf").is_file()
    assert (root / "Documents" / "b.pdf").is_file()
    assert (root / "Images" / "c.jpg").is_file()
    assert (root / "Makefile").is_file()


def test_cli_org_reports_invalid_config(tmp_path: Path) -> None:
    root = _inbox(tmp_path, "report.pdf")
    env = _env(tmp_path)
    env["FILESORTER__ORGANIZATION__MAX_PASSES"] = "0"
    runner = CliRunner()

    result = runner.invoke(cli, ["org", str(root), "--json"], env=env)

    assert result.exit_code == 1
    payload = json.loads(result.stdout)
    assert payload["error"]["code"] == "config_error"
    assert (root / "report.pdf").is_file()


def test_cli_janitor_runs_single_pass(tmp_path: Path) -> None:
    root = _inbox(tmp_path, "Scans/page.pdf")
    runner = CliRunner()

    result = runner.invoke(cli, ["janitor", str(root)], env=_env(tmp_path))

    assert result.exit_code == 0, result.output
    assert (root / "Scans" / "Documents" / "page.pdf").is_file()
    assert "Janitor pass (1 leaf dir[s])" in result.output


def test_cli_history_shows_recent_entries(tmp_path: Path) -> None:
    root = _inbox(tmp_path, "report.pdf")
    runner = CliRunner()
    env = _env(tmp_path)
    assert runner.invoke(cli, ["org", str(root), "--quiet"], env=env).exit_code == 0

    result = runner.invoke(cli, ["history", str(root), "--limit", "2", "--json"], env=env)

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["limit"] == 2
    assert [item["message"] for item in payload["history"]] == ["Phase 2 complete.", "Done!"]

    table = runner.invoke(cli, ["history", str(root)], env=env)
    assert table.exit_code == 0
    assert "Done!" in table.output


def test_cli_history_without_runs_fails(tmp_path: Path) -> None:
    root = _inbox(tmp_path)
    runner = CliRunner()

    result = runner.invoke(cli, ["history", str(root)], env=_env(tmp_path))

    assert result.exit_code != 0
    assert "No history found" in result.output
