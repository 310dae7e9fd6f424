"""Plan executor guard and mutation tests."""

from __future__ import annotations

from pathlib import Path

from filesorter.organization import (
    ActionKind,
    OrganizationPlan,
    PlanAction,
    PlanExecutor,
    RequestContext,
)
from filesorter.state import AuditLog


def _move(source: str, destination: str) -> PlanAction:
    return PlanAction(kind=ActionKind.MOVE_FILE, source=source, destination=destination)


def _plan(*actions: PlanAction) -> OrganizationPlan:
    return OrganizationPlan(actions=list(actions))


def _touch(path: Path, text: str = "data") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def test_empty_plan_is_a_logged_no_op(tmp_path: Path) -> None:
    audit = AuditLog()

    report = PlanExecutor(audit).execute(_plan(), tmp_path, RequestContext.for_file("a.txt"))

    assert report.total == 0
    assert audit.messages() == ["No changes suggested by AI."]


def test_move_creates_missing_parent(tmp_path: Path) -> None:
    _touch(tmp_path / "report.pdf")
    audit = AuditLog()

    report = PlanExecutor(audit).execute(
        _plan(_move("report.pdf", "Documents/report.pdf")),
        tmp_path,
        RequestContext.for_file("report.pdf"),
    )

    assert report.applied == 1
    assert (tmp_path / "Documents" / "report.pdf").is_file()
    assert not (tmp_path / "report.pdf").exists()
    assert audit.messages() == ["Moved 'report.pdf' to 'Documents/report.pdf'"]


def test_existence_guard_skips_vanished_source(tmp_path: Path) -> None:
    audit = AuditLog()

    report = PlanExecutor(audit).execute(
        _plan(_move("gone.txt", "Docs/gone.txt")), tmp_path, RequestContext.for_file("gone.txt")
    )

    assert report.skipped == 1
    assert report.applied == 0
    assert not (tmp_path / "Docs").exists()
    assert audit.messages() == ["Skipping action for 'gone.txt': item no longer at source."]


def test_target_mismatch_is_rejected(tmp_path: Path) -> None:
    _touch(tmp_path / "a.txt")
    _touch(tmp_path / "b.txt")
    audit = AuditLog()

    report = PlanExecutor(audit).execute(
        _plan(_move("b.txt", "Docs/b.txt")), tmp_path, RequestContext.for_file("a.txt")
    )

    assert report.skipped == 1
    assert (tmp_path / "b.txt").exists()
    assert "ignored because the query was for 'a.txt'" in audit.messages()[0]


def test_existing_directory_destination_means_move_into(tmp_path: Path) -> None:
    _touch(tmp_path / "a.txt")
    (tmp_path / "Docs").mkdir()

    PlanExecutor(AuditLog()).execute(
        _plan(_move("a.txt", "Docs")), tmp_path, RequestContext.for_file("a.txt")
    )

    assert (tmp_path / "Docs" / "a.txt").is_file()


def test_trailing_separator_means_move_into(tmp_path: Path) -> None:
    _touch(tmp_path / "a.txt")

    PlanExecutor(AuditLog()).execute(
        _plan(_move("a.txt", "Notes/")), tmp_path, RequestContext.for_file("a.txt")
    )

    assert (tmp_path / "Notes" / "a.txt").is_file()


def test_existing_destination_file_is_overwritten(tmp_path: Path) -> None:
    _touch(tmp_path / "a.txt", "new")
    _touch(tmp_path / "Docs" / "a.txt", "old")

    report = PlanExecutor(AuditLog()).execute(
        _plan(_move("a.txt", "Docs/a.txt")), tmp_path, RequestContext.for_file("a.txt")
    )

    assert report.applied == 1
    assert (tmp_path / "Docs" / "a.txt").read_text(encoding="utf-8") == "new"
    assert not (tmp_path / "a.txt").exists()


def test_destination_outside_directory_is_refused(tmp_path: Path) -> None:
    inner = tmp_path / "inner"
    _touch(inner / "a.txt")
    audit = AuditLog()

    report = PlanExecutor(audit).execute(
        _plan(_move("a.txt", "../escaped.txt")), inner, RequestContext.for_file("a.txt")
    )

    assert report.skipped == 1
    assert (inner / "a.txt").exists()
    assert not (tmp_path / "escaped.txt").exists()
    assert "path is outside 'inner'" in audit.messages()[0]


def test_failed_action_does_not_stop_the_rest(tmp_path: Path) -> None:
    _touch(tmp_path / "a.txt")

    report = PlanExecutor(AuditLog()).execute(
        _plan(_move("a.txt", "../escaped.txt"), _move("a.txt", "Docs/a.txt")),
        tmp_path,
        RequestContext.for_file("a.txt"),
    )

    assert (report.skipped, report.applied) == (1, 1)
    assert (tmp_path / "Docs" / "a.txt").is_file()


def test_moving_onto_itself_is_a_no_op(tmp_path: Path) -> None:
    _touch(tmp_path / "a.txt")
    audit = AuditLog()

    report = PlanExecutor(audit).execute(
        _plan(_move("a.txt", "a.txt")), tmp_path, RequestContext.for_file("a.txt")
    )

    assert report.applied == 1
    assert (tmp_path / "a.txt").is_file()
    assert audit.messages() == ["'a.txt' is already in place."]


def test_directory_context_rejects_moves(tmp_path: Path) -> None:
    _touch(tmp_path / "a.txt")
    audit = AuditLog()

    report = PlanExecutor(audit).execute(
        _plan(_move("a.txt", "Docs/a.txt")), tmp_path, RequestContext.for_directory()
    )

    assert report.skipped == 1
    assert (tmp_path / "a.txt").exists()
    assert audit.messages()[0].startswith("Plan rejected:")


def test_rename_folder(tmp_path: Path) -> None:
    _touch(tmp_path / "pics" / "cat.jpg")
    audit = AuditLog()
    rename = PlanAction(kind=ActionKind.RENAME_FOLDER, source="pics", new_name="Images")

    report = PlanExecutor(audit).execute(_plan(rename), tmp_path, RequestContext.for_directory())

    assert report.applied == 1
    assert (tmp_path / "Images" / "cat.jpg").is_file()
    assert audit.messages() == ["Renamed folder 'pics' to 'Images'"]


def test_rename_onto_non_empty_folder_fails_without_merging(tmp_path: Path) -> None:
    _touch(tmp_path / "pics" / "cat.jpg")
    _touch(tmp_path / "Images" / "dog.jpg")
    audit = AuditLog()
    rename = PlanAction(kind=ActionKind.RENAME_FOLDER, source="pics", new_name="Images")

    report = PlanExecutor(audit).execute(_plan(rename), tmp_path, RequestContext.for_directory())

    assert report.failed == 1
    assert (tmp_path / "pics" / "cat.jpg").is_file()
    assert (tmp_path / "Images" / "dog.jpg").is_file()
    assert audit.messages()[0].startswith("File system error for 'rename_folder' on 'pics'")


def test_rename_of_a_file_is_skipped(tmp_path: Path) -> None:
    _touch(tmp_path / "notes.txt")
    rename = PlanAction(kind=ActionKind.RENAME_FOLDER, source="notes.txt", new_name="Notes")

    report = PlanExecutor(AuditLog()).execute(
        _plan(rename), tmp_path, RequestContext.for_directory()
    )

    assert report.skipped == 1
    assert (tmp_path / "notes.txt").is_file()


def test_create_folder_is_idempotent(tmp_path: Path) -> None:
    audit = AuditLog()
    executor = PlanExecutor(audit)
    create = PlanAction(kind=ActionKind.CREATE_FOLDER, source="a.txt")

    executor.execute(_plan(create), tmp_path, RequestContext.for_file("a.txt"))
    executor.execute(_plan(create), tmp_path, RequestContext.for_file("a.txt"))

    assert (tmp_path / "a.txt").is_dir()
    assert audit.messages() == ["Created folder 'a.txt'", "Folder 'a.txt' already exists."]


def test_unusable_move_destination_is_a_failed_action(tmp_path: Path) -> None:
    _touch(tmp_path / "a.txt")
    audit = AuditLog()
    bad = PlanAction.model_construct(
        kind=ActionKind.MOVE_FILE, source="a.txt", destination="Docs\x00/a.txt", new_name=None
    )

    report = PlanExecutor(audit).execute(_plan(bad), tmp_path, RequestContext.for_file("a.txt"))

    assert report.failed == 1
    assert (tmp_path / "a.txt").is_file()
    assert audit.messages()[0].startswith("File system error for 'move_file' on 'a.txt'")


def test_unusable_rename_target_is_a_failed_action(tmp_path: Path) -> None:
    _touch(tmp_path / "A" / "note.txt")
    audit = AuditLog()
    bad = PlanAction.model_construct(
        kind=ActionKind.RENAME_FOLDER, source="A", destination=None, new_name="Bad\x00Name"
    )
    _touch(tmp_path / "b" / "book.txt")
    ok = PlanAction(kind=ActionKind.RENAME_FOLDER, source="b", new_name="Books")

    report = PlanExecutor(audit).execute(_plan(bad, ok), tmp_path, RequestContext.for_directory())

    assert report.failed == 1
    assert report.applied == 1
    assert (tmp_path / "A" / "note.txt").is_file()
    assert (tmp_path / "Books" / "book.txt").is_file()
    assert audit.messages()[0].startswith("File system error for 'rename_folder' on 'A'")
