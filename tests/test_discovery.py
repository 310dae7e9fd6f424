"""Directory scanner tests."""

from __future__ import annotations

from pathlib import Path

from filesorter.ingestion import DirectoryScanner, split_into_batches


def _build_tree(root: Path) -> None:
    (root / "Docs" / "Old").mkdir(parents=True)
    (root / "Media").mkdir()
    (root / ".filesorter").mkdir()
    (root / "Docs" / "a.pdf").write_text("a", encoding="utf-8")
    (root / "notes.txt").write_text("n", encoding="utf-8")
    (root / ".DS_Store").write_text("", encoding="utf-8")


def test_listing_hides_dotfiles_and_excluded_names(tmp_path: Path) -> None:
    _build_tree(tmp_path)
    scanner = DirectoryScanner(excluded_names=[".filesorter"])

    assert [entry.name for entry in scanner.loose_files(tmp_path)] == ["notes.txt"]
    assert [entry.name for entry in scanner.subdirectories(tmp_path)] == ["Docs", "Media"]

    notes = scanner.loose_files(tmp_path)[0]
    assert notes.extension == "txt"
    assert notes.size_bytes == 1


def test_include_hidden_still_honours_exclusions(tmp_path: Path) -> None:
    _build_tree(tmp_path)
    scanner = DirectoryScanner(include_hidden=True, excluded_names=[".filesorter"])

    assert [entry.name for entry in scanner.loose_files(tmp_path)] == [".DS_Store", "notes.txt"]
    assert ".filesorter" not in [entry.name for entry in scanner.subdirectories(tmp_path)]


def test_missing_directory_lists_nothing(tmp_path: Path) -> None:
    assert DirectoryScanner().list_entries(tmp_path / "missing") == []


def test_leaf_directories(tmp_path: Path) -> None:
    _build_tree(tmp_path)
    scanner = DirectoryScanner(excluded_names=[".filesorter"])

    assert scanner.leaf_directories(tmp_path) == [tmp_path / "Media", tmp_path / "Docs" / "Old"]
    assert scanner.leaf_directories(tmp_path / "Media") == [tmp_path / "Media"]


def test_describe_tree(tmp_path: Path) -> None:
    root = tmp_path / "inbox"
    root.mkdir()
    _build_tree(root)

    text = DirectoryScanner(excluded_names=[".filesorter"]).describe_tree(root)

    assert text == "\n".join(
        [
            "inbox/",
            "    Docs/",
            "        Old/",
            "        a.pdf",
            "    Media/",
            "    notes.txt",
        ]
    )


def test_split_into_batches_respects_line_boundaries() -> None:
    text = "alpha\nbeta\ngamma\ndelta"

    assert split_into_batches(text, 12) == ["alpha\nbeta", "gamma\ndelta"]
    assert split_into_batches("a-very-long-line\nx", 4) == ["a-very-long-line", "x"]
    assert split_into_batches("", 10) == [""]
