"""Prompt templates sent to the planning oracle."""

from __future__ import annotations

import re
import textwrap
from typing import Iterable, Optional

INSTRUCTIONS = textwrap.dedent(
    """\
    You are a file organization assistant. This tool organizes files by moving
    them into logically named subfolders and by renaming folders based on file
    extensions and folder semantics. Answer only with what each request asks for.
    """
)

FILE_PROMPT_PATTERN = re.compile(r'A file named "(?P<name>[^"]+)" is in folder "(?P<folder>[^"]*)"')
GROUPING_MARKER = "Group these files by type"

_FILE_TEMPLATE = textwrap.dedent(
    """\
    A file named "{name}" is in folder "{folder}".

    Based on the file extension and name, suggest an appropriate folder to organize it into.

    You must respond with ONLY a valid JSON array in this exact format:
    [{{"action":"move_file","source":"{name}","destination":"<FolderName>/{name}","name":null}}]

    Do not include any other text, explanations, or formatting. Only return the JSON array.

    Example response:
    [{{"action":"move_file","source":"document.pdf","destination":"Documents/document.pdf","name":null}}]
    """
)

_RENAME_CONTRACT = textwrap.dedent(
    """\
    You must respond with ONLY a valid JSON array in this exact format:
    [{"action":"rename_folder","source":"OldName","destination":null,"name":"NewName"}]

    Or if no changes needed:
    []

    Do not include any other text, explanations, or formatting. Only return the JSON array.
    """
)


def file_prompt(name: str, folder: str) -> str:
    """Ask for exactly one ``move_file`` action for ``name``."""
    return _FILE_TEMPLATE.format(name=name, folder=folder)


def evaluation_prompt(folder: str, subfolders: Iterable[str]) -> str:
    """Ask whether sibling folders should be renamed."""
    names = ", ".join(subfolders)
    return (
        f'Folder "{folder}" contains these subfolders: [{names}].\n\n'
        "Analyze if any folders should be renamed for better organization. "
        "If no changes are needed, return an empty array.\n\n" + _RENAME_CONTRACT
    )


def refinement_prompt(folder: str, subfolders: Iterable[str]) -> str:
    """Ask for semantic consolidation of sibling folders (second sweep)."""
    names = ", ".join(subfolders)
    return (
        f'Parent folder "{folder}" contains: [{names}].\n\n'
        "Analyze if folders should be renamed or consolidated for better semantic "
        "organization. If no changes are needed, return an empty array.\n\n" + _RENAME_CONTRACT
    )


def grouping_prompt(folder: str, file_names: Iterable[str]) -> str:
    """Ask for a prose grouping of files by type, one folder per line."""
    listing = "\n".join(f"- {name}" for name in file_names)
    return (
        f'{GROUPING_MARKER} in folder "{folder}". Answer with one line per folder, '
        "naming the folder in bold and listing the file extensions it should hold, "
        "for example:\n1. **Documents**: pdf, docx\n\n"
        f"Files:\n{listing}\n"
    )


def file_name_from_prompt(prompt: str) -> Optional[str]:
    """Return the file a single-file prompt asks about, if it is one."""
    match = FILE_PROMPT_PATTERN.search(prompt)
    return match.group("name") if match else None


def grouping_files_from_prompt(prompt: str) -> list[str]:
    """Return the file names listed by a grouping prompt (empty for other prompts)."""
    if GROUPING_MARKER not in prompt or "Files:\n" not in prompt:
        return []
    listing = prompt.split("Files:\n", 1)[1]
    return [line[2:].strip() for line in listing.splitlines() if line.startswith("- ")]


__all__ = [
    "INSTRUCTIONS",
    "FILE_PROMPT_PATTERN",
    "GROUPING_MARKER",
    "file_prompt",
    "evaluation_prompt",
    "refinement_prompt",
    "grouping_prompt",
    "file_name_from_prompt",
    "grouping_files_from_prompt",
]
