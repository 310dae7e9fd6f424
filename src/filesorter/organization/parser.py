"""Turn raw planner responses into organization plans.

Two strategies share the :class:`PlanParser` protocol. :class:`StrictPlanParser`
decodes the JSON action array the prompts ask for and tolerates chatter around
it. :class:`HeuristicPlanParser` reads prose or markdown groupings such as::

    1. **PDFs**: all pdf files
    2. "Images": jpg, png
    3. Documents: docx, txt

and maps the file extensions it recognizes to folder names. It is deliberately
conservative: a line it cannot read contributes nothing.
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import PurePath
from typing import Iterable, Mapping, Protocol

from pydantic import ValidationError

from .errors import ParseError
from .models import ActionKind, OrganizationPlan, PlanAction

LOGGER = logging.getLogger(__name__)

_LEADING_WORDS = re.compile(r"^[\s\d.\-*+]*([A-Za-z0-9_\- ]+)")
_TOKEN_SPLIT = re.compile(r"[^0-9a-z]+")
_QUOTES = "\"'"


class PlanParser(Protocol):
    """Anything that can turn planner text into a plan."""

    def parse(self, raw: str) -> OrganizationPlan:
        ...


class StrictPlanParser:
    """Decode the JSON action array between the first ``[`` and the last ``]``."""

    def parse(self, raw: str) -> OrganizationPlan:
        """Decode ``raw`` into a plan.

        Args:
            raw: Planner response, possibly wrapped in prose or code fences.

        Returns:
            OrganizationPlan: Actions in response order; text outside the array
            becomes the rationale.

        Raises:
            ParseError: If no array is present or any element is invalid.
        """
        start = raw.find("[")
        end = raw.rfind("]")
        if start == -1 or end == -1 or end < start:
            raise ParseError("no JSON array found in response", raw)

        try:
            payload = json.loads(raw[start : end + 1])
        except json.JSONDecodeError as exc:
            raise ParseError(f"malformed action array: {exc}", raw) from exc

        if not isinstance(payload, list):
            raise ParseError("response array did not decode to a list", raw)

        actions: list[PlanAction] = []
        for index, item in enumerate(payload):
            if not isinstance(item, dict):
                raise ParseError(f"action {index} is not an object", raw)
            try:
                actions.append(PlanAction.model_validate(item))
            except ValidationError as exc:
                raise ParseError(f"invalid action {index}: {_first_error(exc)}", raw) from exc

        rationale = " ".join(
            part.strip().strip("`").strip() for part in (raw[:start], raw[end + 1 :])
        ).strip()
        return OrganizationPlan(actions=actions, rationale=rationale)


class HeuristicPlanParser:
    """Extract an extension-to-folder mapping from free text.

    Args:
        candidates: Names (or paths) of the loose files the plan is about. Only
            extensions present among them are ever mapped.
    """

    def __init__(self, candidates: Iterable[str | PurePath]) -> None:
        self._names = [PurePath(candidate).name for candidate in candidates]
        self._extensions = {ext for ext in map(_extension, self._names) if ext}

    def extension_map(self, raw: str) -> dict[str, str]:
        """Return ``{extension: folder}`` for every actionable line; last line wins."""
        mapping: dict[str, str] = {}
        for line in raw.splitlines():
            trimmed = line.strip()
            if not trimmed:
                continue
            folder = extract_folder_name(trimmed)
            if folder is None:
                continue

            lowered = trimmed.lower()
            for token in _TOKEN_SPLIT.split(lowered):
                if token in self._extensions:
                    mapping[token] = folder

            for name in self._names:
                extension = _extension(name)
                if extension and name.lower() in lowered:
                    mapping[extension] = folder
        return mapping

    def parse(self, raw: str) -> OrganizationPlan:
        mapping = self.extension_map(raw)
        plan = moves_from_extension_map(mapping, self._names)
        LOGGER.debug("Heuristic parse mapped %s to %d move(s)", mapping, len(plan.actions))
        return plan


def extract_folder_name(line: str) -> str | None:
    """Pick a folder name out of one line: bold, then quotes, then leading words."""
    start = line.find("**")
    if start != -1:
        end = line.find("**", start + 2)
        if end != -1:
            candidate = line[start + 2 : end].strip()
            if candidate:
                return candidate

    for index, char in enumerate(line):
        if char in _QUOTES:
            end = line.find(char, index + 1)
            if end != -1:
                candidate = line[index + 1 : end].strip()
                if candidate:
                    return candidate
            break

    match = _LEADING_WORDS.match(line)
    if match:
        candidate = match.group(1).strip()
        if candidate:
            return candidate
    return None


def moves_from_extension_map(
    mapping: Mapping[str, str], names: Iterable[str | PurePath]
) -> OrganizationPlan:
    """Pair an extension map with concrete file names as ``move_file`` actions."""
    actions: list[PlanAction] = []
    for candidate in names:
        name = PurePath(candidate).name
        folder = mapping.get(_extension(name))
        if not folder:
            continue
        actions.append(
            PlanAction(kind=ActionKind.MOVE_FILE, source=name, destination=f"{folder}/{name}")
        )
    return OrganizationPlan(actions=actions, rationale="Grouped by file extension.")


def _extension(name: str) -> str:
    return PurePath(name).suffix.lower().lstrip(".")


def _first_error(exc: ValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return str(exc)
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    message = first.get("msg", "invalid value")
    return f"{location}: {message}" if location else message


__all__ = [
    "PlanParser",
    "StrictPlanParser",
    "HeuristicPlanParser",
    "extract_folder_name",
    "moves_from_extension_map",
]
