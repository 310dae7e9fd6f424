"""Planning oracle backends.

The organizer only needs ``complete(messages) -> text``. :class:`DSPyOracle`
routes chat messages through a DSPy language model; :class:`HeuristicOracle`
answers the same prompts offline from file extensions, which keeps the CLI
usable without a model and gives tests a realistic planner.
"""

from __future__ import annotations

import json
import logging
import mimetypes
from collections import defaultdict
from pathlib import PurePath
from typing import Optional, Protocol

try:  # pragma: no cover - optional dependency
    import dspy  # type: ignore
except ImportError:  # pragma: no cover - executed when DSPy absent
    dspy = None  # type: ignore[assignment]

from filesorter.config.models import LLMSettings

from .errors import ContextOverflowError, OracleError
from .prompts import FILE_PROMPT_PATTERN, grouping_files_from_prompt

LOGGER = logging.getLogger(__name__)

HEURISTIC_PROVIDER = "heuristic"

_OVERFLOW_MARKERS = (
    "context window",
    "context length",
    "maximum context",
    "contextwindowexceeded",
    "exceededcontextwindowsize",
    "too many tokens",
)

_MIME_CATEGORIES = {
    "image": "Images",
    "audio": "Audio",
    "video": "Video",
    "text": "Documents",
}

_EXTENSION_CATEGORIES = {
    "pdf": "Documents",
    "doc": "Documents",
    "docx": "Documents",
    "odt": "Documents",
    "rtf": "Documents",
    "md": "Documents",
    "txt": "Documents",
    "csv": "Spreadsheets",
    "xls": "Spreadsheets",
    "xlsx": "Spreadsheets",
    "ods": "Spreadsheets",
    "ppt": "Presentations",
    "pptx": "Presentations",
    "key": "Presentations",
    "zip": "Archives",
    "tar": "Archives",
    "gz": "Archives",
    "7z": "Archives",
    "rar": "Archives",
    "dmg": "Installers",
    "pkg": "Installers",
    "exe": "Installers",
    "msi": "Installers",
    "py": "Code",
    "js": "Code",
    "ts": "Code",
    "swift": "Code",
    "json": "Data",
    "xml": "Data",
    "yaml": "Data",
    "yml": "Data",
}


class Oracle(Protocol):
    """Text-in, text-out planner."""

    def complete(self, messages: list[dict[str, str]]) -> str:
        """Return the reply to the last user message given the whole conversation.

        Raises:
            ContextOverflowError: If the conversation exceeds the model's context.
            OracleError: For any other generation failure.
        """
        ...


class DSPyOracle:
    """Send chat messages through a DSPy language model."""

    def __init__(self, settings: Optional[LLMSettings] = None) -> None:
        """Configure the language model from ``settings``.

        Raises:
            RuntimeError: If DSPy is unavailable or the model cannot be configured.
        """
        if dspy is None:
            raise RuntimeError(
                "The LLM planner requires DSPy. Install it with `pip install dspy` or set "
                "`llm.provider: heuristic` to use the offline planner."
            )

        self._settings = settings or LLMSettings()
        lm_kwargs: dict[str, object] = {
            "model": self.model_id,
            "temperature": self._settings.temperature,
            "max_tokens": self._settings.max_tokens,
            "cache": False,
        }
        if self._settings.api_base_url:
            lm_kwargs["api_base"] = self._settings.api_base_url
        if self._settings.api_key is not None:
            lm_kwargs["api_key"] = self._settings.api_key

        try:
            self._lm = dspy.LM(**lm_kwargs)
        except Exception as exc:  # pragma: no cover - DSPy configuration errors
            raise RuntimeError(
                f"Unable to configure the DSPy language model '{self.model_id}'. "
                "Verify your llm settings."
            ) from exc

    @property
    def model_id(self) -> str:
        model = self._settings.model
        if "/" in model or not self._settings.provider:
            return model
        return f"{self._settings.provider}/{model}"

    def complete(self, messages: list[dict[str, str]]) -> str:
        try:
            outputs = self._lm(messages=messages)
        except Exception as exc:  # provider errors arrive as arbitrary litellm exceptions
            if is_context_overflow(exc):
                raise ContextOverflowError(str(exc)) from exc
            raise OracleError(f"{type(exc).__name__}: {exc}") from exc

        if not outputs:
            raise OracleError("language model returned no completions")
        first = outputs[0]
        if isinstance(first, dict):
            first = first.get("text") or ""
        return str(first)


class HeuristicOracle:
    """Answer organizer prompts from file types without calling a model."""

    def complete(self, messages: list[dict[str, str]]) -> str:
        prompt = messages[-1]["content"] if messages else ""

        match = FILE_PROMPT_PATTERN.search(prompt)
        if match:
            name, folder = match.group("name"), match.group("folder")
            category = category_for(name)
            if category.lower() == folder.lower():
                return "[]"
            action = {
                "action": "move_file",
                "source": name,
                "destination": f"{category}/{name}",
                "name": None,
            }
            return json.dumps([action])

        files = grouping_files_from_prompt(prompt)
        if files:
            groups: dict[str, set[str]] = defaultdict(set)
            for name in files:
                extension = PurePath(name).suffix.lower().lstrip(".")
                if extension:
                    groups[category_for(name)].add(extension)
            lines = [
                f"{index}. **{category}**: {', '.join(sorted(extensions))}"
                for index, (category, extensions) in enumerate(sorted(groups.items()), start=1)
            ]
            return "\n".join(lines)

        return "[]"


def category_for(name: str) -> str:
    """Folder name for a file based on its extension, then its MIME type."""
    extension = PurePath(name).suffix.lower().lstrip(".")
    if extension in _EXTENSION_CATEGORIES:
        return _EXTENSION_CATEGORIES[extension]
    mime, _ = mimetypes.guess_type(name)
    if mime:
        mapped = _MIME_CATEGORIES.get(mime.split("/", 1)[0])
        if mapped:
            return mapped
    return "Other"


def is_context_overflow(exc: BaseException) -> bool:
    """Whether ``exc`` (or anything it wraps) reports a context-window overflow."""
    seen: set[int] = set()
    current: Optional[BaseException] = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        if isinstance(current, ContextOverflowError):
            return True
        haystack = f"{type(current).__name__} {current}".lower().replace("_", " ")
        compact = haystack.replace(" ", "")
        if any(marker in haystack or marker in compact for marker in _OVERFLOW_MARKERS):
            return True
        current = current.__cause__ or current.__context__
    return False


def build_oracle(settings: LLMSettings) -> Oracle:
    """Return the backend selected by ``settings.provider``."""
    if settings.provider.strip().lower() == HEURISTIC_PROVIDER:
        LOGGER.info("Using the offline heuristic planner.")
        return HeuristicOracle()
    return DSPyOracle(settings)


__all__ = [
    "Oracle",
    "DSPyOracle",
    "HeuristicOracle",
    "HEURISTIC_PROVIDER",
    "build_oracle",
    "category_for",
    "is_context_overflow",
]
