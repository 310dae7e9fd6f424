"""Configuration management for filesorter.

Settings live in ``~/.filesorter/config.yaml``. :class:`ConfigManager` reads
that file and layers ``FILESORTER__SECTION__KEY`` environment variables and
command-line overrides on top (see :func:`resolve_with_precedence`).
"""

from __future__ import annotations

import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

import yaml

from .exceptions import ConfigError
from .models import SorterConfig
from .resolver import (
    ENV_PREFIX,
    assign_path,
    env_overrides,
    flatten_for_env,
    resolve_with_precedence,
)

DEFAULT_CONFIG_PATH = Path("~/.filesorter/config.yaml")

_HEADER_LINES = (
    "# filesorter configuration file",
    "# Edit with `filesorter config edit` or `filesorter config set KEY --value VALUE`.",
    f"# {ENV_PREFIX}SECTION__KEY environment variables take precedence over this file.",
)


class ConfigManager:
    """Read, validate, and persist the configuration file."""

    def __init__(
        self,
        config_path: Path | None = None,
        *,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self._config_path = (config_path or DEFAULT_CONFIG_PATH).expanduser()
        self._env = env if env is not None else os.environ

    @property
    def config_path(self) -> Path:
        return self._config_path

    def load(
        self,
        *,
        cli_overrides: Mapping[str, Any] | None = None,
        include_env: bool = True,
        ensure_file: bool = True,
        env_overrides: Mapping[str, str] | None = None,
    ) -> SorterConfig:
        """Return the effective configuration.

        Args:
            cli_overrides: Dotted-key overrides supplied by the command line.
            include_env: Whether ``FILESORTER__*`` variables participate.
            ensure_file: Whether to write a default file when none exists.
            env_overrides: Environment mapping to use instead of the process environment.

        Raises:
            ConfigError: If the file cannot be parsed or a value is invalid.
        """
        if ensure_file:
            self.ensure_exists()

        environ = env_overrides if env_overrides is not None else self._env
        return resolve_with_precedence(
            defaults=SorterConfig(),
            file_overrides=self.load_file_overrides(),
            env_overrides=_env_layer(environ) if include_env else None,
            cli_overrides=cli_overrides,
        )

    def load_file_overrides(self) -> dict[str, Any]:
        """Return the raw mapping stored on disk (empty when there is no file)."""
        if not self._config_path.exists():
            return {}
        return _parse_mapping(self._config_path.read_text(encoding="utf-8"))

    def set_value(self, key: str, value: Any) -> dict[str, Any]:
        """Store ``value`` at dotted ``key`` after validating the whole file.

        Returns:
            dict[str, Any]: The mapping that was written.

        Raises:
            ConfigError: If ``key`` is empty, collides with a scalar, or the
                resulting configuration is invalid. The file is left untouched.
        """
        path = [segment.strip() for segment in key.split(".") if segment.strip()]
        if not path:
            raise ConfigError("KEY must be a dotted path such as 'llm.model'.")
        data = self.load_file_overrides()
        assign_path(data, path, value)
        self.replace(data)
        return data

    def replace(self, data: Mapping[str, Any]) -> SorterConfig:
        """Validate ``data`` as the complete file contents and write it."""
        config = resolve_with_precedence(defaults=SorterConfig(), file_overrides=data)
        self.save(data)
        return config

    def replace_text(self, text: str) -> SorterConfig:
        """Validate and store hand-edited YAML."""
        return self.replace(_parse_mapping(text))

    def save(self, config: SorterConfig | Mapping[str, Any]) -> None:
        """Write ``config`` with a fresh header, creating parent directories."""
        data = config.model_dump(mode="python") if isinstance(config, SorterConfig) else config
        stamp = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
        header = "\n".join((*_HEADER_LINES, f"# Last updated: {stamp}"))
        body = yaml.safe_dump(dict(data), sort_keys=False)
        self._config_path.parent.mkdir(parents=True, exist_ok=True)
        self._config_path.write_text(f"{header}\n{body}", encoding="utf-8")

    def ensure_exists(self) -> Path:
        """Write the default configuration unless a file is already present."""
        if not self._config_path.exists():
            self.save(SorterConfig())
        return self._config_path

    def read_text(self) -> str:
        if not self._config_path.exists():
            return ""
        return self._config_path.read_text(encoding="utf-8")


def _env_layer(environ: Mapping[str, str]) -> dict[str, Any] | None:
    return env_overrides(environ) or None


def _parse_mapping(text: str) -> dict[str, Any]:
    try:
        raw = yaml.safe_load(text) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse configuration file: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigError("Configuration file must contain a mapping at the top level.")
    return raw


__all__ = [
    "ConfigManager",
    "DEFAULT_CONFIG_PATH",
    "SorterConfig",
    "ConfigError",
    "resolve_with_precedence",
    "flatten_for_env",
    "env_overrides",
]
