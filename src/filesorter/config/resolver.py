"""Layered configuration: defaults < file < environment < command line."""

from __future__ import annotations

from collections.abc import Mapping as MappingABC
from copy import deepcopy
from typing import Any, Dict, Iterable, Mapping

import yaml
from pydantic import ValidationError

from .exceptions import ConfigError
from .models import SorterConfig

ENV_PREFIX = "FILESORTER__"

_LAYERS = ("file", "environment", "cli")


def resolve_with_precedence(
    *,
    defaults: SorterConfig,
    file_overrides: Mapping[str, Any] | None = None,
    env_overrides: Mapping[str, Any] | None = None,
    cli_overrides: Mapping[str, Any] | None = None,
) -> SorterConfig:
    """Merge override layers onto ``defaults`` and validate the result.

    Keys in any layer may be nested mappings or dotted paths
    (``{"llm.model": "x"}``); later layers win.

    Raises:
        ConfigError: If a layer is malformed or the merged values are invalid.
    """
    merged = defaults.model_dump(mode="python")
    for name, layer in zip(_LAYERS, (file_overrides, env_overrides, cli_overrides)):
        if layer is not None:
            merged = _deep_merge(merged, expand_dotted(layer, source_name=name))

    try:
        return SorterConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration values: {exc}") from exc


def env_overrides(environ: Mapping[str, str], prefix: str = ENV_PREFIX) -> dict[str, Any]:
    """Collect ``PREFIX__SECTION__KEY`` variables as a nested mapping.

    Values are read as YAML scalars so ``false`` and ``0.5`` keep their types;
    anything YAML rejects is kept as the raw string.
    """
    overrides: dict[str, Any] = {}
    for key, raw in environ.items():
        if not key.startswith(prefix):
            continue
        path = [segment.lower() for segment in key[len(prefix) :].split("__") if segment]
        if not path:
            continue
        try:
            value: Any = yaml.safe_load(raw)
        except yaml.YAMLError:
            value = raw
        assign_path(overrides, path, value, replace_scalars=True)
    return overrides


def flatten_for_env(config: SorterConfig) -> Dict[str, str]:
    """Render ``config`` as the environment variables that would reproduce it."""
    flat: Dict[str, str] = {}
    for path, value in _leaves(config.model_dump(mode="python"), ()):
        key = ENV_PREFIX + "__".join(part.upper() for part in path)
        if isinstance(value, list):
            flat[key] = yaml.safe_dump(value, default_flow_style=True).strip()
        else:
            flat[key] = "null" if value is None else str(value)
    return flat


def expand_dotted(source: Mapping[str, Any], *, source_name: str = "file") -> dict[str, Any]:
    """Return ``source`` with dotted keys expanded into nested mappings."""
    if not isinstance(source, MappingABC):
        raise ConfigError(f"{source_name.capitalize()} overrides must be a mapping.")

    result: dict[str, Any] = {}
    for key, value in source.items():
        if not isinstance(key, str):
            raise ConfigError(f"{source_name.capitalize()} override keys must be strings.")
        if isinstance(value, MappingABC):
            value = expand_dotted(value, source_name=source_name)
        assign_path(result, key.split("."), value, source_name=source_name)
    return result


def assign_path(
    target: dict[str, Any],
    path: list[str],
    value: Any,
    *,
    source_name: str = "file",
    replace_scalars: bool = False,
) -> None:
    """Set ``target[path[0]]...[path[-1]] = value``, creating mappings on the way.

    Raises:
        ConfigError: If an intermediate key holds a scalar and
            ``replace_scalars`` is false.
    """
    node = target
    for segment in path[:-1]:
        child = node.get(segment)
        if child is None or (replace_scalars and not isinstance(child, dict)):
            child = node[segment] = {}
        elif not isinstance(child, dict):
            raise ConfigError(
                f"{source_name.capitalize()} override for {'.'.join(path)} "
                f"conflicts with the value stored at '{segment}'."
            )
        node = child

    leaf = path[-1]
    current = node.get(leaf)
    if isinstance(value, MappingABC) and isinstance(current, MappingABC):
        node[leaf] = _deep_merge(current, value)
    else:
        node[leaf] = value


def _leaves(
    data: Mapping[str, Any], prefix: tuple[str, ...]
) -> Iterable[tuple[tuple[str, ...], Any]]:
    for key, value in data.items():
        path = (*prefix, str(key))
        if isinstance(value, dict):
            yield from _leaves(value, path)
        else:
            yield path, value


def _deep_merge(base: Mapping[str, Any], overrides: Mapping[str, Any]) -> dict[str, Any]:
    merged = {key: deepcopy(value) for key, value in base.items()}
    for key, value in overrides.items():
        if isinstance(value, MappingABC) and isinstance(merged.get(key), MappingABC):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = deepcopy(value)
    return merged


__all__ = [
    "ENV_PREFIX",
    "resolve_with_precedence",
    "env_overrides",
    "flatten_for_env",
    "expand_dotted",
    "assign_path",
]
