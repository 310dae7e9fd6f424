"""Configuration models describing filesorter settings."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class SorterBaseModel(BaseModel):
    """Shared configuration for filesorter settings models."""

    model_config = ConfigDict(extra="forbid")


class LLMSettings(SorterBaseModel):
    """Planning oracle configuration.

    Attributes:
        provider: Language-model provider prefix, or ``heuristic`` for the offline planner.
        model: Model name to target when issuing requests.
        temperature: Sampling temperature for generative calls.
        max_tokens: Maximum number of tokens in responses.
        api_key: Optional credential for hosted providers.
        api_base_url: Optional base URL for self-hosted or proxied endpoints.
    """

    provider: str = "ollama_chat"
    model: str = "llama3.2"
    temperature: float = 0.1
    max_tokens: int = 4_096
    api_key: Optional[str] = None
    api_base_url: Optional[str] = None


class OrganizationOptions(SorterBaseModel):
    """Settings that govern the convergence loop.

    Attributes:
        max_passes: Hard cap on single-file requests per directory visit.
        retry_attempts: Retries after the first attempt of a single-file request.
        retry_delay_seconds: Fixed wait between single-file retries.
        pacing_delay_seconds: Wait between consecutive single-file requests.
        move_pacing_seconds: Wait between moves when sorting by type.
        include_hidden: Whether hidden entries take part in organization.
        refinement_pass: Whether to run the tree-wide refinement sweep after convergence.
    """

    max_passes: int = Field(default=50, ge=1)
    retry_attempts: int = Field(default=2, ge=0)
    retry_delay_seconds: float = Field(default=2.0, ge=0)
    pacing_delay_seconds: float = Field(default=0.0, ge=0)
    move_pacing_seconds: float = Field(default=0.5, ge=0)
    include_hidden: bool = False
    refinement_pass: bool = True


class JanitorSettings(SorterBaseModel):
    """Background janitor configuration.

    Attributes:
        enabled: Whether ``org`` runs spawn the janitor.
        interval_seconds: Delay between janitor wakes.
    """

    enabled: bool = True
    interval_seconds: float = Field(default=180.0, gt=0)


class LoggingSettings(SorterBaseModel):
    """Runtime logging configuration.

    Attributes:
        level: Logging verbosity level.
        max_size_mb: Maximum log size before rotation.
        backup_count: Number of historical log files to retain.
    """

    level: str = "WARNING"
    max_size_mb: int = 10
    backup_count: int = 3


class CLIOptions(SorterBaseModel):
    """CLI behavior defaults and presentation preferences.

    Attributes:
        quiet_default: Whether commands suppress non-error output by default.
        history_limit: Default number of history entries shown by ``history``.
    """

    quiet_default: bool = False
    history_limit: int = 20


class SorterConfig(SorterBaseModel):
    """Top-level configuration struct for filesorter."""

    llm: LLMSettings = Field(default_factory=LLMSettings)
    organization: OrganizationOptions = Field(default_factory=OrganizationOptions)
    janitor: JanitorSettings = Field(default_factory=JanitorSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    cli: CLIOptions = Field(default_factory=CLIOptions)


__all__ = [
    "SorterBaseModel",
    "LLMSettings",
    "OrganizationOptions",
    "JanitorSettings",
    "LoggingSettings",
    "CLIOptions",
    "SorterConfig",
]
