"""Wiring helpers shared by CLI commands."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

from filesorter.config import SorterConfig
from filesorter.ingestion import DirectoryScanner
from filesorter.oracle import Oracle, OracleGateway, build_oracle
from filesorter.organization import ConvergenceController
from filesorter.state import AuditLog, StateRepository
from filesorter.watch import janitor_factory

LOG_FILENAME = "filesorter.log"

_PACKAGE_LOGGER = "filesorter"


def configure_logging(
    config: SorterConfig,
    *,
    state_dir: Optional[Path] = None,
    console: Optional[Console] = None,
) -> logging.Logger:
    """Attach a rich stderr handler and, when given a state dir, a rotating file log.

    Args:
        config: Loaded configuration providing level and rotation limits.
        state_dir: Directory receiving ``filesorter.log``.
        console: Console for the rich handler; defaults to stderr.

    Returns:
        logging.Logger: The package logger.
    """
    logger = logging.getLogger(_PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    level = logging.getLevelName(config.logging.level.upper())
    if not isinstance(level, int):
        level = logging.WARNING
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    rich_handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    rich_handler.setLevel(level)
    logger.addHandler(rich_handler)

    if state_dir is not None:
        state_dir.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            state_dir / LOG_FILENAME,
            maxBytes=max(1, config.logging.max_size_mb) * 1024 * 1024,
            backupCount=max(0, config.logging.backup_count),
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        logger.addHandler(file_handler)

    return logger


def build_scanner(config: SorterConfig, repository: StateRepository) -> DirectoryScanner:
    return DirectoryScanner(
        include_hidden=config.organization.include_hidden,
        excluded_names=[repository.base_dirname],
    )


def build_controller(
    config: SorterConfig,
    audit: AuditLog,
    *,
    repository: Optional[StateRepository] = None,
    oracle: Optional[Oracle] = None,
    with_janitor: bool = True,
) -> ConvergenceController:
    """Assemble a controller from configuration.

    Args:
        config: Loaded configuration.
        audit: Audit log receiving every status message.
        repository: State repository; determines the excluded state directory.
        oracle: Planner backend; built from ``config.llm`` when omitted.
        with_janitor: Whether ``start_organization`` spawns the janitor.

    Returns:
        ConvergenceController: Ready-to-run controller.
    """
    repository = repository or StateRepository()
    gateway = OracleGateway(oracle or build_oracle(config.llm), audit)
    factory = None
    if with_janitor and config.janitor.enabled:
        factory = janitor_factory(config.janitor.interval_seconds)
    return ConvergenceController(
        gateway,
        build_scanner(config, repository),
        audit,
        options=config.organization,
        janitor_factory=factory,
    )


def persist_history(audit: AuditLog, repository: StateRepository, root: Path):
    """Mirror every new audit entry into the root's history file.

    Returns:
        Callable[[], None]: Handle that stops mirroring.
    """
    return audit.subscribe(lambda entry: repository.append_history(root, [entry]))


__all__ = [
    "LOG_FILENAME",
    "configure_logging",
    "build_scanner",
    "build_controller",
    "persist_history",
]
